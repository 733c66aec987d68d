"""Persona domain models.

A persona is the character the challenger speaks as. Each persona has its
own per-phase challenge patterns, a deterministic style transform applied
to every selected pattern, and the emotion/expression cues used by the
voice and presence collaborators.

Persona data lives in config/personas/<id>.yaml and is loaded once by
PersonaCatalog (challenger.core.persona_loader).
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from challenger.domain.models.phase import Phase


class PersonaId(str, Enum):
    """Closed set of challenger personas."""

    EFFICIENCY = "efficiency"
    MOONSHOT = "moonshot"
    CUSTOMER = "customer"
    INVESTOR = "investor"


class StyleTransform(BaseModel):
    """Deterministic persona rewrite applied to a selected challenge pattern.

    Rules are applied in order: prefix, word substitutions, suffix.

    Attributes:
        prefix: Text prepended unless the pattern already opens with one of
            prefix_skip_if_starts_with
        lowercase_after_prefix: Lowercase the first character of the pattern
            when the prefix is added
        substitutions: Literal word -> replacement rewrites
        suffix: Text appended unless the pattern (lowercased) contains one of
            suffix_skip_if_contains
    """

    model_config = ConfigDict(frozen=True)

    prefix: Optional[str] = None
    lowercase_after_prefix: bool = False
    prefix_skip_if_starts_with: Tuple[str, ...] = ()
    substitutions: Dict[str, str] = Field(default_factory=dict)
    suffix: Optional[str] = None
    suffix_skip_if_contains: Tuple[str, ...] = ()

    def apply(self, text: str) -> str:
        """Rewrite text in this persona's voice."""
        if self.prefix and not text.startswith(self.prefix_skip_if_starts_with):
            body = text
            if self.lowercase_after_prefix and body:
                body = body[0].lower() + body[1:]
            text = f"{self.prefix} {body}"

        for word, replacement in self.substitutions.items():
            text = text.replace(word, replacement)

        if self.suffix:
            lowered = text.lower()
            if not any(marker in lowered for marker in self.suffix_skip_if_contains):
                text = f"{text} {self.suffix}"

        return text


class PersonaDefinition(BaseModel):
    """Immutable persona definition.

    Attributes:
        id: Persona identifier
        display_name: Human-readable persona name
        avatar: Avatar name used by the presence collaborator
        challenge_style: Short description of how this persona pushes back
        document_type: Default strategy document template id
        focus_areas: Topics the persona gravitates to
        common_phrases: Verbal tics used in the persona system prompt
        patterns: Ordered challenge templates per phase
        emotions: Voice emotion per phase
        expressions: Facial expression per phase
        style: Deterministic rewrite applied to selected patterns
        next_steps: Recommended follow-up actions for the user
        system_prompt: Persona system prompt for the completion service
    """

    model_config = ConfigDict(frozen=True)

    id: PersonaId
    display_name: str
    avatar: str = ""
    challenge_style: str = ""
    document_type: str
    focus_areas: Tuple[str, ...] = ()
    common_phrases: Tuple[str, ...] = ()
    patterns: Dict[Phase, Tuple[str, ...]] = Field(default_factory=dict)
    emotions: Dict[Phase, str] = Field(default_factory=dict)
    expressions: Dict[Phase, str] = Field(default_factory=dict)
    style: StyleTransform = Field(default_factory=StyleTransform)
    next_steps: Tuple[str, ...] = ()
    system_prompt: str = ""

    def patterns_for(self, phase: Phase) -> Tuple[str, ...]:
        return self.patterns.get(phase, ())

    def emotion_for(self, phase: Phase) -> str:
        return self.emotions.get(phase, "challenging")

    def expression_for(self, phase: Phase) -> str:
        return self.expressions.get(phase, "questioning")
