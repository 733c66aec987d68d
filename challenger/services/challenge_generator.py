"""
Challenge generation.

Turns (persona, phase, latest utterance, history, intensity) into a persona
challenge:

1. Pattern selection: the ordered KEYWORD_TABLE is checked against the
   lowercased utterance; the first keyword found picks the first phase
   pattern containing one of its terms (or the phase's first pattern).
   Without a keyword match a pattern is drawn from the injected
   random.Random.
2. Style transform: the persona's deterministic rewrite.
3. Intensity scaling: escalation suffix above the escalation threshold.
4. Phase verdict from PhaseTransitionPolicy, counting the challenger turn
   this challenge becomes (history holds the current user turn but not
   the reply).
"""

import random
from typing import Dict, Optional, Sequence, Tuple

import structlog

from challenger.core.config import IntensityConfig, challenge_config
from challenger.core.exceptions import NoPatternsForPhaseError
from challenger.domain.models.challenge import Challenge
from challenger.domain.models.persona import PersonaDefinition
from challenger.domain.models.phase import Phase
from challenger.domain.models.turn import ConversationTurn
from challenger.services.phase_policy import PhaseTransitionPolicy

log = structlog.get_logger(__name__)


# (utterance keyword, pattern terms it selects), checked in order
KEYWORD_TABLE: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("meeting", ("meeting",)),
    ("time", ("time", "timeline")),
    ("team", ("team",)),
    ("customer", ("customer",)),
    ("revenue", ("revenue", "money")),
    ("strategy", ("strategy",)),
)

CHALLENGE_TYPES: Dict[Phase, str] = {
    Phase.PROVOCATION: "assumption_challenge",
    Phase.DEEP_DIVE: "analytical_challenge",
    Phase.SYNTHESIS: "decision_forcing",
    Phase.OUTPUT: "action_oriented",
}

GENERIC_CHALLENGE_TYPE = "generic_challenge"
GENERIC_EMOTION = "challenging"
GENERIC_EXPRESSION = "questioning"

GENERIC_CHALLENGES: Tuple[str, ...] = (
    "That's the obvious answer. What's the non-obvious one?",
    "Show me the math on that.",
    "What would your smartest competitor do instead?",
    "That sounds safe. Where's the innovation?",
    "Try again, but think bigger.",
)


class ChallengeGenerator:
    """Persona-conditioned challenge selection."""

    def __init__(
        self,
        policy: Optional[PhaseTransitionPolicy] = None,
        rng: Optional[random.Random] = None,
        intensity_config: Optional[IntensityConfig] = None,
    ):
        """
        Args:
            policy: Phase transition policy (defaults to challenge_config thresholds)
            rng: Randomness for keyword-less pattern selection
            intensity_config: Escalation threshold and suffix
        """
        self.policy = policy or PhaseTransitionPolicy()
        self.rng = rng or random.Random()
        self.intensity_config = intensity_config or challenge_config.intensity

    @staticmethod
    def challenge_type(phase: Phase) -> str:
        return CHALLENGE_TYPES.get(phase, GENERIC_CHALLENGE_TYPE)

    def select_pattern(self, patterns: Sequence[str], user_utterance: str) -> int:
        """Return the index of the pattern to use for user_utterance."""
        utterance = user_utterance.lower()

        for keyword, terms in KEYWORD_TABLE:
            if keyword not in utterance:
                continue
            for index, pattern in enumerate(patterns):
                lowered = pattern.lower()
                if any(term in lowered for term in terms):
                    return index
            return 0

        return self.rng.randrange(len(patterns))

    def apply_intensity(self, text: str, intensity: float) -> str:
        if intensity > self.intensity_config.escalation_threshold:
            return f"{text} {self.intensity_config.escalation_suffix}"
        return text

    def generate(
        self,
        persona: PersonaDefinition,
        phase: Phase,
        user_utterance: str,
        history: Sequence[ConversationTurn],
        intensity: float,
    ) -> Challenge:
        """
        Generate a persona challenge.

        Args:
            persona: Persona issuing the challenge
            phase: Current phase
            user_utterance: Latest user text
            history: Session history (current user turn included)
            intensity: Current session intensity

        Returns:
            Challenge

        Raises:
            NoPatternsForPhaseError: If the persona has no patterns for phase
        """
        patterns = persona.patterns_for(phase)
        if not patterns:
            raise NoPatternsForPhaseError(
                f"Persona '{persona.id.value}' has no patterns for phase '{phase.value}'"
            )

        index = self.select_pattern(patterns, user_utterance)
        text = self.apply_intensity(persona.style.apply(patterns[index]), intensity)
        pattern_id = f"{persona.id.value}.{phase.value}.{index}"

        challenge = Challenge(
            text=text,
            challenge_type=self.challenge_type(phase),
            emotion=persona.emotion_for(phase),
            expression=persona.expression_for(phase),
            should_advance_phase=self.policy.should_advance(phase, history, pending_turns=1),
            pattern_id=pattern_id,
            persona=persona.id,
        )

        log.debug(
            "challenge_generated",
            persona=persona.id.value,
            phase=phase.value,
            pattern_id=pattern_id,
            intensity=intensity,
            should_advance_phase=challenge.should_advance_phase,
        )
        return challenge

    def generic(
        self,
        persona: PersonaDefinition,
        phase: Phase,
        history: Sequence[ConversationTurn],
    ) -> Challenge:
        """Persona-agnostic fallback challenge."""
        index = self.rng.randrange(len(GENERIC_CHALLENGES))
        return Challenge(
            text=GENERIC_CHALLENGES[index],
            challenge_type=GENERIC_CHALLENGE_TYPE,
            emotion=GENERIC_EMOTION,
            expression=GENERIC_EXPRESSION,
            should_advance_phase=self.policy.should_advance(phase, history, pending_turns=1),
            pattern_id=f"generic.{index}",
            persona=persona.id,
        )
