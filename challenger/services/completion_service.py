"""Completion services: produce the challenger's raw reply.

LLMCompletionService calls an LLM provider through LLMClient.
ScriptedCompletionService answers offline with per-phase canned replies,
for demos and tests.
"""

from typing import Dict, List, Optional, Sequence

import structlog

from challenger.core.exceptions import LLMError, ServiceError
from challenger.domain.models.challenge import CompletionReply
from challenger.domain.models.phase import Phase
from challenger.domain.models.turn import ConversationTurn, Speaker
from challenger.llm.client import LLMClient, get_llm_client
from challenger.llm.prompts.challenger import detect_transition_hint

log = structlog.get_logger(__name__)


def to_messages(turns: Sequence[ConversationTurn]) -> List[Dict[str, str]]:
    """Convert history turns to chat messages (user / assistant roles)."""
    return [
        {
            "role": "user" if turn.speaker == Speaker.USER else "assistant",
            "content": turn.content,
        }
        for turn in turns
    ]


def phase_from_prompt(system_prompt: str) -> Phase:
    """Read the phase from the system prompt's CURRENT PHASE line."""
    for phase in Phase:
        if f"CURRENT PHASE: {phase.value.upper()}" in system_prompt:
            return phase
    return Phase.PROVOCATION


class LLMCompletionService:
    """Completion service backed by an LLM provider."""

    def __init__(self, llm_client: Optional[LLMClient] = None):
        """
        Args:
            llm_client: LLM client (creates one from settings if None)
        """
        self.llm_client = llm_client or get_llm_client()
        log.info("completion_service_initialized", backend="llm")

    async def complete(
        self,
        system_prompt: str,
        recent_history: Sequence[ConversationTurn],
        user_utterance: str,
    ) -> CompletionReply:
        """
        Generate a challenger reply.

        The transition hint is derived from the reply wording for the phase
        named in the system prompt.

        Raises:
            ServiceError: On any LLM failure
        """
        try:
            response = await self.llm_client.complete(
                prompt=user_utterance,
                system=system_prompt,
                history=to_messages(recent_history),
            )
        except ServiceError:
            raise
        except Exception as e:
            log.error("completion_failed", error=str(e))
            raise LLMError(f"Completion failed: {e}") from e

        text = response.content.strip()
        if not text:
            raise LLMError("Completion returned an empty reply")

        phase = phase_from_prompt(system_prompt)
        return CompletionReply(text=text, transition_hint=detect_transition_hint(text, phase))


# =============================================================================
# Scripted (offline) completion
# =============================================================================

SCRIPTED_REPLIES: Dict[Phase, str] = {
    Phase.PROVOCATION: (
        "That sounds safe. Where's the 10x opportunity hiding in your {topic}?"
    ),
    Phase.DEEP_DIVE: "Show me the math on your {topic}. What are the actual numbers?",
    Phase.SYNTHESIS: (
        "Enough analysis on {topic}. What are you actually going to do about this?"
    ),
    Phase.OUTPUT: "Let's document your decision and the next concrete steps.",
}

BUSINESS_TOPICS = (
    ("revenue", "revenue strategy"),
    ("market", "market expansion"),
    ("team", "team optimization"),
    ("customer", "customer strategy"),
    ("product", "product strategy"),
)


def extract_business_topic(text: str) -> str:
    lowered = text.lower()
    for keyword, topic in BUSINESS_TOPICS:
        if keyword in lowered:
            return topic
    return "business strategy"


class ScriptedCompletionService:
    """Offline completion service with canned per-phase replies."""

    def __init__(self):
        log.info("completion_service_initialized", backend="scripted")

    async def complete(
        self,
        system_prompt: str,
        recent_history: Sequence[ConversationTurn],
        user_utterance: str,
    ) -> CompletionReply:
        phase = phase_from_prompt(system_prompt)
        topic = extract_business_topic(user_utterance)
        text = SCRIPTED_REPLIES[phase].format(topic=topic)
        return CompletionReply(text=text, transition_hint=False)
