"""
Collaborator protocol definitions (interfaces).

Defines the contracts the conversation session relies on, using
typing.Protocol for structural subtyping. Any object with matching
methods can be injected; the reference implementations live in
completion_service.py, voice_service.py and presence_service.py.
"""

from typing import Protocol, Sequence

from challenger.domain.models.challenge import CompletionReply, PresenceAck
from challenger.domain.models.turn import ConversationTurn


class ICompletionService(Protocol):
    """
    Protocol for completion services.

    Produces the challenger's raw reply to the latest user utterance.
    """

    async def complete(
        self,
        system_prompt: str,
        recent_history: Sequence[ConversationTurn],
        user_utterance: str,
    ) -> CompletionReply:
        """
        Generate a challenger reply.

        Args:
            system_prompt: Persona, context and phase guidance
            recent_history: Most recent turns before the current utterance
            user_utterance: Latest user text

        Returns:
            CompletionReply with text and an advisory transition hint

        Raises:
            ServiceError: On any backend failure (callers fall back)
        """
        ...


class IVoiceService(Protocol):
    """
    Protocol for transcription / speech synthesis services.
    """

    async def speech_to_text(self, audio: bytes) -> str:
        """
        Transcribe user audio.

        Raises:
            TranscriptionError: If transcription fails
        """
        ...

    async def text_to_speech(self, text: str, emotion: str) -> bytes:
        """
        Synthesize challenger speech with an emotion cue.

        Raises:
            TranscriptionError: If synthesis fails
        """
        ...


class IPresenceService(Protocol):
    """
    Protocol for avatar presence services.
    """

    async def deliver(self, audio: bytes, emotion: str, expression: str) -> PresenceAck:
        """
        Play synthesized audio through the avatar.

        Raises:
            PresenceError: If delivery fails
        """
        ...
