"""Conversation turn models.

ConversationTurn is the atomic unit of session history. History is an
ordered, append-only sequence of frozen turns and is the only input to
phase transition decisions and insight extraction.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from challenger.domain.models.phase import Phase


class Speaker(str, Enum):
    """Who produced a turn."""

    USER = "user"
    CHALLENGER = "challenger"


class ConversationTurn(BaseModel):
    """Single immutable conversation turn.

    Attributes:
        speaker: USER or CHALLENGER
        content: Turn text (challenger turns hold the delivered reply)
        phase: Session phase at the time of the turn
        challenge_type: Challenge tag, set on challenger turns only
        timestamp: Creation time (UTC)
    """

    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    content: str
    phase: Phase
    challenge_type: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_user(self) -> bool:
        return self.speaker == Speaker.USER

    @property
    def is_challenger(self) -> bool:
        return self.speaker == Speaker.CHALLENGER
