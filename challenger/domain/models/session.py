"""Session context and summary models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
import structlog

from challenger.domain.models.persona import PersonaId
from challenger.domain.models.phase import Phase

log = structlog.get_logger(__name__)


class OrgSize(str, Enum):
    STARTUP = "startup"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ENTERPRISE = "enterprise"


class IntensityFeedback(str, Enum):
    """User feedback on how hard the challenger is pushing."""

    TOO_INTENSE = "too_intense"
    NOT_CHALLENGING_ENOUGH = "not_challenging_enough"


class UserContext(BaseModel):
    """Who the challenger is talking to."""

    model_config = ConfigDict(frozen=True)

    name: str = "User"
    role: str = "Founder"


class OrgContext(BaseModel):
    """The user's organization.

    Unknown sizes are logged and treated as startup.
    """

    model_config = ConfigDict(frozen=True)

    name: str = "Your Company"
    size: OrgSize = OrgSize.STARTUP
    industry: Optional[str] = None

    @field_validator("size", mode="before")
    @classmethod
    def coerce_unknown_size(cls, v):
        if isinstance(v, OrgSize):
            return v
        normalized = str(v).strip().lower() if v is not None else ""
        if normalized not in {s.value for s in OrgSize}:
            log.warning("unknown_org_size", size=v, fallback=OrgSize.STARTUP.value)
            return OrgSize.STARTUP
        return normalized


class SessionSummary(BaseModel):
    """Point-in-time summary of a conversation session."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    persona: PersonaId
    phase: Phase
    intensity: float
    user_turns: int = Field(ge=0)
    challenger_turns: int = Field(ge=0)
    total_exchanges: int = Field(ge=0)
    challenges_issued: int = Field(ge=0)
    duration_seconds: float = Field(ge=0)
