"""Domain models package."""

from .phase import Phase
from .persona import PersonaId, PersonaDefinition, StyleTransform
from .turn import ConversationTurn, Speaker
from .insights import Insights
from .document import Document, DocumentMetadata, DocumentTemplate
from .challenge import Challenge, CompletionReply, PresenceAck, TurnResult
from .session import (
    IntensityFeedback,
    OrgContext,
    OrgSize,
    SessionSummary,
    UserContext,
)

__all__ = [
    "Phase",
    "PersonaId",
    "PersonaDefinition",
    "StyleTransform",
    "ConversationTurn",
    "Speaker",
    "Insights",
    "Document",
    "DocumentMetadata",
    "DocumentTemplate",
    "Challenge",
    "CompletionReply",
    "PresenceAck",
    "TurnResult",
    "IntensityFeedback",
    "OrgContext",
    "OrgSize",
    "SessionSummary",
    "UserContext",
]
