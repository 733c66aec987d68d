"""
API request/response schemas.

Pydantic models for API validation and serialization.
"""

import base64
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from challenger.domain.models.document import Document
from challenger.domain.models.insights import Insights
from challenger.domain.models.persona import PersonaDefinition, PersonaId
from challenger.domain.models.phase import Phase
from challenger.domain.models.session import (
    IntensityFeedback,
    OrgContext,
    SessionSummary,
    UserContext,
)
from challenger.domain.models.challenge import TurnResult


# ============ PERSONA SCHEMAS ============


class PersonaResponse(BaseModel):
    """Public view of a persona."""

    id: PersonaId
    display_name: str
    avatar: str
    challenge_style: str
    document_type: str
    focus_areas: List[str]

    @classmethod
    def from_definition(cls, persona: PersonaDefinition) -> "PersonaResponse":
        return cls(
            id=persona.id,
            display_name=persona.display_name,
            avatar=persona.avatar,
            challenge_style=persona.challenge_style,
            document_type=persona.document_type,
            focus_areas=list(persona.focus_areas),
        )


class PersonaListResponse(BaseModel):
    personas: List[PersonaResponse]


# ============ SESSION SCHEMAS ============


class SessionCreate(BaseModel):
    """Request to start a challenge session."""

    persona: str = Field(..., description="Persona id (efficiency, moonshot, customer, investor)")
    user_context: UserContext = Field(default_factory=UserContext)
    org_context: OrgContext = Field(default_factory=OrgContext)
    document_type: Optional[str] = Field(
        default=None, description="Override the persona's default document type"
    )


class StartSessionResponse(BaseModel):
    """Response after starting a session."""

    session_id: str
    persona: PersonaId
    phase: Phase
    intensity: float
    document_type: str
    suggestions: List[str] = Field(default_factory=list)


# ============ TURN SCHEMAS ============


class TurnRequest(BaseModel):
    """Text utterance (3-2000 characters after sanitization)."""

    text: str


class VoiceTurnRequest(BaseModel):
    """Base64-encoded audio utterance."""

    audio_base64: str


class TurnResponse(BaseModel):
    """Challenger response to one user submission."""

    reply: str
    phase: Phase
    phase_changed: bool
    phase_message: Optional[str] = None
    intensity: float
    challenge_type: Optional[str] = None
    emotion: Optional[str] = None
    expression: Optional[str] = None
    pattern_id: Optional[str] = None
    user_text: Optional[str] = None
    degraded: bool = False
    degraded_services: List[str] = Field(default_factory=list)
    transition_hint: bool = False
    suggestions: List[str] = Field(default_factory=list)
    audio_base64: Optional[str] = None

    @classmethod
    def from_result(cls, result: TurnResult) -> "TurnResponse":
        challenge = result.challenge
        return cls(
            reply=result.reply,
            phase=result.phase,
            phase_changed=result.phase_changed,
            phase_message=result.phase_message,
            intensity=result.intensity,
            challenge_type=challenge.challenge_type if challenge else None,
            emotion=challenge.emotion if challenge else None,
            expression=challenge.expression if challenge else None,
            pattern_id=challenge.pattern_id if challenge else None,
            user_text=result.user_turn.content if result.user_turn else None,
            degraded=result.degraded,
            degraded_services=list(result.degraded_services),
            transition_hint=result.transition_hint,
            suggestions=list(result.suggestions),
            audio_base64=(
                base64.b64encode(result.audio).decode("ascii") if result.audio else None
            ),
        )


# ============ FEEDBACK SCHEMAS ============


class FeedbackRequest(BaseModel):
    feedback: IntensityFeedback


class FeedbackResponse(BaseModel):
    intensity: float


# ============ DOCUMENT SCHEMAS ============


class DocumentMetadataSchema(BaseModel):
    timestamp: datetime
    user_name: str
    company_name: str
    document_type: str
    persona: PersonaId
    word_count: int


class DocumentResponse(BaseModel):
    """Strategy document with the session summary and recommended actions."""

    title: str
    content: str
    sections: Dict[str, str]
    metadata: DocumentMetadataSchema
    insights: Insights
    summary: SessionSummary
    recommended_actions: List[str]

    @classmethod
    def build(
        cls,
        document: Document,
        summary: SessionSummary,
        recommended_actions: List[str],
    ) -> "DocumentResponse":
        return cls(
            title=document.title,
            content=document.content,
            sections=dict(document.sections),
            metadata=DocumentMetadataSchema(**document.metadata.model_dump()),
            insights=document.insights,
            summary=summary,
            recommended_actions=recommended_actions,
        )


# ============ ERROR SCHEMAS ============


class ErrorDetail(BaseModel):
    type: str
    message: str


class ErrorResponse(BaseModel):
    """Error body returned by every exception handler."""

    error: ErrorDetail
