"""
Session API routes.

Endpoints for starting challenge sessions, submitting utterances,
intensity feedback, document generation and ending sessions. Every
operation on an existing session runs under that session's lock.
"""

from fastapi import APIRouter, status
from fastapi.responses import Response
import structlog

from challenger.api.dependencies import SessionRegistryDep
from challenger.api.schemas import (
    DocumentResponse,
    FeedbackRequest,
    FeedbackResponse,
    SessionCreate,
    StartSessionResponse,
    TurnRequest,
    TurnResponse,
    VoiceTurnRequest,
)
from challenger.api.validation import decode_audio, validate_utterance
from challenger.core.logging import bind_context
from challenger.domain.models.session import SessionSummary
from challenger.llm.prompts.challenger import get_suggestions

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=StartSessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(
    request: SessionCreate, registry: SessionRegistryDep
) -> StartSessionResponse:
    """Start a challenge session with the requested persona."""
    session = registry.create(
        request.persona,
        user_context=request.user_context,
        org_context=request.org_context,
        document_type=request.document_type,
    )
    bind_context(session_id=session.id)

    return StartSessionResponse(
        session_id=session.id,
        persona=session.persona.id,
        phase=session.phase,
        intensity=session.intensity,
        document_type=session.document_type,
        suggestions=get_suggestions(session.phase),
    )


@router.get("/{session_id}", response_model=SessionSummary)
async def get_session(session_id: str, registry: SessionRegistryDep) -> SessionSummary:
    """Session summary: phase, intensity and turn counts."""
    bind_context(session_id=session_id)
    async with registry.locked(session_id) as session:
        return session.summary()


@router.post("/{session_id}/turns", response_model=TurnResponse)
async def submit_turn(
    session_id: str, request: TurnRequest, registry: SessionRegistryDep
) -> TurnResponse:
    """Submit a text utterance and get the challenger's reply."""
    bind_context(session_id=session_id)
    text = validate_utterance(request.text)

    async with registry.locked(session_id) as session:
        result = await session.submit_user_utterance(text)

    return TurnResponse.from_result(result)


@router.post("/{session_id}/voice", response_model=TurnResponse)
async def submit_voice_turn(
    session_id: str, request: VoiceTurnRequest, registry: SessionRegistryDep
) -> TurnResponse:
    """Submit base64 audio; it is transcribed and processed as a turn."""
    bind_context(session_id=session_id)
    audio = decode_audio(request.audio_base64)

    async with registry.locked(session_id) as session:
        result = await session.submit_voice_utterance(audio)

    return TurnResponse.from_result(result)


@router.post("/{session_id}/feedback", response_model=FeedbackResponse)
async def submit_feedback(
    session_id: str, request: FeedbackRequest, registry: SessionRegistryDep
) -> FeedbackResponse:
    """Adjust challenge intensity (too_intense / not_challenging_enough)."""
    bind_context(session_id=session_id)
    async with registry.locked(session_id) as session:
        intensity = session.adjust_intensity(request.feedback)

    return FeedbackResponse(intensity=intensity)


@router.post("/{session_id}/document", response_model=DocumentResponse)
async def request_document(
    session_id: str, registry: SessionRegistryDep
) -> DocumentResponse:
    """Generate the strategy document from the conversation so far."""
    bind_context(session_id=session_id)
    async with registry.locked(session_id) as session:
        document = session.request_document()
        summary = session.summary()
        actions = session.recommended_actions()

    return DocumentResponse.build(document, summary, actions)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def end_session(session_id: str, registry: SessionRegistryDep) -> Response:
    """End a session. Ending an unknown or already-ended session is a no-op."""
    bind_context(session_id=session_id)
    ended = await registry.end(session_id)
    if not ended:
        log.info("session_end_noop", session_id=session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
