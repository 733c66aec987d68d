"""Dependency injection for API routes."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
import structlog

from challenger.api.validation import validate_utterance
from challenger.core.config import challenge_config, settings
from challenger.core.persona_loader import PersonaCatalog, get_persona_catalog
from challenger.core.template_loader import DocumentTemplateCatalog, get_template_catalog
from challenger.services.completion_service import (
    LLMCompletionService,
    ScriptedCompletionService,
)
from challenger.services.conversation_session import ConversationSession
from challenger.services.document_synthesizer import DocumentSynthesizer
from challenger.services.presence_service import RecordingPresenceService
from challenger.services.protocols import ICompletionService, IVoiceService
from challenger.services.session_registry import SessionRegistry
from challenger.services.voice_service import ElevenLabsVoiceService, MockVoiceService

log = structlog.get_logger(__name__)


@lru_cache(maxsize=1)
def get_shared_persona_catalog() -> PersonaCatalog:
    """Persona catalog, loaded once per process."""
    return get_persona_catalog()


@lru_cache(maxsize=1)
def get_shared_template_catalog() -> DocumentTemplateCatalog:
    """Document template catalog, loaded once per process."""
    return get_template_catalog()


@lru_cache(maxsize=1)
def get_shared_completion_service() -> ICompletionService:
    """Completion service selected by settings.completion_mode.

    Raises:
        ConfigurationError: In llm mode when the provider API key is missing
    """
    if settings.completion_mode == "scripted":
        return ScriptedCompletionService()
    return LLMCompletionService()


def build_voice_service() -> IVoiceService:
    """ElevenLabs when an API key is configured, otherwise the offline mock.

    Built per session: MockVoiceService keeps a transcript cursor and a record
    of synthesized replies, and those must not be shared between sessions.
    """
    if settings.elevenlabs_api_key:
        return ElevenLabsVoiceService()
    log.debug("voice_service_mock", reason="ELEVENLABS_API_KEY not configured")
    return MockVoiceService()


def build_session() -> ConversationSession:
    """Unstarted session: shared catalogs and completion, its own voice and presence."""
    personas = get_shared_persona_catalog()
    return ConversationSession(
        personas=personas,
        synthesizer=DocumentSynthesizer(templates=get_shared_template_catalog()),
        completion=get_shared_completion_service(),
        voice=build_voice_service(),
        presence=RecordingPresenceService(),
        synthesize_speech=settings.voice_enabled,
        transcript_validator=validate_utterance,
    )


@lru_cache(maxsize=1)
def get_session_registry() -> SessionRegistry:
    """Process-wide registry of live sessions."""
    return SessionRegistry(
        session_factory=build_session,
        idle_timeout=challenge_config.session.idle_timeout_seconds,
    )


# Type aliases for dependency injection
PersonaCatalogDep = Annotated[PersonaCatalog, Depends(get_shared_persona_catalog)]
SessionRegistryDep = Annotated[SessionRegistry, Depends(get_session_registry)]
