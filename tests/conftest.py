"""
Shared test fixtures.

Catalogs are loaded from the real config/ directory; sessions are built with
a seeded random.Random and a fixed clock so every run is reproducible.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from challenger.api.validation import validate_utterance
from challenger.core.config import PROJECT_ROOT, ChallengeConfig
from challenger.core.persona_loader import PersonaCatalog
from challenger.core.template_loader import DocumentTemplateCatalog
from challenger.services.challenge_generator import ChallengeGenerator
from challenger.services.completion_service import ScriptedCompletionService
from challenger.services.conversation_session import ConversationSession
from challenger.services.document_synthesizer import DocumentSynthesizer
from challenger.services.phase_policy import PhaseTransitionPolicy
from challenger.services.presence_service import RecordingPresenceService
from challenger.services.session_registry import SessionRegistry
from challenger.services.voice_service import MockVoiceService

CONFIG_DIR = PROJECT_ROOT / "config"
FIXED_NOW = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture(scope="session")
def personas():
    """Persona catalog loaded from config/personas/."""
    return PersonaCatalog.from_directory(CONFIG_DIR / "personas")


@pytest.fixture(scope="session")
def templates():
    """Document template catalog loaded from config/documents.yaml."""
    return DocumentTemplateCatalog.from_file(CONFIG_DIR / "documents.yaml")


@pytest.fixture
def config():
    return ChallengeConfig()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def generator(config, rng):
    return ChallengeGenerator(
        policy=PhaseTransitionPolicy(config.phases),
        rng=rng,
        intensity_config=config.intensity,
    )


@pytest.fixture
def synthesizer(templates, clock):
    return DocumentSynthesizer(templates=templates, clock=clock)


@pytest.fixture
def make_session(personas, synthesizer, config, clock, rng):
    """Factory for sessions; pass collaborators as keyword arguments."""

    def _make(**kwargs) -> ConversationSession:
        kwargs.setdefault(
            "generator",
            ChallengeGenerator(
                policy=PhaseTransitionPolicy(config.phases),
                rng=rng,
                intensity_config=config.intensity,
            ),
        )
        return ConversationSession(
            personas=personas,
            synthesizer=synthesizer,
            config=config,
            clock=clock,
            **kwargs,
        )

    return _make


@pytest.fixture
def session(make_session):
    """Unstarted session without external collaborators."""
    return make_session()


@pytest.fixture
def session_factory(personas, templates):
    """Builds unstarted sessions with the offline collaborators."""

    def factory() -> ConversationSession:
        return ConversationSession(
            personas=personas,
            synthesizer=DocumentSynthesizer(templates=templates),
            completion=ScriptedCompletionService(),
            voice=MockVoiceService(),
            presence=RecordingPresenceService(),
            transcript_validator=validate_utterance,
            config=ChallengeConfig(),
        )

    return factory


@pytest.fixture
def registry(session_factory):
    """Registry whose sessions use the offline collaborators."""
    return SessionRegistry(session_factory=session_factory)


@pytest.fixture
def app(registry):
    """FastAPI app with the session registry overridden."""
    from challenger.api.dependencies import get_session_registry
    from challenger.main import app as fastapi_app

    fastapi_app.dependency_overrides[get_session_registry] = lambda: registry
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
