"""Tests for API dependency wiring."""

import pytest

from challenger.api.dependencies import build_session, get_shared_completion_service
from challenger.api.validation import validate_utterance
from challenger.core.config import settings
from challenger.services.completion_service import ScriptedCompletionService
from challenger.services.voice_service import MockVoiceService


@pytest.fixture
def offline_settings(monkeypatch):
    monkeypatch.setattr(settings, "completion_mode", "scripted")
    monkeypatch.setattr(settings, "elevenlabs_api_key", None)
    monkeypatch.setattr(settings, "voice_enabled", True)
    get_shared_completion_service.cache_clear()
    yield settings
    get_shared_completion_service.cache_clear()


def test_build_session_wiring(offline_settings):
    session = build_session()

    assert isinstance(session.completion, ScriptedCompletionService)
    assert isinstance(session.voice, MockVoiceService)
    assert session.synthesize_speech is True
    assert session.transcript_validator is validate_utterance


async def test_sessions_do_not_share_voice_state(offline_settings):
    first, second = build_session(), build_session()
    first.start("efficiency")
    second.start("moonshot")

    assert first.voice is not second.voice
    assert first.completion is second.completion

    for _ in range(3):
        await first.submit_user_utterance("Our meeting schedule is a mess")
    await second.submit_voice_utterance(b"\x00\x01")

    assert len(first.voice.synthesized) == 3
    assert second.voice.synthesized == [
        {"text": second.history[1].content, "emotion": "inspiring"}
    ]
    assert first.voice._next == 0
    assert second.voice._next == 1
