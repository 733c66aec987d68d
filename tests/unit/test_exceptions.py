"""Tests for the exception hierarchy."""

import pytest

from challenger.core.exceptions import (
    ChallengerError,
    ConfigurationError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
    NoPatternsForPhaseError,
    PresenceError,
    ServiceDegradedError,
    ServiceError,
    SessionError,
    SessionNotFoundError,
    SessionNotStartedError,
    TranscriptionError,
    UnknownDocumentTemplateError,
    UnknownPersonaError,
    ValidationError,
)


@pytest.mark.parametrize(
    "exc_class",
    [
        ConfigurationError,
        UnknownPersonaError,
        UnknownDocumentTemplateError,
        NoPatternsForPhaseError,
        ValidationError,
        SessionNotStartedError,
        SessionNotFoundError,
        LLMTimeoutError,
        TranscriptionError,
        PresenceError,
    ],
)
def test_all_errors_are_challenger_errors(exc_class):
    err = exc_class("boom")
    assert isinstance(err, ChallengerError)
    assert err.message == "boom"
    assert str(err) == "boom"


def test_session_errors_share_base():
    assert issubclass(SessionNotStartedError, SessionError)
    assert issubclass(SessionNotFoundError, SessionError)


def test_collaborator_errors_are_service_errors():
    for exc_class in (LLMError, LLMTimeoutError, LLMRateLimitError, TranscriptionError, PresenceError):
        assert issubclass(exc_class, ServiceError)
    assert issubclass(LLMTimeoutError, LLMError)
    assert issubclass(LLMRateLimitError, LLMError)


def test_service_degraded_carries_service_name():
    err = ServiceDegradedError("completion", "LLM unavailable")
    assert err.service == "completion"
    assert err.message == "LLM unavailable"
    assert isinstance(err, ServiceError)


def test_catchable_as_base():
    with pytest.raises(ChallengerError):
        raise UnknownPersonaError("Unknown persona: 'pirate'")
