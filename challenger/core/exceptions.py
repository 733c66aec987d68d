"""
Custom exception hierarchy for the challenger engine.

All application exceptions inherit from ChallengerError.
"""


class ChallengerError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ChallengerError):
    """Invalid or missing configuration."""

    pass


class UnknownPersonaError(ChallengerError):
    """Persona id is not in the persona catalog."""

    pass


class UnknownDocumentTemplateError(ChallengerError):
    """No document template exists for the requested document type."""

    pass


class NoPatternsForPhaseError(ChallengerError):
    """Persona defines no challenge patterns for the requested phase.

    Callers fall back to a generic, persona-agnostic challenge.
    """

    pass


class ValidationError(ChallengerError):
    """Input validation failed."""

    pass


# =============================================================================
# Session Errors
# =============================================================================


class SessionError(ChallengerError):
    """Session-related error."""

    pass


class SessionNotStartedError(SessionError):
    """Operation requires a started session."""

    pass


class SessionNotFoundError(SessionError):
    """Session does not exist."""

    pass


# =============================================================================
# Collaborator Errors
# =============================================================================


class ServiceError(ChallengerError):
    """Base for external collaborator failures (completion, voice, presence)."""

    pass


class LLMError(ServiceError):
    """Base for LLM-related errors."""

    pass


class LLMTimeoutError(LLMError):
    """LLM call timed out."""

    pass


class LLMRateLimitError(LLMError):
    """LLM rate limit exceeded."""

    pass


class TranscriptionError(ServiceError):
    """Speech-to-text or text-to-speech conversion failed."""

    pass


class PresenceError(ServiceError):
    """Avatar delivery failed."""

    pass


class ServiceDegradedError(ServiceError):
    """A collaborator failed and fallback content was used.

    Never aborts a session; turn results carry the same information as a
    status flag.
    """

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(message)
