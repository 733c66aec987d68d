"""
Global exception handlers for FastAPI.

Every error response has the body {"error": {"type": ..., "message": ...}}.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import structlog

from challenger.core.exceptions import (
    ChallengerError,
    ConfigurationError,
    SessionNotFoundError,
    SessionNotStartedError,
    UnknownDocumentTemplateError,
    UnknownPersonaError,
    ValidationError,
)

log = structlog.get_logger(__name__)


def _error_body(error_type: str, message: str) -> dict:
    return {"error": {"type": error_type, "message": message}}


def status_for(exc: ChallengerError) -> int:
    """HTTP status code for an application error."""
    if isinstance(exc, (UnknownPersonaError, UnknownDocumentTemplateError, ValidationError)):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, SessionNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, SessionNotStartedError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI):
    """Register exception handlers with the FastAPI application."""

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request,
        exc: ConfigurationError,
    ) -> JSONResponse:
        """Configuration errors are logged in full but not echoed to clients."""
        log.error(
            "configuration_error",
            path=request.url.path,
            message=exc.message,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("ConfigurationError", "Server configuration error"),
        )

    @app.exception_handler(ChallengerError)
    async def challenger_error_handler(
        request: Request,
        exc: ChallengerError,
    ) -> JSONResponse:
        status_code = status_for(exc)

        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).warning("request_error", message=exc.message, status_code=status_code)

        return JSONResponse(
            status_code=status_code,
            content=_error_body(type(exc).__name__, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Malformed request bodies are reported like ValidationError (400)."""
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in errors
        ) or "Invalid request"

        log.warning("request_validation_failed", path=request.url.path, message=message)

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("ValidationError", message),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle all unhandled exceptions with HTTP 500 status."""
        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).error("unhandled_exception", message=str(exc), exc_info=exc)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("InternalServerError", "An unexpected error occurred"),
        )
