"""
FastAPI application entry point.

Run with: uvicorn challenger.main:app --reload
"""

from contextlib import asynccontextmanager
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from challenger import __version__
from challenger.core.config import settings
from challenger.core.exceptions import ConfigurationError
from challenger.core.logging import configure_logging, get_logger, bind_context, clear_context
from challenger.api.dependencies import (
    get_session_registry,
    get_shared_persona_catalog,
    get_shared_template_catalog,
)
from challenger.api.routes import health, personas, sessions
from challenger.api.exception_handlers import setup_exception_handlers

# Configure logging before anything else
configure_logging()
log = get_logger(__name__)


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique correlation ID to each request.

    - Reuses an incoming X-Request-ID header, or generates a UUID4
    - Binds it to structlog context for all logs in that request
    - Adds X-Request-ID header to responses
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        bind_context(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()


def validate_configuration() -> list[str]:
    """
    Check settings that would otherwise fail on the first session.

    Returns:
        List of problems (logged as warnings; the app still starts so health
        endpoints can report them)
    """
    problems = []

    if settings.completion_mode == "llm":
        key_attr = f"{settings.llm_provider}_api_key"
        if not getattr(settings, key_attr, None):
            problems.append(
                f"{key_attr.upper()} is required for completion_mode=llm "
                f"(provider {settings.llm_provider})"
            )

    if settings.voice_enabled and not settings.elevenlabs_api_key:
        problems.append("voice_enabled is set but ELEVENLABS_API_KEY is missing; using mock voice")

    try:
        get_shared_persona_catalog()
        get_shared_template_catalog()
    except ConfigurationError as e:
        problems.append(e.message)

    for problem in problems:
        log.warning("configuration_problem", problem=problem)

    return problems


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    log.info(
        "application_starting",
        debug=settings.debug,
        completion_mode=settings.completion_mode,
        llm_provider=settings.llm_provider,
        voice_enabled=settings.voice_enabled,
    )

    validate_configuration()

    log.info("application_started")

    yield

    log.info("application_shutting_down")
    await get_session_registry().clear()


# Create FastAPI application
app = FastAPI(
    title="Strategic Challenger",
    description="Persona-driven strategic challenge sessions with strategy document synthesis",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware for development
if settings.debug:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(CorrelationIDMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, tags=["system"])
app.include_router(personas.router)
app.include_router(sessions.router)


@app.get("/")
async def root():
    """Root endpoint with basic info."""
    return {"name": "Strategic Challenger", "version": __version__, "status": "running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "challenger.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
