"""
Health check endpoints.

Provides system health information for monitoring.
"""

from fastapi import APIRouter, HTTPException
import structlog

from challenger import __version__
from challenger.api.dependencies import (
    SessionRegistryDep,
    get_shared_persona_catalog,
    get_shared_template_catalog,
)
from challenger.core.config import settings
from challenger.core.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

router = APIRouter()


def check_catalogs_health() -> dict:
    """Load persona and template catalogs and report their status."""
    try:
        personas = get_shared_persona_catalog()
        templates = get_shared_template_catalog()
    except ConfigurationError as e:
        log.error("catalog_health_check_failed", error=e.message)
        return {"status": "unhealthy", "error": e.message}

    return {
        "status": "healthy",
        "personas": len(personas),
        "document_templates": len(templates.ids()),
    }


@router.get("/health")
async def health_check(registry: SessionRegistryDep):
    """
    Health check endpoint.

    Returns:
        System health status including catalog loading and live sessions.
    """
    catalogs = check_catalogs_health()

    return {
        "status": catalogs["status"],
        "version": __version__,
        "debug": settings.debug,
        "components": {
            "catalogs": catalogs,
            "completion": {"mode": settings.completion_mode},
            "voice": {"enabled": settings.voice_enabled},
            "sessions": {"active": len(registry)},
        },
    }


@router.get("/health/live")
async def liveness():
    """
    Kubernetes-style liveness probe.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness():
    """
    Kubernetes-style readiness probe.

    Returns 200 once the persona and template catalogs load.
    """
    if check_catalogs_health()["status"] != "healthy":
        raise HTTPException(status_code=503, detail="Catalogs not ready")

    return {"status": "ready"}
