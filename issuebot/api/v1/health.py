"""
Health check endpoints.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends

from issuebot.api.deps import ServiceContainer, get_container, get_settings_dep
from issuebot.core.config import Settings
from issuebot.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings_dep)) -> dict[str, Any]:
    """
    Basic health check endpoint.
    Returns application status.
    """
    return {
        "status": "healthy",
        "app": settings.app_name,
        "environment": settings.app_env,
        "timestamp": _timestamp(),
    }


@router.get("/health/ready")
async def readiness_check(container: ServiceContainer = Depends(get_container)) -> dict[str, Any]:
    """
    Readiness check endpoint.
    Reports whether the dispatcher is up and how much work it holds.
    """
    dispatcher = container.dispatcher
    checks = {
        "app": True,
        "dispatcher": len(dispatcher.registry) > 0,
    }

    all_healthy = all(checks.values())

    return {
        "status": "ready" if all_healthy else "not_ready",
        "checks": checks,
        "active_tasks": dispatcher.active_count,
        "timestamp": _timestamp(),
    }


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Liveness check endpoint.
    Simple check that the application is running.
    """
    return {"status": "alive"}
