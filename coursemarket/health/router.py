"""Health check endpoints."""

from fastapi import APIRouter, Request

from coursemarket.config import get_settings
from coursemarket.core.database import AsyncCassandraConnection


router = APIRouter(prefix="/health", tags=["health"])

REQUIRED_SERVICES = (
    "curriculum_service",
    "enrollment_service",
    "progress_service",
    "certificate_service",
)


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - the process is up."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - every service got wired during startup."""
    settings = get_settings()
    services_ready = all(
        getattr(request.app.state, name, None) is not None
        for name in REQUIRED_SERVICES
    )
    return {
        "status": "ready" if services_ready else "degraded",
        "services_ready": services_ready,
        "database_connected": AsyncCassandraConnection.is_connected(),
        "environment": settings.environment,
        "debug": settings.debug,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
