"""Health check endpoints for Smart Select API.

Provides endpoints for monitoring application health.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from pydantic import BaseModel

from smart_select import __version__
from smart_select.config import get_settings

router = APIRouter(tags=["Health"])


class HealthStatus(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    smart_select_enabled: bool
    timestamp: str


@router.get(
    "/health",
    response_model=HealthStatus,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns basic health status of the application.",
)
async def health_check() -> HealthStatus:
    """Check if the application is running.

    Returns:
        HealthStatus: Basic health information.
    """
    settings = get_settings()
    return HealthStatus(
        status="healthy",
        version=__version__,
        environment=settings.app.env,
        smart_select_enabled=settings.analysis.enabled,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
    description="Simple check to verify the application process is running.",
)
async def liveness_check() -> dict[str, str]:
    """Check if the application process is alive."""
    return {"status": "alive"}
