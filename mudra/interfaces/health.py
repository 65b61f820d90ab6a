"""
Health check router.

Provides a simple health endpoint for liveness and readiness checks.
No business logic. Returns application status, version and uptime.
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter

from mudra.core.config import settings
from mudra.interfaces.paper_trading.schemas import HealthResponse

router = APIRouter(tags=["health"])

_STARTED_AT = time.monotonic()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status, version and uptime.",
)
def health_check() -> HealthResponse:
    """Return current application health status."""
    return HealthResponse(
        status="ok",
        version=settings.version,
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=round(time.monotonic() - _STARTED_AT, 3),
    )
