"""Health check endpoints.

Provides health status for container probes and monitoring.
Only the readiness probe touches the database.
"""

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from shelfmark import __version__
from shelfmark.api.deps import DbSession
from shelfmark.config import settings
from shelfmark.infra.logging import get_logger
from shelfmark.schemas.common import HealthResponse

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Basic health check.

    Returns 200 if service is running.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={},
    )


@router.get("/health/ready", response_model=HealthResponse)
async def health_ready(session: DbSession, response: Response) -> HealthResponse:
    """Readiness check.

    Verifies the database answers a trivial query. Returns 503 when it
    does not, so the instance is taken out of rotation.
    """
    checks: dict[str, bool] = {}

    try:
        await session.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.warning("Database health check failed", error=str(e))
        checks["database"] = False

    all_healthy = all(checks.values())
    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        version=__version__,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """Liveness check.

    Basic check that service is responding.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={"alive": True},
    )
