"""Health check endpoints for liveness and readiness probes."""

from fastapi import APIRouter

from app.api.v1.dependencies import ServicesDep
from app.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Startup has not finished"}},
)
def readiness_check(services: ServicesDep) -> ReadinessResponse:
    """Return 200 with the active backends once startup wiring is complete."""
    settings = services.settings
    return ReadinessResponse(
        database_backend=settings.database_backend,
        storage_backend=settings.storage_backend,
        scanner_backend=settings.scanner_backend,
        job_queue="redis" if settings.redis_enabled else "memory",
        workers_running=services.scheduler.running,
    )
