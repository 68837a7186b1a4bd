"""Liveness and readiness probes."""

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from ezhealth.config import settings
from ezhealth.core.redis_client import check_redis_connection
from ezhealth.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str
    version: str
    environment: str


class ReadinessResponse(HealthResponse):
    """Readiness payload with one entry per backing service."""

    database: str
    redis: str


def _state(ok: bool) -> str:
    return "healthy" if ok else "unhealthy"


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    """The process is up and serving requests."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ReadinessResponse}},
)
async def detailed_health_check(request: Request, response: Response) -> ReadinessResponse:
    """
    Probe the database and Redis held by the application lifespan.

    Answers 503 while the database is unreachable. Redis only backs the
    doctor directory cache, so losing it degrades the service without
    taking it out of rotation.
    """
    db_ok = await check_database_connection(getattr(request.app.state, "engine", None))
    redis_ok = check_redis_connection(getattr(request.app.state, "redis", None))

    if not db_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status="healthy" if db_ok and redis_ok else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database=_state(db_ok),
        redis=_state(redis_ok),
    )


@router.get("/ping", summary="Simple ping")
async def ping() -> dict[str, str]:
    """Answer with pong."""
    return {"message": "pong"}
