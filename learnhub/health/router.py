"""Liveness, readiness and general health probes."""

from fastapi import APIRouter, Request, Response, status

from learnhub.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """The process is up."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request, response: Response) -> dict[str, str | bool]:
    """Ready when the database session is open (or the database is disabled)."""
    settings = get_settings()
    session = getattr(request.app.state, "cassandra_session", None)
    database_ok = not settings.cassandra_enabled or session is not None

    if not database_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "ready" if database_ok else "unavailable",
        "database": database_ok,
        "environment": settings.environment,
    }


@router.get("")
async def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
