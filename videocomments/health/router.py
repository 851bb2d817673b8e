"""Health check endpoints."""

from fastapi import APIRouter

from videocomments.config import get_settings
from videocomments.core.database import AsyncCassandraConnection
from videocomments.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness() -> dict[str, str | bool]:
    """Readiness probe - reports whether the comment store is reachable."""
    settings = get_settings()
    cassandra_connected = AsyncCassandraConnection.is_connected()
    return {
        "status": "ready" if cassandra_connected else "degraded",
        "environment": settings.environment,
        "cassandra": cassandra_connected,
        "redis": get_redis() is not None,
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
