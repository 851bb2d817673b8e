# ruff: noqa: PLW0603
"""Redis connection management.

Redis is optional: it only caches the ``total_estimated`` counts returned
with comment and reply listings. The API keeps serving without it.
"""

import redis.asyncio as redis

from videocomments.config import get_settings
from videocomments.core.logging import get_logger


logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


async def init_redis() -> redis.Redis:
    """Initialize the Redis connection pool and check it with a ping."""
    global _redis_client

    settings = get_settings()

    _redis_client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        decode_responses=True,
    )

    try:
        await _redis_client.ping()
        logger.info("redis_connected", url=settings.redis_url)
    except redis.RedisError as e:
        logger.warning("redis_connection_failed", error=str(e))
        _redis_client = None
        raise

    return _redis_client


async def shutdown_redis() -> None:
    """Close the Redis connection."""
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


def get_redis() -> redis.Redis | None:
    """Get the Redis client, or None when caching is disabled."""
    return _redis_client


def video_count_key(video_id: str) -> str:
    """Cache key for the estimated comment count of a video."""
    return f"comments:count:video:{video_id}"


def comment_count_key(comment_id: str) -> str:
    """Cache key for the estimated reply count of a comment."""
    return f"comments:count:comment:{comment_id}"
