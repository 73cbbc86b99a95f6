"""Optional Redis client used for the refresh-token blacklist and rate limits.

Redis is never required: every caller treats ``None`` from :func:`get_redis`
as "not available" and falls back to the database.
"""

from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.portal.core.config import get_settings
from src.portal.core.logging import get_logger

logger = get_logger(__name__)

_client: Redis | None = None
_unavailable: bool = False


async def get_redis() -> Redis | None:
    """Return the shared Redis client, connecting lazily on first use.

    A failed connection is remembered until :func:`close_redis` so requests do
    not pay for a reconnect attempt each time.
    """
    global _client, _unavailable

    if _client is not None:
        return _client
    if _unavailable:
        return None

    settings = get_settings()
    if not settings.redis_url:
        _unavailable = True
        logger.info("Redis not configured, token blacklist disabled")
        return None

    client = Redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_pool_size,
        decode_responses=True,
    )
    try:
        await client.ping()  # type: ignore[misc]
    except (RedisError, OSError) as e:
        _unavailable = True
        logger.warning("Redis unavailable, continuing without it", error=str(e))
        await client.aclose()
        return None

    logger.info("Redis connected")
    _client = client
    return _client


async def close_redis() -> None:
    """Close the Redis client. Called during application shutdown."""
    global _client, _unavailable
    if _client is not None:
        await _client.aclose()
        logger.info("Redis connection closed")
    _client = None
    _unavailable = False


def reset_redis_state() -> None:
    """Forget the client and any failed attempt. For tests."""
    global _client, _unavailable
    _client = None
    _unavailable = False
