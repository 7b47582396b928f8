"""Redis client for the scheduler run lease.

Only initialized when ``scheduler_use_lease`` is on; everything else in the
engine works without Redis.
"""

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from showops.core.config import get_settings

logger = structlog.get_logger(__name__)

_redis: redis.Redis | None = None


async def init_redis(url: str | None = None) -> None:
    """Connect and ping. Raises RedisError when the server is unreachable."""
    global _redis

    if _redis is not None:
        return

    client = redis.from_url(url or get_settings().redis_url, encoding="utf-8", decode_responses=True)
    await client.ping()
    _redis = client


async def close_redis() -> None:
    global _redis

    if _redis is None:
        return
    await _redis.aclose()
    _redis = None


def get_redis() -> redis.Redis:
    """Raises RuntimeError if init_redis() has not been called."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


def redis_initialized() -> bool:
    return _redis is not None


async def redis_reachable() -> bool:
    """Ping the shared client; False when uninitialized or the ping fails."""
    if _redis is None:
        return False
    try:
        return bool(await _redis.ping())
    except RedisError as exc:
        logger.warning("redis_ping_failed", error=str(exc))
        return False
