"""Run lease: keeps two app instances from running the same scheduler tick.

The lease is a Redis key set with NX and a TTL. Only the owner may release
it; an owner that crashes loses the lease when the TTL runs out.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import redis.asyncio as redis
import structlog

logger = structlog.get_logger(__name__)


class RunLease:
    """Distributed single-holder lease backed by Redis."""

    LEASE_PREFIX = "showops:lease:"
    DEFAULT_TTL = 600  # 10 minutes

    def __init__(self, redis_client: redis.Redis, name: str, ttl: int | None = None):
        self.redis = redis_client
        self.name = name
        self.ttl = ttl or self.DEFAULT_TTL

    @property
    def key(self) -> str:
        return f"{self.LEASE_PREFIX}{self.name}"

    async def acquire(self, owner: str) -> bool:
        """Take the lease for ``owner``.

        Returns:
            True if acquired (or already held by this owner), False otherwise
        """
        value = f"{owner}|{datetime.now(UTC).isoformat()}"
        if await self.redis.set(self.key, value, nx=True, ex=self.ttl):
            return True

        current = await self.redis.get(self.key)
        if current and current.split("|", 1)[0] == owner:
            await self.redis.expire(self.key, self.ttl)
            return True

        return False

    async def release(self, owner: str) -> bool:
        """Release the lease if ``owner`` holds it."""
        current = await self.redis.get(self.key)
        if current and current.split("|", 1)[0] == owner:
            await self.redis.delete(self.key)
            return True
        return False

    async def holder(self) -> str | None:
        current = await self.redis.get(self.key)
        if not current:
            return None
        return current.split("|", 1)[0]

    @asynccontextmanager
    async def hold(self, owner: str) -> AsyncGenerator[bool, None]:
        """Context manager yielding whether the lease was acquired.

        Example:
            async with lease.hold(run_id) as acquired:
                if acquired:
                    ...
        """
        acquired = False
        try:
            acquired = await self.acquire(owner)
            if not acquired:
                logger.info("run_lease_busy", lease=self.name, owner=owner)
            yield acquired
        finally:
            if acquired:
                await self.release(owner)
