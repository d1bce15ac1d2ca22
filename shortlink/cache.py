"""Cache layer for the redirect hot path.

Redis holds ``link:<code>`` → CachedLink JSON with a TTL. The cache never
populates itself; the redirect resolver writes an entry after a store hit.
There is no invalidation: an entry lives until its TTL, and the TTL never
extends past the link's own expiry.

Every call is bounded by a short timeout. Timeouts and Redis failures are
raised as CacheUnavailable so callers can fall back to the store.
"""

import asyncio
import datetime
import math
from collections.abc import Awaitable
from typing import TypeVar

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from shortlink.errors import CacheUnavailable
from shortlink.log import get_logger
from shortlink.metrics import CACHE_ERRORS_TOTAL
from shortlink.models import utcnow
from shortlink.schemas import CachedLink

__all__ = ["LinkCache", "cache_ttl_for", "create_redis"]

T = TypeVar("T")

logger = get_logger("cache")


def create_redis(url: str) -> redis.Redis:
    return redis.from_url(url, encoding="utf-8", decode_responses=True)


def cache_ttl_for(
    expires_at: datetime.datetime | None,
    default_ttl: int,
    now: datetime.datetime | None = None,
) -> int:
    """Seconds an entry may live: until the link expires, at least one."""
    if expires_at is None:
        return default_ttl
    remaining = (expires_at - (now or utcnow())).total_seconds()
    return max(1, math.floor(remaining))


class LinkCache:
    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "link",
        timeout: float = 0.25,
    ) -> None:
        self._client = client
        self._key_prefix = key_prefix
        self._timeout = timeout

    def key(self, short_code: str) -> str:
        return f"{self._key_prefix}:{short_code}"

    async def get(self, short_code: str) -> CachedLink | None:
        raw = await self._call("get", self._client.get(self.key(short_code)))
        if raw is None:
            return None
        try:
            return CachedLink.model_validate_json(raw)
        except ValidationError as exc:
            # Unreadable entries behave like a miss and get overwritten on repopulation.
            logger.warning(f"Cache deserialization error for {short_code}: {exc}")
            return None

    async def set(self, short_code: str, entry: CachedLink, ttl_seconds: int) -> None:
        assert ttl_seconds >= 1, f"ttl_seconds must be at least 1, got {ttl_seconds!r}"
        await self._call("set", self._client.setex(self.key(short_code), ttl_seconds, entry.model_dump_json()))

    async def ping(self) -> None:
        await self._call("ping", self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except TimeoutError as exc:
            CACHE_ERRORS_TOTAL.labels(operation=operation).inc()
            raise CacheUnavailable(f"cache {operation} timed out after {self._timeout}s") from exc
        except (RedisError, OSError) as exc:
            CACHE_ERRORS_TOTAL.labels(operation=operation).inc()
            raise CacheUnavailable(f"cache {operation} failed: {exc}") from exc
