"""Cache layer tests with a mocked Redis client."""

import asyncio
import datetime
import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from shortlink.cache import LinkCache, cache_ttl_for
from shortlink.errors import CacheUnavailable
from shortlink.schemas import CachedLink

NOW = datetime.datetime(2025, 1, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


def test_ttl_without_expiry_uses_default() -> None:
    assert cache_ttl_for(None, 604800, NOW) == 604800


def test_ttl_is_remaining_seconds_until_expiry() -> None:
    expires_at = NOW + datetime.timedelta(days=7)
    assert cache_ttl_for(expires_at, 60, NOW) == 7 * 24 * 60 * 60


def test_ttl_never_below_one_second() -> None:
    assert cache_ttl_for(NOW + datetime.timedelta(milliseconds=400), 60, NOW) == 1
    assert cache_ttl_for(NOW - datetime.timedelta(hours=1), 60, NOW) == 1


def test_key_uses_prefix(cache: LinkCache) -> None:
    assert cache.key("AbC123") == "link:AbC123"


@pytest.mark.asyncio
async def test_set_then_get(cache: LinkCache, redis_client: AsyncMock) -> None:
    entry = CachedLink(id="1", target_url="https://example.com/", expires_at=NOW)

    await cache.set("AbC123", entry, 3600)
    cached = await cache.get("AbC123")

    assert cached == entry
    redis_client.setex.assert_called_once()
    assert redis_client.ttls["link:AbC123"] == 3600
    stored = json.loads(redis_client.data["link:AbC123"])
    assert stored["target_url"] == "https://example.com/"
    assert "clicks" not in stored


@pytest.mark.asyncio
async def test_get_miss(cache: LinkCache, redis_client: AsyncMock) -> None:
    assert await cache.get("nothere") is None
    redis_client.get.assert_called_once_with("link:nothere")


@pytest.mark.asyncio
async def test_get_unreadable_entry_is_a_miss(cache: LinkCache, redis_client: AsyncMock) -> None:
    redis_client.data["link:AbC123"] = "not json"

    assert await cache.get("AbC123") is None


@pytest.mark.asyncio
async def test_redis_error_raises_cache_unavailable(cache: LinkCache, redis_client: AsyncMock) -> None:
    redis_client.get.side_effect = RedisConnectionError("connection refused")
    redis_client.setex.side_effect = RedisConnectionError("connection refused")

    with pytest.raises(CacheUnavailable):
        await cache.get("AbC123")
    with pytest.raises(CacheUnavailable):
        await cache.set("AbC123", CachedLink(id="1", target_url="https://example.com/"), 60)


@pytest.mark.asyncio
async def test_timeout_raises_cache_unavailable(redis_client: AsyncMock) -> None:
    async def slow_get(key: str) -> str:
        await asyncio.sleep(1)
        return "{}"

    redis_client.get.side_effect = slow_get
    cache = LinkCache(redis_client, timeout=0.02)

    with pytest.raises(CacheUnavailable, match="timed out"):
        await cache.get("AbC123")
