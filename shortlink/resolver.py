"""Redirect resolver: answer "where does this code go" on the hot path.

Flow Diagram — resolve()
========================
::
    ┌─────────────┐
    │ cache.get   │── CacheUnavailable ──┐ (treated as miss)
    └──────┬──────┘                      │
    HIT?  │                              │
    ┌─────┴─────────────┐                │
    │ YES               │ NO ◄───────────┘
    ▼                   ▼
┌──────────┐      ┌─────────────┐
│ expired? │      │ store.find_ │── StoreError → propagate (500)
│ → GONE   │      │ by_code     │
│ else     │      └──────┬──────┘
│ increment│       None? │ expired? │ valid
│ REDIRECT │        404  │   410    │
└──────────┘             ▼          ▼
                        ┌──────────────────┐
                        │ defer: populate  │
                        │ cache, increment │
                        │ → REDIRECT       │
                        └──────────────────┘

Key Behaviours
===============
- The only awaited calls are the cache lookup and, on a miss, the store
  lookup. Cache population and click increments go to the background runner.
- Cache entries carry the link's expiry, so an expired link is GONE even if
  its entry is still cached.
- NOT_FOUND and GONE never schedule an increment or a cache write.
"""

import time
from dataclasses import dataclass

from shortlink.background import BackgroundTaskRunner
from shortlink.cache import LinkCache, cache_ttl_for
from shortlink.enums import CacheStatus, RedirectOutcome
from shortlink.errors import CacheUnavailable
from shortlink.log import get_logger
from shortlink.metrics import REDIRECT_REQUESTS_TOTAL, REDIRECT_RESOLVE_DURATION
from shortlink.models import utcnow
from shortlink.schemas import CachedLink
from shortlink.store import LinkStore

__all__ = ["Resolution", "RedirectResolver"]

logger = get_logger("resolver")


@dataclass(frozen=True)
class Resolution:
    outcome: RedirectOutcome
    target_url: str | None = None
    cache_status: CacheStatus = CacheStatus.MISS


class RedirectResolver:
    def __init__(
        self,
        cache: LinkCache,
        store: LinkStore,
        runner: BackgroundTaskRunner,
        default_cache_ttl: int = 7 * 24 * 60 * 60,
    ) -> None:
        self._cache = cache
        self._store = store
        self._runner = runner
        self._default_cache_ttl = default_cache_ttl

    async def resolve(self, short_code: str) -> Resolution:
        """Resolve a short code; raises StoreError if the store lookup fails."""
        start_time = time.perf_counter()
        resolution = await self._resolve(short_code)
        REDIRECT_RESOLVE_DURATION.observe(time.perf_counter() - start_time)
        REDIRECT_REQUESTS_TOTAL.labels(outcome=resolution.outcome, cache_hit=resolution.cache_status).inc()
        return resolution

    async def _resolve(self, short_code: str) -> Resolution:
        now = utcnow()

        cached = await self._lookup_cache(short_code)
        if cached is not None:
            if cached.expires_at is not None and cached.expires_at < now:
                logger.debug(f"Cached link expired: {short_code}")
                return Resolution(RedirectOutcome.GONE, cache_status=CacheStatus.HIT)
            self._runner.submit("increment", self._store.increment_clicks, cached.id)
            return Resolution(RedirectOutcome.REDIRECT, cached.target_url, CacheStatus.HIT)

        link = await self._store.find_by_code(short_code)
        if link is None:
            return Resolution(RedirectOutcome.NOT_FOUND)
        if link.is_expired(now):
            return Resolution(RedirectOutcome.GONE)

        entry = CachedLink.model_validate(link)
        ttl = cache_ttl_for(link.expires_at, self._default_cache_ttl, now)
        self._runner.submit("cache_populate", self._cache.set, short_code, entry, ttl)
        self._runner.submit("increment", self._store.increment_clicks, link.id)
        return Resolution(RedirectOutcome.REDIRECT, link.target_url, CacheStatus.MISS)

    async def _lookup_cache(self, short_code: str) -> CachedLink | None:
        try:
            return await self._cache.get(short_code)
        except CacheUnavailable as exc:
            logger.warning(f"Cache unavailable for {short_code}, falling back to store: {exc}")
            return None
