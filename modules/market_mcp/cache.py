"""Cache facade used by tool handlers for memoized reads.

Lookups are best-effort: a miss, an unavailable backend and a backend error
all look the same to the caller (``None``). Nothing here coordinates
concurrent misses, so two requests missing on the same key may both reach
the upstream provider.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

import structlog

from shared.config import CACHE_MODE_NONE, CACHE_MODE_REDIS, Settings

logger = structlog.get_logger()

DEFAULT_TTL = 300       # 5 minutes
DEFAULT_MAX_ENTRIES = 1000


@runtime_checkable
class Cache(Protocol):
    """Key/value cache with per-entry TTL."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None: ...


class NullCache:
    """Cache that never stores anything (CACHE_MODE=none)."""

    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        return None


@dataclass(slots=True)
class CacheEntry:
    value: Any
    expires_at: float

    @property
    def expired(self) -> bool:
        return time.monotonic() > self.expires_at


class MemoryCache:
    """In-process TTL cache with a capacity bound.

    Reads and writes never await, so they are atomic with respect to other
    coroutines on the event loop.
    """

    def __init__(self, default_ttl: int = DEFAULT_TTL, max_entries: int = DEFAULT_MAX_ENTRIES):
        self._entries: dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._max_entries = max_entries

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired:
            del self._entries[key]
            return None
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        if ttl <= 0:
            # Already expired; drop any previous value instead of storing.
            self._entries.pop(key, None)
            return
        if key not in self._entries and len(self._entries) >= self._max_entries:
            self._evict()
        self._entries[key] = CacheEntry(value=value, expires_at=time.monotonic() + ttl)

    def _evict(self) -> None:
        """Drop expired entries, then the soonest-expiring quarter if still full."""
        for key in [k for k, v in self._entries.items() if v.expired]:
            del self._entries[key]

        if len(self._entries) >= self._max_entries:
            oldest = sorted(self._entries, key=lambda k: self._entries[k].expires_at)
            for key in oldest[: max(1, self._max_entries // 4)]:
                del self._entries[key]

    @property
    def size(self) -> int:
        return len(self._entries)


class RedisCache:
    """Redis-backed cache with graceful fallback when Redis is unavailable."""

    def __init__(self, redis_client=None, prefix: str = "mcp", default_ttl: int = DEFAULT_TTL):
        self._redis = redis_client
        self._prefix = prefix
        self._default_ttl = default_ttl

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}" if self._prefix else key

    async def get(self, key: str) -> Any | None:
        """Retrieve cached data, or None if miss/unavailable."""
        if self._redis is None:
            return None

        full_key = self._key(key)
        try:
            raw = await self._redis.get(full_key)
            if raw is None:
                return None
            return json.loads(raw)
        except Exception as e:
            logger.warning("cache_get_error", key=full_key, error=str(e))
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store data with a TTL. Silently fails if Redis is unavailable."""
        if self._redis is None:
            return

        full_key = self._key(key)
        ttl = self._default_ttl if ttl is None else ttl
        try:
            if ttl <= 0:
                await self._redis.delete(full_key)
                return
            await self._redis.set(full_key, json.dumps(value, default=str), ex=ttl)
            logger.debug("cache_set", key=full_key, ttl=ttl)
        except Exception as e:
            logger.warning("cache_set_error", key=full_key, error=str(e))


def build_cache(settings: Settings, redis_client=None) -> Cache:
    """Select the cache backend configured by ``CACHE_MODE``."""
    mode = settings.resolved_cache_mode
    if mode != settings.cache_mode.strip().lower():
        logger.warning("unknown_cache_mode", cache_mode=settings.cache_mode, using=mode)

    if mode == CACHE_MODE_NONE:
        return NullCache()
    if mode == CACHE_MODE_REDIS:
        if redis_client is None:
            logger.warning("cache_disabled_redis_unavailable")
            return NullCache()
        return RedisCache(redis_client, prefix=settings.cache_key_prefix, default_ttl=settings.cache_ttl)
    return MemoryCache(default_ttl=settings.cache_ttl, max_entries=settings.cache_max_entries)


async def cached(
    cache: Cache,
    key: str,
    loader: Callable[[], Awaitable[Any]],
    ttl: int | None = None,
) -> Any:
    """Return the cached value for ``key`` or load, store and return it."""
    hit = await cache.get(key)
    if hit is not None:
        logger.debug("cache_hit", key=key)
        return hit

    logger.debug("cache_miss", key=key)
    value = await loader()
    if value is not None:
        await cache.set(key, value, ttl)
    return value
