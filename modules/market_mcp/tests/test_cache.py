"""Tests for the cache facade and its backends."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from modules.market_mcp.cache import (
    Cache,
    MemoryCache,
    NullCache,
    RedisCache,
    build_cache,
    cached,
)
from shared.config import Settings


# ---------------------------------------------------------------------------
# NullCache
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_null_cache_always_misses():
    cache = NullCache()
    await cache.set("overview:AAPL", {"price": 150.0})
    assert await cache.get("overview:AAPL") is None


# ---------------------------------------------------------------------------
# MemoryCache
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_memory_cache_hit_and_miss():
    cache = MemoryCache()
    assert await cache.get("overview:AAPL") is None
    await cache.set("overview:AAPL", {"price": 150.0})
    assert await cache.get("overview:AAPL") == {"price": 150.0}


@pytest.mark.asyncio
async def test_memory_cache_expiry():
    cache = MemoryCache(default_ttl=300)
    with patch("modules.market_mcp.cache.time.monotonic", return_value=1000.0):
        await cache.set("quote:AAPL", 150.0, ttl=10)
        await cache.set("news:AAPL", ["a"])

    with patch("modules.market_mcp.cache.time.monotonic", return_value=1011.0):
        assert await cache.get("quote:AAPL") is None
        assert await cache.get("news:AAPL") == ["a"]
        assert cache.size == 1


@pytest.mark.asyncio
async def test_memory_cache_evicts_when_full():
    cache = MemoryCache(max_entries=4)
    for i in range(4):
        await cache.set(f"k{i}", i, ttl=10 + i)
    await cache.set("k4", 4, ttl=100)

    assert cache.size == 4
    # the soonest-expiring entry went first
    assert await cache.get("k0") is None
    assert await cache.get("k4") == 4


@pytest.mark.asyncio
async def test_memory_cache_overwrite_does_not_evict():
    cache = MemoryCache(max_entries=2)
    await cache.set("a", 1)
    await cache.set("b", 2)
    await cache.set("a", 3)
    assert await cache.get("a") == 3
    assert await cache.get("b") == 2


@pytest.mark.asyncio
async def test_memory_cache_zero_ttl_is_not_default():
    cache = MemoryCache(default_ttl=300)
    await cache.set("quote:AAPL", 150.0)
    await cache.set("quote:AAPL", 151.0, ttl=0)

    assert await cache.get("quote:AAPL") is None
    assert cache.size == 0


# ---------------------------------------------------------------------------
# RedisCache
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_redis_no_client():
    cache = RedisCache(redis_client=None)
    await cache.set("overview:AAPL", {"price": 150.0})
    assert await cache.get("overview:AAPL") is None


@pytest.mark.asyncio
async def test_redis_get_hit(mock_redis):
    mock_redis.get.return_value = '{"price": 150.0}'
    cache = RedisCache(redis_client=mock_redis)

    assert await cache.get("overview:AAPL") == {"price": 150.0}
    mock_redis.get.assert_called_once_with("mcp:overview:AAPL")


@pytest.mark.asyncio
async def test_redis_get_miss(mock_redis):
    cache = RedisCache(redis_client=mock_redis)
    assert await cache.get("overview:AAPL") is None


@pytest.mark.asyncio
async def test_redis_get_error(mock_redis):
    mock_redis.get.side_effect = ConnectionError("Redis down")
    cache = RedisCache(redis_client=mock_redis)
    assert await cache.get("overview:AAPL") is None


@pytest.mark.asyncio
async def test_redis_set_default_ttl(mock_redis):
    cache = RedisCache(redis_client=mock_redis)
    await cache.set("overview:AAPL", {"price": 150.0})
    mock_redis.set.assert_called_once_with("mcp:overview:AAPL", '{"price": 150.0}', ex=300)


@pytest.mark.asyncio
async def test_redis_set_custom_ttl_and_prefix(mock_redis):
    cache = RedisCache(redis_client=mock_redis, prefix="finance")
    await cache.set("quote:AAPL", 150.0, ttl=10)
    mock_redis.set.assert_called_once_with("finance:quote:AAPL", "150.0", ex=10)


@pytest.mark.asyncio
async def test_redis_set_zero_ttl_deletes(mock_redis):
    cache = RedisCache(redis_client=mock_redis)
    await cache.set("quote:AAPL", 150.0, ttl=0)

    mock_redis.set.assert_not_called()
    mock_redis.delete.assert_awaited_once_with("mcp:quote:AAPL")


@pytest.mark.asyncio
async def test_redis_set_error(mock_redis):
    mock_redis.set.side_effect = ConnectionError("Redis down")
    cache = RedisCache(redis_client=mock_redis)
    # Should not raise
    await cache.set("overview:AAPL", {"price": 150.0})


# ---------------------------------------------------------------------------
# build_cache
# ---------------------------------------------------------------------------


def test_build_cache_memory():
    cache = build_cache(Settings(cache_mode="memory"))
    assert isinstance(cache, MemoryCache)


def test_build_cache_none():
    assert isinstance(build_cache(Settings(cache_mode="none")), NullCache)


def test_build_cache_redis(mock_redis):
    cache = build_cache(Settings(cache_mode="redis", cache_key_prefix="x"), mock_redis)
    assert isinstance(cache, RedisCache)


def test_build_cache_redis_unavailable():
    assert isinstance(build_cache(Settings(cache_mode="redis"), None), NullCache)


def test_build_cache_unknown_mode_falls_back_to_memory():
    assert isinstance(build_cache(Settings(cache_mode="memcached")), MemoryCache)


def test_backends_satisfy_protocol(mock_redis):
    for cache in (NullCache(), MemoryCache(), RedisCache(mock_redis)):
        assert isinstance(cache, Cache)


# ---------------------------------------------------------------------------
# cached()
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_cached_miss_loads_and_stores():
    cache = MemoryCache()
    loader = AsyncMock(return_value={"price": 150.0})

    assert await cached(cache, "overview:AAPL", loader, ttl=10) == {"price": 150.0}
    assert await cache.get("overview:AAPL") == {"price": 150.0}
    loader.assert_awaited_once()


@pytest.mark.asyncio
async def test_cached_hit_skips_loader():
    cache = MemoryCache()
    await cache.set("overview:AAPL", {"price": 149.0})
    loader = AsyncMock(return_value={"price": 150.0})

    assert await cached(cache, "overview:AAPL", loader) == {"price": 149.0}
    loader.assert_not_awaited()


@pytest.mark.asyncio
async def test_cached_does_not_store_none():
    cache = AsyncMock()
    cache.get.return_value = None
    loader = AsyncMock(return_value=None)

    assert await cached(cache, "overview:AAPL", loader) is None
    cache.set.assert_not_awaited()


@pytest.mark.asyncio
async def test_cached_loader_errors_propagate():
    loader = AsyncMock(side_effect=TimeoutError("upstream"))
    with pytest.raises(TimeoutError):
        await cached(NullCache(), "overview:AAPL", loader)
