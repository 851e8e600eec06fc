"""Redis connection helper for the shared cache backend."""

from __future__ import annotations

import redis.asyncio as redis
import structlog

from shared.config import get_settings

logger = structlog.get_logger()

_redis_client: redis.Redis | None = None


async def connect_redis(url: str | None = None) -> redis.Redis | None:
    """Create the shared client and verify it answers PING.

    Returns None (and logs a warning) when Redis is unreachable, so callers
    can fall back to running without the shared cache.
    """
    global _redis_client
    if _redis_client is not None:
        return _redis_client

    url = url or get_settings().redis_url
    client = redis.from_url(url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except Exception as e:
        logger.warning("redis_unavailable", url=url, error=str(e))
        await client.aclose()
        return None

    logger.info("redis_connected", url=url)
    _redis_client = client
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
