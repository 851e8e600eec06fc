"""Shared test fixtures for the shared-library test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from shared.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop the cached Settings so each test sees its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_redis():
    """Mock async Redis client with common operations."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.ping = AsyncMock(return_value=True)
    redis.aclose = AsyncMock()
    return redis
