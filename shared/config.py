"""Configuration management using Pydantic Settings."""

from __future__ import annotations

import json
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

CACHE_MODE_MEMORY = "memory"
CACHE_MODE_REDIS = "redis"
CACHE_MODE_NONE = "none"
CACHE_MODES = (CACHE_MODE_MEMORY, CACHE_MODE_REDIS, CACHE_MODE_NONE)


def parse_list(v: object) -> list[str]:
    """Parse a list from either a JSON array string, comma-separated string, or list."""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return []
        if v.startswith("["):
            return json.loads(v)
        return [item.strip() for item in v.split(",") if item.strip()]
    return list(v)  # type: ignore[arg-type]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service identity (reported by /health)
    service_name: str = "MCP Server"
    service_version: str = "2.0.2"

    # debug, info, warning or error
    log_level: str = "info"

    # Cache: "memory" (in-process), "redis" or "none"
    cache_mode: str = CACHE_MODE_MEMORY
    cache_ttl: int = 300        # 5 minutes
    cache_ttl_short: int = 10   # real-time data such as quotes
    cache_max_entries: int = 1000
    cache_key_prefix: str = "mcp"

    # Redis
    redis_url: str = "redis://redis:6379"

    # Dotted "package.module:attribute" of a callable (cache) -> {tool name: handler}.
    # Empty means tools are listed but not callable.
    handler_factory: str = ""

    # Stored as str: comma-separated or JSON array. Use parse_list() at the point of use.
    cors_origins: str = "*"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def resolved_cache_mode(self) -> str:
        """Normalized cache mode; unknown values fall back to memory."""
        mode = self.cache_mode.strip().lower()
        return mode if mode in CACHE_MODES else CACHE_MODE_MEMORY


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
