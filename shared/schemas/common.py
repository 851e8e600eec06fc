"""Common schemas used across services."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class HealthResponse(BaseModel):
    """Service health payload, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str = "healthy"
    service: str
    version: str
    tools_available: int
    tools: list[str]
    features: list[str]
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Body of a 400/404 response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error: str
    available_tools: list[str] | None = None
