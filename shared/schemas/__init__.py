"""Pydantic schemas for the MCP service."""

from shared.schemas.common import ErrorResponse, HealthResponse
from shared.schemas.tools import (
    ContentItem,
    ErrorKind,
    InputSchema,
    PropertySchema,
    ToolCallRequest,
    ToolCallResult,
    ToolDefinition,
)

__all__ = [
    "ContentItem",
    "ErrorKind",
    "ErrorResponse",
    "HealthResponse",
    "InputSchema",
    "PropertySchema",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDefinition",
]
