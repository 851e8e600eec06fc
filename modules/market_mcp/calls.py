"""Prepared tool calls and the helpers both delivery modes share."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from modules.market_mcp.errors import EntityNotFoundError, ToolError
from modules.market_mcp.handlers import ToolHandler
from shared.schemas.tools import ErrorKind, ToolCallResult, ToolDefinition

# Keys whose values should be redacted before they are logged.
_SECRET_KEY_PATTERN = re.compile(
    r"(token|key|secret|password|credential|auth|api_key|access_key)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class PreparedCall:
    """A resolved and validated call, ready to run."""

    definition: ToolDefinition
    arguments: dict[str, Any]
    handler: ToolHandler | None

    @property
    def name(self) -> str:
        return self.definition.name

    async def run(self) -> Any:
        if self.handler is None:
            raise ToolError("no handler is configured for this tool")
        return await self.handler(self.arguments)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


def _finite(value: Any) -> Any:
    """Replace NaN and infinities with None, recursively."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite(v) for v in value]
    return value


def to_json(value: Any) -> str:
    """Canonical compact JSON used for result text and SSE data lines.

    Non-finite floats are written as ``null``.
    """
    return json.dumps(
        _finite(value),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
        default=_json_default,
    )


def json_type(value: Any) -> str:
    """JSON type name of a handler result."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    return "object"


def describe_failure(definition: ToolDefinition, exc: BaseException) -> str:
    """Human-readable error text, e.g. "Stock overview tool error: timed out"."""
    message = str(exc) or exc.__class__.__name__
    return f"{definition.label} tool error: {message}"


def classify_failure(definition: ToolDefinition, exc: Exception) -> ToolCallResult:
    """Failed result for an exception raised while running a tool."""
    kind = ErrorKind.NOT_FOUND if isinstance(exc, EntityNotFoundError) else ErrorKind.HANDLER_ERROR
    return ToolCallResult.failure(describe_failure(definition, exc), kind)


def redact_arguments(args: dict[str, Any]) -> dict[str, Any]:
    """Strip secret-looking values from arguments before logging."""
    return {
        k: "[REDACTED]" if _SECRET_KEY_PATTERN.search(k) else v
        for k, v in args.items()
    }
