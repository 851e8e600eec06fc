"""Tool dispatcher - resolves, validates and runs tool calls.

The dispatcher is the single place where failures are classified. Callers
get a ``ToolCallResult`` whose ``error_kind`` decides the HTTP outcome; no
handler exception escapes to the transport.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import structlog

from modules.market_mcp.calls import PreparedCall, classify_failure, redact_arguments, to_json
from modules.market_mcp.handlers import ToolHandler
from modules.market_mcp.registry import ToolRegistry
from modules.market_mcp.streaming import EventSink, StreamingSession
from modules.market_mcp.validation import normalize, validate
from shared.schemas.tools import ErrorKind, ToolCallResult

logger = structlog.get_logger()


def check_call(registry: ToolRegistry, name: str | None, arguments: Any) -> ToolCallResult | None:
    """Pre-dispatch checks that only need the catalog.

    Returns the failed result (not found / bad request), or None when the
    call can be dispatched.
    """
    if not name:
        return ToolCallResult.failure("Missing required field: name", ErrorKind.BAD_REQUEST)

    definition = registry.get(name)
    if definition is None:
        logger.info("unknown_tool_requested", tool=name)
        return ToolCallResult.failure(f"Unknown tool: {name}", ErrorKind.NOT_FOUND)

    # An empty object is a valid argument set; a missing one is not.
    if arguments is None:
        return ToolCallResult.failure("Missing required field: arguments", ErrorKind.BAD_REQUEST)

    outcome = validate(definition.input_schema, arguments)
    if not outcome.ok:
        logger.info("tool_arguments_rejected", tool=name, fields=outcome.fields)
        return ToolCallResult.failure(
            f"Invalid arguments for tool '{name}': {outcome.describe()}",
            ErrorKind.BAD_REQUEST,
        )
    return None


class ToolDispatcher:
    """Maps tool names to handlers and wraps their outcome in a result envelope."""

    def __init__(self, registry: ToolRegistry, handlers: Mapping[str, ToolHandler] | None = None):
        handlers = dict(handlers or {})
        unknown = sorted(name for name in handlers if name not in registry)
        if unknown:
            raise ValueError(f"Handlers bound to unregistered tools: {unknown}")

        unbound = [name for name in registry.names() if name not in handlers]
        if unbound:
            logger.warning("tools_without_handlers", tools=unbound)

        self.registry = registry
        self._handlers = MappingProxyType(handlers)

    def prepare(self, name: str | None, arguments: Any) -> PreparedCall | ToolCallResult:
        """Resolve and validate a call without running it.

        Returns a failed ``ToolCallResult`` (not found / bad request) when the
        call cannot be dispatched.
        """
        rejected = check_call(self.registry, name, arguments)
        if rejected is not None:
            return rejected

        definition = self.registry.get(name)
        return PreparedCall(
            definition=definition,
            arguments=normalize(definition.input_schema, arguments),
            handler=self._handlers.get(name),
        )

    async def execute(self, call: PreparedCall) -> ToolCallResult:
        """Run a prepared call to completion."""
        started = time.monotonic()
        logger.info("tool_call_started", tool=call.name, arguments=redact_arguments(call.arguments))

        try:
            text = to_json(await call.run())
        except Exception as e:
            result = classify_failure(call.definition, e)
            if result.error_kind is ErrorKind.NOT_FOUND:
                logger.info("tool_entity_not_found", tool=call.name, error=str(e))
            else:
                logger.error("tool_call_failed", tool=call.name, error=str(e), exc_info=True)
            return result

        logger.info(
            "tool_call_succeeded",
            tool=call.name,
            duration_ms=round((time.monotonic() - started) * 1000, 1),
        )
        return ToolCallResult.success(text)

    async def call_tool(self, name: str | None, arguments: Any) -> ToolCallResult:
        """Buffered mode: resolve, validate, run and return the envelope."""
        prepared = self.prepare(name, arguments)
        if isinstance(prepared, ToolCallResult):
            return prepared
        return await self.execute(prepared)

    def stream_tool(self, name: str | None, arguments: Any, sink: EventSink) -> StreamingSession | ToolCallResult:
        """Streaming mode: open a session that drives ``sink``.

        The caller runs the returned session. Calls that cannot be dispatched
        return their failed result and leave the sink untouched, so the caller
        can answer with a plain HTTP error.
        """
        prepared = self.prepare(name, arguments)
        if isinstance(prepared, ToolCallResult):
            return prepared
        return StreamingSession(prepared, sink)
