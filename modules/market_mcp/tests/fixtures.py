"""Stub handlers and helpers for market MCP module tests."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from modules.market_mcp.dispatcher import ToolDispatcher
from modules.market_mcp.manifest import TOOLS
from modules.market_mcp.registry import ToolRegistry
from modules.market_mcp.streaming import SSEEvent

OVERVIEW_RESULT = {"price": 150.0}

ANALYSIS_RESULT = {
    "symbol": "AAPL",
    "recommendations": {"count": 2, "recommendations": [{"symbol": "MSFT"}, {"symbol": "GOOGL"}]},
    "news": [{"title": "Apple hits record high", "publisher": "Reuters"}],
}

TRENDING_RESULT = [
    {"symbol": "NVDA", "name": "NVIDIA Corporation"},
    {"symbol": "TSLA", "name": "Tesla, Inc."},
]


def returning(result: Any):
    """Handler that always returns ``result``."""

    async def handler(arguments: Mapping[str, Any]) -> Any:
        return result

    return handler


def raising(exc: BaseException):
    """Handler that always raises ``exc``."""

    async def handler(arguments: Mapping[str, Any]) -> Any:
        raise exc

    return handler


class RecordingHandler:
    """Handler that records the arguments of every call."""

    def __init__(self, result: Any = None):
        self.result = result
        self.calls: list[dict[str, Any]] = []

    async def __call__(self, arguments: Mapping[str, Any]) -> Any:
        self.calls.append(dict(arguments))
        return self.result


def build_stub_handlers(cache) -> dict:
    """Handler factory usable through HANDLER_FACTORY."""
    return {
        "get_stock_overview": returning(OVERVIEW_RESULT),
        "get_stock_analysis": returning(ANALYSIS_RESULT),
    }


def make_dispatcher(handlers: dict | None = None, tools=None) -> ToolDispatcher:
    return ToolDispatcher(ToolRegistry(tools if tools is not None else TOOLS), handlers or {})


class CollectingSink:
    """Sink that keeps every event; can simulate a client disconnect."""

    def __init__(self, disconnect_after: int | None = None):
        self.events: list[SSEEvent] = []
        self.disconnect_after = disconnect_after
        self.close_calls = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def disconnect(self) -> None:
        self._closed = True

    async def send(self, event: SSEEvent) -> None:
        self.events.append(event)
        if self.disconnect_after is not None and len(self.events) >= self.disconnect_after:
            self._closed = True

    async def close(self) -> None:
        self.close_calls += 1
        self._closed = True

    @property
    def names(self) -> list[str]:
        return [e.name.value for e in self.events]


def parse_sse(text: str) -> list[tuple[str, dict]]:
    """Parse an SSE body into (event name, data) pairs, skipping comments."""
    events = []
    for block in text.split("\n\n"):
        name = None
        data_lines = []
        for line in block.split("\n"):
            if line.startswith("event: "):
                name = line[len("event: "):]
            elif line.startswith("data: "):
                data_lines.append(line[len("data: "):])
        if name is not None:
            events.append((name, json.loads("\n".join(data_lines))))
    return events
