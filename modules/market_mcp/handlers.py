"""Handler contract and loading of the deployment's handler factory."""

from __future__ import annotations

import importlib
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Protocol

import structlog

from modules.market_mcp.cache import Cache

logger = structlog.get_logger()


class ToolHandler(Protocol):
    """Business logic of one tool.

    Receives the normalized arguments and returns a JSON-compatible value.
    Raise ``EntityNotFoundError`` for unknown entities; any other exception
    is reported to the caller as a tool error.
    """

    def __call__(self, arguments: Mapping[str, Any]) -> Awaitable[Any]: ...


HandlerFactory = Callable[[Cache], Mapping[str, ToolHandler]]


def load_handler_factory(path: str) -> HandlerFactory:
    """Import a factory given as ``"package.module:attribute"``."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Invalid handler factory path: {path!r}. Expected 'package.module:attribute'.")

    module = importlib.import_module(module_name)
    try:
        factory = getattr(module, attr)
    except AttributeError:
        raise ValueError(f"Module {module_name!r} has no attribute {attr!r}") from None

    if not callable(factory):
        raise ValueError(f"Handler factory {path!r} is not callable")
    return factory


def build_handlers(path: str, cache: Cache) -> dict[str, ToolHandler]:
    """Build the name -> handler map, or an empty map when no factory is configured."""
    if not path:
        logger.warning("no_handler_factory_configured", hint="Set HANDLER_FACTORY to enable tool calls")
        return {}

    handlers = dict(load_handler_factory(path)(cache))
    logger.info("handlers_loaded", factory=path, tools=sorted(handlers))
    return handlers
