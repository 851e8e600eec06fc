"""Market data MCP module — FastAPI service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from modules.market_mcp.cache import build_cache
from modules.market_mcp.dispatcher import ToolDispatcher, check_call
from modules.market_mcp.handlers import build_handlers
from modules.market_mcp.manifest import FEATURES, TOOLS
from modules.market_mcp.registry import ToolFormat, ToolRegistry
from modules.market_mcp.streaming import SSE_HEADERS, QueueSink, stream_frames
from shared.config import CACHE_MODE_REDIS, get_settings, parse_list
from shared.redis import close_redis, connect_redis
from shared.schemas.common import ErrorResponse, HealthResponse
from shared.schemas.tools import ErrorKind, ToolCallRequest, ToolCallResult

settings = get_settings()

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)
    ),
)

logger = structlog.get_logger()
app = FastAPI(title="Market Data MCP Server", version=settings.service_version)

app.add_middleware(
    CORSMiddleware,
    allow_origins=parse_list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

registry = ToolRegistry(TOOLS)
dispatcher: ToolDispatcher | None = None


@app.on_event("startup")
async def startup():
    global dispatcher

    # Connect to Redis only when it backs the cache (graceful fallback if unavailable)
    redis_client = None
    if settings.resolved_cache_mode == CACHE_MODE_REDIS:
        redis_client = await connect_redis(settings.redis_url)

    cache = build_cache(settings, redis_client)
    dispatcher = ToolDispatcher(registry, build_handlers(settings.handler_factory, cache))
    logger.info(
        "mcp_service_ready",
        tools=len(registry),
        cache=type(cache).__name__,
    )


@app.on_event("shutdown")
async def shutdown():
    await close_redis()


def _error(status_code: int, message: str, available_tools: list[str] | None = None) -> JSONResponse:
    body = ErrorResponse(error=message, available_tools=available_tools)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


def _reject(call: ToolCallRequest, result: ToolCallResult) -> JSONResponse:
    """HTTP response for a bad-request or not-found result."""
    if result.error_kind is ErrorKind.NOT_FOUND:
        unknown_tool = call.name not in registry
        return _error(404, result.error_text, registry.names() if unknown_tool else None)
    return _error(400, result.error_text)


async def _read_call(request: Request) -> ToolCallRequest | JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        return _error(400, "Request body must be valid JSON")

    if not isinstance(body, dict):
        return _error(400, "Request body must be a JSON object")

    try:
        return ToolCallRequest.model_validate(body)
    except ValidationError:
        return _error(400, "Invalid request: 'name' must be a string and 'arguments' an object")


def _not_ready(call: ToolCallRequest) -> JSONResponse | dict:
    """Answer for calls arriving before startup; unroutable calls are still rejected."""
    rejected = check_call(registry, call.name, call.arguments)
    if rejected is not None:
        return _reject(call, rejected)
    return ToolCallResult.failure("MCP service not ready", ErrorKind.HANDLER_ERROR).to_wire()


@app.get("/tools")
async def list_tools(format: str | None = Query(default=None)) -> dict:
    """List tool definitions, natively or as OpenAI function tools."""
    fmt = ToolFormat.parse(format)
    logger.info("tools_listed", format=fmt.value)
    return {"tools": registry.list_as(fmt)}


@app.post("/call")
async def call_tool(request: Request):
    """Execute a tool call and return the buffered result."""
    call = await _read_call(request)
    if isinstance(call, JSONResponse):
        return call
    if dispatcher is None:
        return _not_ready(call)

    result = await dispatcher.call_tool(call.name, call.arguments)
    if result.error_kind in (ErrorKind.BAD_REQUEST, ErrorKind.NOT_FOUND):
        return _reject(call, result)
    return result.to_wire()


@app.post("/call-stream")
async def call_tool_stream(request: Request):
    """Execute a tool call, streaming its progress as Server-Sent Events."""
    call = await _read_call(request)
    if isinstance(call, JSONResponse):
        return call
    if dispatcher is None:
        return _not_ready(call)

    sink = QueueSink()
    session = dispatcher.stream_tool(call.name, call.arguments, sink)
    if isinstance(session, ToolCallResult):
        return _reject(call, session)

    return StreamingResponse(
        stream_frames(session, sink),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        service=settings.service_name,
        version=settings.service_version,
        tools_available=len(registry),
        tools=registry.names(),
        features=FEATURES,
        timestamp=datetime.now(timezone.utc),
    )
