"""Server-Sent Events session wrapped around a single tool call.

A session emits, in order::

    start -> arguments -> processing -> data -> complete
    start -> arguments -> processing -> error

Each event is written to an ``EventSink``. When the client goes away the
sink reports ``closed`` and the session stops writing; the handler call that
is already running is left to finish on its own.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

import structlog

from modules.market_mcp.calls import PreparedCall, classify_failure, json_type, to_json
from modules.market_mcp.errors import InvalidTransitionError

logger = structlog.get_logger()

PROCESSING_MESSAGE = "Fetching data from Yahoo Finance..."

# SSE comment written after the terminal event
END_OF_STREAM = ":\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class EventName(str, Enum):
    START = "start"
    ARGUMENTS = "arguments"
    PROCESSING = "processing"
    DATA = "data"
    COMPLETE = "complete"
    ERROR = "error"


class SessionState(str, Enum):
    IDLE = "idle"
    START = "start"
    ARGUMENTS = "arguments"
    PROCESSING = "processing"
    DATA = "data"
    COMPLETE = "complete"
    ERROR = "error"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.START}),
    SessionState.START: frozenset({SessionState.ARGUMENTS, SessionState.ERROR}),
    SessionState.ARGUMENTS: frozenset({SessionState.PROCESSING, SessionState.ERROR}),
    SessionState.PROCESSING: frozenset({SessionState.DATA, SessionState.ERROR}),
    SessionState.DATA: frozenset({SessionState.COMPLETE}),
    SessionState.COMPLETE: frozenset(),
    SessionState.ERROR: frozenset(),
}

TERMINAL_STATES = frozenset({SessionState.COMPLETE, SessionState.ERROR})


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SSEEvent:
    """A named event and its encoded ``event:``/``data:`` frame."""

    name: EventName
    payload: dict[str, Any]
    frame: str

    @classmethod
    def build(cls, name: EventName, payload: dict[str, Any]) -> SSEEvent:
        # Encoding here surfaces unserializable payloads before anything is written.
        frame = f"event: {name.value}\ndata: {to_json(payload)}\n\n"
        return cls(name=name, payload=payload, frame=frame)


class EventSink(Protocol):
    """Destination of a session's events."""

    @property
    def closed(self) -> bool: ...

    async def send(self, event: SSEEvent) -> None: ...

    async def close(self) -> None: ...


class QueueSink:
    """Sink that buffers frames for a ``StreamingResponse`` to drain."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: SSEEvent) -> None:
        if self._closed:
            return
        self._queue.put_nowait(event.frame)

    async def close(self) -> None:
        """Finish the stream after the frames already queued."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(END_OF_STREAM)
        self._queue.put_nowait(None)

    def cancel(self) -> None:
        """Mark the connection gone and drop anything not yet written."""
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()

    async def frames(self) -> AsyncIterator[str]:
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame


class StreamingSession:
    """Linear state machine emitting protocol events around one tool call."""

    def __init__(self, call: PreparedCall, sink: EventSink):
        self.call = call
        self.sink = sink
        self.state = SessionState.IDLE
        self.disconnected = False

    @property
    def tool(self) -> str:
        return self.call.name

    def _advance(self, target: SessionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"{self.state.value} -> {target.value}")
        self.state = target

    def _event(self, name: EventName, **fields: Any) -> SSEEvent:
        return SSEEvent.build(name, {"tool": self.tool, **fields, "timestamp": _now()})

    async def _emit(self, event: SSEEvent) -> bool:
        """Write one event; False when the client has gone away."""
        if self.sink.closed:
            self.disconnected = True
            logger.info("stream_client_disconnected", tool=self.tool, state=self.state.value)
            return False
        self._advance(SessionState(event.name.value))
        await self.sink.send(event)
        return True

    async def run(self) -> SessionState:
        """Drive the session to a terminal state (or until disconnect)."""
        logger.info("stream_opened", tool=self.tool)
        try:
            await self._run()
        finally:
            await self.sink.close()
            logger.info(
                "stream_closed",
                tool=self.tool,
                state=self.state.value,
                disconnected=self.disconnected,
            )
        return self.state

    async def _run(self) -> None:
        preamble = (
            self._event(EventName.START, message=f"Executing MCP tool: {self.tool}"),
            self._event(EventName.ARGUMENTS, arguments=self.call.arguments),
            self._event(EventName.PROCESSING, status="in_progress", message=PROCESSING_MESSAGE),
        )
        for event in preamble:
            if not await self._emit(event):
                return

        try:
            result = await self.call.run()
            data = self._event(EventName.DATA, result=result, resultType=json_type(result))
        except Exception as e:
            failure = classify_failure(self.call.definition, e)
            logger.error(
                "tool_call_failed",
                tool=self.tool,
                kind=failure.error_kind.value,
                error=str(e),
                exc_info=True,
            )
            await self._emit(
                self._event(
                    EventName.ERROR,
                    status="error",
                    error=failure.error_text,
                )
            )
            return

        if not await self._emit(data):
            return
        await self._emit(
            self._event(
                EventName.COMPLETE,
                status="success",
                message=f"Tool '{self.tool}' completed successfully",
            )
        )


# Sessions whose client disconnected keep running until their handler returns.
_running_sessions: set[asyncio.Task] = set()


async def stream_frames(session: StreamingSession, sink: QueueSink) -> AsyncIterator[str]:
    """Run ``session`` in the background and yield its frames as they arrive."""
    task = asyncio.create_task(session.run())
    _running_sessions.add(task)
    task.add_done_callback(_running_sessions.discard)
    try:
        async for frame in sink.frames():
            yield frame
    finally:
        sink.cancel()
