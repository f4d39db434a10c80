"""Streaming channel for turn progress.

A StreamChannel is an ordered queue of typed events that the producer (the
conversation manager and reasoning loop) writes and the consumer (the SSE
response or the CLI) drains as they arrive. Exactly one terminal event,
`done` or `error`, ends the stream; cancel() ends it silently instead.
"""

import asyncio
import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .logging import get_logger

logger = get_logger(__name__)


class EventType(Enum):
    """Types of stream events."""
    TOOL_STATUS = "tool_status"
    CHART = "chart"
    TEXT = "text"
    SUGGESTIONS = "suggestions"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (EventType.DONE, EventType.ERROR)


class ToolStatus(Enum):
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class StreamEvent:
    """A single event on the channel."""
    type: EventType
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, **self.data}

    def encode(self) -> str:
        """Encode as a Server-Sent Events frame."""
        return f"data: {json.dumps(self.to_dict(), default=str)}\n\n"


class StreamChannel:
    """Ordered, incrementally flushed event stream for one turn.

    Events emitted after the channel is closed (terminal event sent, or
    cancelled by the consumer) are dropped, so producers can keep running
    to a checkpoint without special-casing a gone client.
    """

    def __init__(self):
        self._queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        self._closed = False
        self._cancelled = False
        self.emitted: list[StreamEvent] = []

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def is_closed(self) -> bool:
        return self._closed

    def emit(self, event: StreamEvent) -> bool:
        """Queue an event. Returns False if the channel is already closed."""
        if self._closed:
            logger.debug(f"Dropping {event.type.value} event on closed channel")
            return False
        self.emitted.append(event)
        self._queue.put_nowait(event)
        if event.type.is_terminal:
            self._close()
        return True

    def tool_status(self, tool: str, status: ToolStatus, summary: str = "") -> bool:
        return self.emit(StreamEvent(
            EventType.TOOL_STATUS,
            {"tool": tool, "status": status.value, "summary": summary},
        ))

    def chart(self, spec: dict[str, Any]) -> bool:
        return self.emit(StreamEvent(EventType.CHART, {"spec": spec}))

    def text(self, chunk: str) -> bool:
        return self.emit(StreamEvent(EventType.TEXT, {"chunk": chunk}))

    def suggestions(self, suggestions: list[str]) -> bool:
        return self.emit(StreamEvent(EventType.SUGGESTIONS, {"suggestions": suggestions}))

    def done(self, conversation_id: str) -> bool:
        return self.emit(StreamEvent(EventType.DONE, {"conversation_id": conversation_id}))

    def error(self, message: str) -> bool:
        return self.emit(StreamEvent(EventType.ERROR, {"message": message}))

    def cancel(self) -> None:
        """Abort the stream: the consumer is gone, close without a terminal event."""
        if not self._cancelled:
            logger.debug("Stream channel cancelled")
        self._cancelled = True
        self._close()

    def _close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Yield events as they are emitted until the channel closes."""
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    async def sse(self) -> AsyncIterator[str]:
        """Yield events encoded as Server-Sent Events frames."""
        async for event in self.events():
            yield event.encode()
