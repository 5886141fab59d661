"""
Event Service - Per-build event channel for SSE streaming

Provides:
- EventPublisher: push log/status/result events for one build session
- EventPublisher.stream(): SSE generator consumed by the HTTP response
- Event types standardization

Each build session owns exactly one publisher. Events are delivered in the
order they were emitted; the channel is closed once, after which further
events are dropped.
"""
import asyncio
import json
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional

from builder.schemas import LogEntry, Stage, STAGE_PROGRESS

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 30.0

_CLOSED = object()


class EventType:
    """Standard event types"""
    LOG = "log"  # Log line: {"log": LogEntry}
    STATUS = "status"  # Stage change: {"status": "CLONING", "progress": 10}
    RESULT = "result"  # Terminal outcome: {"success": bool, "downloadUrl"?, "error"?}
    ERROR = "error"  # Rejected request, no session started: {"message": str}


def format_sse(data: Dict[str, Any]) -> str:
    """Serialize one event as an SSE data frame"""
    return f"data: {json.dumps(data)}\n\n"


class EventPublisher:
    """
    Event channel for one build session

    Usage:
        publisher = EventPublisher(build_id)
        return StreamingResponse(publisher.stream(), media_type="text/event-stream")
    """

    def __init__(self, build_id: str = "", keepalive: float = KEEPALIVE_SECONDS):
        self.build_id = build_id
        self.keepalive = keepalive
        self.history: List[Dict[str, Any]] = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        """
        Push an event onto the channel

        Returns:
            False if the channel is already closed and the event was dropped
        """
        if self._closed:
            logger.debug(f"[EventService] Dropping {event_type} event for closed build {self.build_id}")
            return False
        event = {"type": event_type, **(payload or {})}
        self.history.append(event)
        self._queue.put_nowait(event)
        return True

    def log(self, entry: LogEntry) -> bool:
        return self.emit(EventType.LOG, {"log": entry.model_dump()})

    def status(self, stage: Stage, progress: Optional[int] = None) -> bool:
        if progress is None:
            progress = STAGE_PROGRESS.get(stage, 0)
        return self.emit(EventType.STATUS, {"status": stage.value, "progress": progress})

    def success(self, download_url: str, file_name: Optional[str] = None) -> bool:
        payload = {"success": True, "downloadUrl": download_url}
        if file_name:
            payload["fileName"] = file_name
        return self.emit(EventType.RESULT, payload)

    def failure(self, error: str) -> bool:
        return self.emit(EventType.RESULT, {"success": False, "error": error})

    def error(self, message: str) -> bool:
        return self.emit(EventType.ERROR, {"message": message})

    def close(self):
        """Close the channel (idempotent)"""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def stream(self) -> AsyncGenerator[str, None]:
        """
        Yield SSE frames until the channel is closed

        Sends a keepalive comment when nothing was emitted for a while,
        so long Gradle runs don't look like a dead connection.
        """
        while True:
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=self.keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            if event is _CLOSED:
                break
            yield format_sse(event)


async def error_stream(message: str) -> AsyncGenerator[str, None]:
    """One-shot stream for requests rejected before a session starts"""
    publisher = EventPublisher()
    publisher.error(message)
    publisher.close()
    async for frame in publisher.stream():
        yield frame


__all__ = ["EventPublisher", "EventType", "format_sse", "error_stream"]
