"""
Tests for the per-build event channel
"""
import asyncio
import json

import pytest

from builder.schemas import LogEntry, LogType, Stage
from services.event_service import EventPublisher, EventType, error_stream, format_sse


async def drain(stream):
    return [frame async for frame in stream]


def parse(frame: str) -> dict:
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    return json.loads(frame[len("data: "):])


class TestEventPublisher:
    """Ordering, framing and close semantics"""

    def test_events_stream_in_emission_order(self):
        async def scenario():
            publisher = EventPublisher("b1")
            publisher.status(Stage.CLONING)
            publisher.log(LogEntry(message="git clone x .", type=LogType.COMMAND))
            publisher.success("http://h/download/a.apk", "a.apk")
            publisher.close()
            return await drain(publisher.stream())

        events = [parse(f) for f in asyncio.run(scenario())]

        assert [e["type"] for e in events] == [EventType.STATUS, EventType.LOG, EventType.RESULT]
        assert events[0] == {"type": "status", "status": "CLONING", "progress": 10}
        assert events[1]["log"]["message"] == "git clone x ."
        assert events[1]["log"]["type"] == "command"
        assert set(events[1]["log"]) == {"id", "timestamp", "message", "type"}
        assert events[2] == {
            "type": "result", "success": True, "downloadUrl": "http://h/download/a.apk", "fileName": "a.apk"
        }

    def test_failure_event(self):
        publisher = EventPublisher()

        publisher.failure("boom")

        assert publisher.history == [{"type": "result", "success": False, "error": "boom"}]

    def test_events_after_close_are_dropped(self):
        publisher = EventPublisher()
        publisher.close()

        assert publisher.status(Stage.ERROR) is False
        assert publisher.history == []

    def test_close_is_idempotent(self):
        async def scenario():
            publisher = EventPublisher()
            publisher.error("x")
            publisher.close()
            publisher.close()
            return await drain(publisher.stream())

        assert len(asyncio.run(scenario())) == 1

    def test_keepalive_while_idle(self):
        async def scenario():
            publisher = EventPublisher(keepalive=0.01)
            frames = []

            async def consume():
                async for frame in publisher.stream():
                    frames.append(frame)

            consumer = asyncio.create_task(consume())
            await asyncio.sleep(0.05)
            publisher.status(Stage.COMPILING)
            publisher.close()
            await consumer
            return frames

        frames = asyncio.run(scenario())

        assert frames[0] == ": keepalive\n\n"
        assert parse(frames[-1])["status"] == "COMPILING"


class TestErrorStream:

    def test_single_error_frame(self):
        frames = asyncio.run(drain(error_stream("No Repository URL provided")))

        assert frames == [format_sse({"type": "error", "message": "No Repository URL provided"})]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
