"""Tests for the streaming channel."""

import asyncio
import json

from operator_agent.streaming import EventType, StreamChannel, StreamEvent, ToolStatus


class TestStreamEvent:
    """Tests for StreamEvent encoding."""

    def test_sse_frame(self):
        event = StreamEvent(EventType.TOOL_STATUS, {"tool": "render_chart", "status": "done", "summary": "ok"})
        frame = event.encode()
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {
            "type": "tool_status",
            "tool": "render_chart",
            "status": "done",
            "summary": "ok",
        }

    def test_terminal_types(self):
        assert EventType.DONE.is_terminal
        assert EventType.ERROR.is_terminal
        assert not EventType.TEXT.is_terminal


class TestStreamChannel:
    """Tests for StreamChannel."""

    async def test_events_in_order_until_terminal(self):
        channel = StreamChannel()
        channel.tool_status("list_entities", ToolStatus.RUNNING)
        channel.text("Hello")
        channel.done("conv-1")

        events = [e async for e in channel.events()]

        assert [e.type for e in events] == [EventType.TOOL_STATUS, EventType.TEXT, EventType.DONE]
        assert events[-1].data == {"conversation_id": "conv-1"}

    async def test_single_terminal_event(self):
        channel = StreamChannel()
        assert channel.error("boom")
        assert not channel.done("conv-1")
        assert not channel.text("late")
        assert [e.type for e in channel.emitted] == [EventType.ERROR]

    async def test_cancel_closes_silently(self):
        channel = StreamChannel()
        channel.text("partial")
        channel.cancel()

        events = [e async for e in channel.events()]

        assert [e.type for e in events] == [EventType.TEXT]
        assert channel.is_cancelled
        assert channel.is_closed
        assert not channel.suggestions(["more?"])

    async def test_incremental_delivery(self):
        """Events reach the consumer while the producer is still running."""
        channel = StreamChannel()
        received = []

        async def consume():
            async for event in channel.events():
                received.append(event.type)

        consumer = asyncio.create_task(consume())
        channel.text("a")
        await asyncio.sleep(0)
        assert received == [EventType.TEXT]

        channel.done("conv-1")
        await consumer
        assert received == [EventType.TEXT, EventType.DONE]

    async def test_sse(self):
        channel = StreamChannel()
        channel.chart({"id": "c1", "type": "kpi"})
        channel.suggestions(["What about TikTok?"])
        channel.done("conv-1")

        frames = [f async for f in channel.sse()]

        payloads = [json.loads(f[len("data: "):]) for f in frames]
        assert payloads == [
            {"type": "chart", "spec": {"id": "c1", "type": "kpi"}},
            {"type": "suggestions", "suggestions": ["What about TikTok?"]},
            {"type": "done", "conversation_id": "conv-1"},
        ]
