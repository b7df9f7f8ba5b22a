"""
Unit tests for chat SSE streaming helpers and the timeout handler.
"""

import asyncio
import json
from unittest.mock import Mock

import pytest

from src.agent.chat_session import (
    SEND_FAILED_MESSAGE,
    ChatEvent,
    ChatState,
    MessageBuffer,
    PendingSend,
)
from src.api.chat.streaming.handlers import stream_session_events
from src.api.chat.streaming.helpers import (
    create_chat_event,
    create_error_event,
    format_sse_event,
)
from src.models.message import Message, Sender


class FakeManager:
    """Stand-in exposing stream_reply as a scripted event stream."""

    def __init__(self, delay: float = 0):
        self.delay = delay
        self.chat_id = "chat_1"
        self.user_id = "user_1"
        self.state = ChatState.READY
        self.closed = False

    async def stream_reply(self, pending):
        try:
            yield ChatEvent("placeholder", {"message": {"id": "42", "text": "", "pending": True}})
            await asyncio.sleep(self.delay)
            yield ChatEvent("done", {"message": {"id": "42", "text": "ok"}})
        finally:
            self.closed = True


def reserved_send(text: str = "hi") -> PendingSend:
    return PendingSend(
        text=text,
        generation=1,
        session=Mock(),
        chat_id="chat_1",
        user_message=Message(id="41", text=text, sender=Sender.USER),
        buffer=MessageBuffer("42"),
    )


def decode(line: str) -> dict:
    assert line.startswith("data: ") and line.endswith("\n\n")
    return json.loads(line[len("data: ") :])


# ===== Helper Tests =====


class TestHelpers:
    def test_format_keeps_unicode(self):
        assert format_sse_event({"text": "₹100"}) == 'data: {"text": "₹100"}\n\n'

    def test_chat_event(self):
        event = decode(create_chat_event(ChatEvent("chunk", {"message_id": "1", "text": "Hel"})))

        assert event == {"type": "chunk", "message_id": "1", "text": "Hel"}

    def test_error_event(self):
        event = decode(create_error_event("Oops", "STREAM_TIMEOUT", message_id="1"))

        assert event == {
            "type": "error",
            "text": "Oops",
            "error_code": "STREAM_TIMEOUT",
            "message_id": "1",
        }


# ===== Handler Tests =====


class TestStreamSessionEvents:
    @pytest.mark.asyncio
    async def test_passes_events_through(self):
        manager = FakeManager()

        lines = [line async for line in stream_session_events(manager, reserved_send(), 5)]

        assert [decode(line)["type"] for line in lines] == ["placeholder", "done"]
        assert manager.closed

    @pytest.mark.asyncio
    async def test_timeout_emits_error_for_placeholder(self):
        manager = FakeManager(delay=1)

        lines = [line async for line in stream_session_events(manager, reserved_send(), 0.05)]

        error = decode(lines[-1])
        assert error["type"] == "error"
        assert error["error_code"] == "STREAM_TIMEOUT"
        assert error["message_id"] == "42"
        assert error["text"] == SEND_FAILED_MESSAGE
        assert manager.closed
