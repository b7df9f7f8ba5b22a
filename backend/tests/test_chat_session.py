"""
Unit tests for ChatSessionManager.

Covers the session state machine, streamed sends, follow-ups and titles,
best-effort persistence, abandoned streams and history navigation.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

from src.agent.chat_session import (
    API_KEY_MESSAGE,
    SEND_FAILED_MESSAGE,
    START_FAILED_MESSAGE,
    ChatSessionManager,
    ChatState,
)
from src.core.config import Settings
from src.core.exceptions import ConfigurationError
from src.models.message import Message, Sender
from src.models.profile import Persona, UserProfile
from src.services.chat_history_service import ChatHistoryService

# ===== Fakes =====


class ScriptedSession:
    """Chat session that streams fixed chunks, optionally failing or pausing."""

    def __init__(self, chunks, error=None, pause_after=None):
        self.chunks = chunks
        self.error = error
        self.pause_after = pause_after
        self.resume = asyncio.Event()
        self.sent: list[str] = []

    async def send_message_stream(self, text):
        self.sent.append(text)
        for index, chunk in enumerate(self.chunks):
            if self.pause_after is not None and index == self.pause_after:
                await self.resume.wait()
            yield chunk
        if self.error is not None:
            raise self.error


class FakeClient:
    def __init__(self, *sessions, error=None):
        self.sessions = list(sessions)
        self.error = error
        self.instructions: list[str] = []

    def open_session(self, system_instruction, persona=Persona.STUDENT):
        self.instructions.append(system_instruction)
        if self.error is not None:
            raise self.error
        if len(self.sessions) > 1:
            return self.sessions.pop(0)
        return self.sessions[0]


async def collect(events):
    return [event async for event in events]


# ===== Fixtures =====


@pytest.fixture
def history(chat_repo, message_repo, identity):
    return ChatHistoryService(chat_repo, message_repo, identity)


@pytest.fixture
def financial_service():
    service = Mock()
    service.get_financial_summary = AsyncMock(return_value=None)
    return service


def make_manager(client, history, financial_service, identity=None, profile=None):
    return ChatSessionManager(
        client=client,
        history=history,
        financial_service=financial_service,
        settings=Settings(),
        identity=identity,
        profile=profile,
    )


@pytest.fixture
def budget_session():
    return ScriptedSession(["Track spending ", "and set savings goals."])


@pytest_asyncio.fixture
async def manager(budget_session, history, financial_service, identity):
    manager = make_manager(FakeClient(budget_session), history, financial_service, identity)
    await manager.start()
    return manager


# ===== Start Tests =====


class TestStart:
    """Test opening a conversation"""

    @pytest.mark.asyncio
    async def test_start_ready_with_stored_chat(self, manager, chat_repo):
        assert manager.state == ChatState.READY
        assert manager.chat_id in chat_repo.chats
        assert manager.snapshot().messages == []

    @pytest.mark.asyncio
    async def test_instructions_include_no_data_placeholder(
        self, budget_session, history, financial_service, identity
    ):
        client = FakeClient(budget_session)
        manager = make_manager(client, history, financial_service, identity)

        await manager.start()

        assert "No financial data available for this user yet." in client.instructions[0]
        financial_service.get_financial_summary.assert_awaited_once_with(identity)

    @pytest.mark.asyncio
    async def test_open_failure_sets_error(self, history, financial_service, identity):
        client = FakeClient(error=ConfigurationError("API key missing"))
        manager = make_manager(client, history, financial_service, identity)

        await manager.start()

        assert manager.state == ChatState.ERROR
        assert manager.error == START_FAILED_MESSAGE
        assert not manager.can_send("hello")

    @pytest.mark.asyncio
    async def test_retry_after_error(self, budget_session, history, financial_service, identity):
        client = FakeClient(error=ConfigurationError("API key missing"))
        manager = make_manager(client, history, financial_service, identity)
        await manager.start()

        client.error = None
        client.sessions = [budget_session]
        await manager.new_chat()

        assert manager.state == ChatState.READY
        assert manager.error is None

    @pytest.mark.asyncio
    async def test_financial_failure_still_ready(self, budget_session, history, identity):
        financial_service = Mock()
        financial_service.get_financial_summary = AsyncMock(side_effect=Exception("db down"))
        manager = make_manager(FakeClient(budget_session), history, financial_service, identity)

        await manager.start()

        assert manager.state == ChatState.READY

    @pytest.mark.asyncio
    async def test_anonymous_session_has_no_stored_chat(
        self, budget_session, chat_repo, message_repo, financial_service
    ):
        history = ChatHistoryService(chat_repo, message_repo, None)
        manager = make_manager(FakeClient(budget_session), history, financial_service)

        await manager.start()

        assert manager.state == ChatState.READY
        assert manager.chat_id is None


# ===== Send Tests =====


class TestSendMessage:
    """Test streamed sends"""

    @pytest.mark.asyncio
    async def test_successful_exchange(self, manager):
        events = await collect(manager.send_message("How do I budget better?"))

        assert [e.type for e in events] == [
            "user_message",
            "placeholder",
            "chunk",
            "chunk",
            "done",
        ]
        assert events[1].data["message"]["pending"] is True
        assert events[3].data["text"] == "Track spending and set savings goals."

        done = events[-1].data
        assert done["message"]["text"] == "Track spending and set savings goals."
        assert done["followups"] == [
            "Can you build a monthly budget template for me?",
            "What 3 changes would save me the most next month?",
        ]
        assert done["title"] == "How do I budget better?"
        assert manager.state == ChatState.READY

        messages = manager.snapshot().messages
        assert [m.sender for m in messages] == [Sender.USER, Sender.BOT]
        assert messages[1].pending is False

    @pytest.mark.asyncio
    async def test_stream_failure_replaces_partial_text(
        self, history, financial_service, identity
    ):
        session = ScriptedSession(["Hel"], error=RuntimeError("connection reset"))
        manager = make_manager(FakeClient(session), history, financial_service, identity)
        await manager.start()

        events = await collect(manager.send_message("Hello"))

        assert events[-1].type == "error"
        assert events[-1].data["text"] == SEND_FAILED_MESSAGE
        assert manager.snapshot().messages[-1].text == SEND_FAILED_MESSAGE
        assert manager.state == ChatState.READY
        assert manager.followups == []

    @pytest.mark.asyncio
    async def test_api_key_failure_message(self, history, financial_service, identity):
        session = ScriptedSession([], error=Exception("Invalid API key provided"))
        manager = make_manager(FakeClient(session), history, financial_service, identity)
        await manager.start()

        events = await collect(manager.send_message("Hello"))

        assert events[-1].data["text"] == API_KEY_MESSAGE

    @pytest.mark.asyncio
    async def test_blank_message_is_noop(self, manager, budget_session):
        assert await collect(manager.send_message("   ")) == []
        assert budget_session.sent == []
        assert manager.transcript == []

    @pytest.mark.asyncio
    async def test_send_while_sending_is_noop(self, history, financial_service, identity):
        session = ScriptedSession(["a", "b"], pause_after=1)
        manager = make_manager(FakeClient(session), history, financial_service, identity)
        await manager.start()

        events = manager.send_message("first")
        for _ in range(3):
            await anext(events)
        assert manager.state == ChatState.SENDING

        assert await collect(manager.send_message("second")) == []
        assert session.sent == ["first"]

        session.resume.set()
        await collect(events)
        assert manager.state == ChatState.READY

    @pytest.mark.asyncio
    async def test_begin_send_reserves_before_streaming(self, manager, budget_session):
        pending = manager.begin_send("first")

        assert manager.state == ChatState.SENDING
        assert [m.text for m in manager.snapshot().messages] == ["first", ""]
        assert manager.begin_send("second") is None
        assert await collect(manager.send_message("second")) == []

        events = await collect(manager.stream_reply(pending))

        assert events[-1].type == "done"
        assert budget_session.sent == ["first"]
        assert manager.state == ChatState.READY

    @pytest.mark.asyncio
    async def test_consumer_disconnect_leaves_session_usable(
        self, history, financial_service, identity
    ):
        session = ScriptedSession(["a", "b"], pause_after=1)
        manager = make_manager(FakeClient(session), history, financial_service, identity)
        await manager.start()

        events = manager.send_message("first")
        for _ in range(3):
            await anext(events)
        await events.aclose()

        assert manager.state == ChatState.READY
        assert manager.snapshot().messages[-1].text == SEND_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_title_only_on_first_exchange(self, manager, chat_repo):
        await collect(manager.send_message("How do I budget better?"))
        second = await collect(manager.send_message("What about investing?"))
        await manager.drain()

        assert second[-1].data["title"] == "How do I budget better?"
        assert chat_repo.chats[manager.chat_id].title == "How do I budget better?"

    @pytest.mark.asyncio
    async def test_long_title_truncated(self, manager):
        text = "What is the best way to pay off my student loans quickly?"

        events = await collect(manager.send_message(text))

        assert events[-1].data["title"] == text[:40] + "…"


# ===== Persistence Tests =====


class TestPersistence:
    """Test best-effort storage of exchanges"""

    @pytest.mark.asyncio
    async def test_exchange_persisted(self, manager, message_repo):
        await collect(manager.send_message("How do I budget better?"))
        await manager.drain()

        stored = await message_repo.get_by_chat(manager.chat_id)
        assert [(m.sender, m.text) for m in stored] == [
            (Sender.USER, "How do I budget better?"),
            (Sender.BOT, "Track spending and set savings goals."),
        ]

    @pytest.mark.asyncio
    async def test_persistence_failure_is_silent(self, manager, message_repo):
        message_repo.create_many = AsyncMock(side_effect=Exception("mongo down"))

        events = await collect(manager.send_message("How do I budget better?"))
        await manager.drain()

        assert events[-1].type == "done"
        assert all(e.type != "error" for e in events)
        assert manager.state == ChatState.READY
        assert manager.error is None

    @pytest.mark.asyncio
    async def test_failed_reply_not_persisted(self, history, message_repo, financial_service, identity):
        session = ScriptedSession(["Hel"], error=RuntimeError("boom"))
        manager = make_manager(FakeClient(session), history, financial_service, identity)
        await manager.start()

        await collect(manager.send_message("Hello"))
        await manager.drain()

        assert message_repo.messages == []

    @pytest.mark.asyncio
    async def test_slow_write_keeps_exchange_order(self, manager, message_repo):
        create_many = message_repo.create_many
        delays = iter([0.05, 0])

        async def slow_first_write(chat_id, messages):
            await asyncio.sleep(next(delays))
            return await create_many(chat_id, messages)

        message_repo.create_many = slow_first_write

        await collect(manager.send_message("first"))
        await collect(manager.send_message("second"))
        await manager.drain()

        stored = [m.text for m in message_repo.messages if m.sender == Sender.USER]
        assert stored == ["first", "second"]


# ===== Abandoned Stream Tests =====


class TestAbandonedStream:
    """Test that a restart drops the old stream's late chunks"""

    @pytest.mark.asyncio
    async def test_late_chunks_dropped_after_new_chat(
        self, history, message_repo, financial_service, identity
    ):
        slow = ScriptedSession(["Hel", "lo"], pause_after=1)
        fresh = ScriptedSession(["ok"])
        manager = make_manager(FakeClient(slow, fresh), history, financial_service, identity)
        await manager.start()

        events = manager.send_message("Hello")
        for _ in range(3):
            await anext(events)

        await manager.new_chat()
        slow.resume.set()
        remaining = await collect(events)
        await manager.drain()

        assert remaining == []
        assert manager.transcript == []
        assert manager.state == ChatState.READY
        assert message_repo.messages == []

    @pytest.mark.asyncio
    async def test_persona_change_restarts(self, manager):
        await collect(manager.send_message("How do I budget better?"))
        old_chat = manager.chat_id

        restarted = await manager.update_profile(UserProfile(persona=Persona.PROFESSIONAL))

        assert restarted is True
        assert manager.chat_id != old_chat
        assert manager.transcript == []
        assert manager.snapshot().suggested_topics[0] == "How can I optimize my taxes?"

    @pytest.mark.asyncio
    async def test_same_persona_keeps_conversation(self, manager):
        await collect(manager.send_message("How do I budget better?"))

        restarted = await manager.update_profile(UserProfile(age=22))

        assert restarted is False
        assert len(manager.transcript) == 2
        assert manager.profile.age == 22


# ===== History Navigation Tests =====


class TestHistoryNavigation:
    """Test selecting and deleting stored chats"""

    @pytest.mark.asyncio
    async def test_select_chat_loads_transcript(self, manager, history):
        stored = (await history.create_chat()).value
        await history.append_messages(
            stored.chat_id,
            [
                Message(id="1", text="Hi", sender=Sender.USER),
                Message(id="2", text="Hello!", sender=Sender.BOT),
            ],
        )

        assert await manager.select_chat(stored.chat_id) is True

        assert manager.chat_id == stored.chat_id
        assert [m.text for m in manager.snapshot().messages] == ["Hi", "Hello!"]
        assert manager.state == ChatState.READY

        events = await collect(manager.send_message("How do I budget better?"))
        assert events[-1].data["title"] is None

    @pytest.mark.asyncio
    async def test_select_empty_chat(self, manager, history):
        empty = (await history.create_chat()).value
        current = manager.chat_id

        assert await manager.select_chat(empty.chat_id) is False
        assert manager.chat_id == current

    @pytest.mark.asyncio
    async def test_delete_active_chat_starts_new(self, manager, chat_repo):
        active = manager.chat_id

        outcome = await manager.delete_chat(active)

        assert outcome.ok
        assert active not in chat_repo.chats
        assert manager.chat_id not in (None, active)

    @pytest.mark.asyncio
    async def test_delete_other_chat_keeps_conversation(self, manager, history, chat_repo):
        other = (await history.create_chat()).value
        active = manager.chat_id

        await manager.delete_chat(other.chat_id)

        assert manager.chat_id == active
        assert other.chat_id not in chat_repo.chats

    @pytest.mark.asyncio
    async def test_clear_all_chats(self, manager, chat_repo):
        await collect(manager.send_message("How do I budget better?"))
        await manager.drain()

        outcome = await manager.clear_all_chats()

        assert outcome.value == 1
        assert list(chat_repo.chats) == [manager.chat_id]
        assert manager.transcript == []
