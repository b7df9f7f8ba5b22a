"""
Unit tests for ChatHistoryService.

Every operation must report an outcome instead of raising, so chatting keeps
working when storage fails or the caller is anonymous.
"""

from unittest.mock import AsyncMock

import pytest

from src.models.identity import Identity
from src.models.message import Message, Sender
from src.services.chat_history_service import (
    CHAT_NOT_FOUND,
    NOT_AUTHENTICATED,
    ChatHistoryService,
    PersistenceOutcome,
)

# ===== Fixtures =====


@pytest.fixture
def history(chat_repo, message_repo, identity):
    return ChatHistoryService(chat_repo, message_repo, identity)


@pytest.fixture
def exchange():
    return [
        Message(id="1", text="How do I budget better?", sender=Sender.USER),
        Message(id="2", text="Track spending and set savings goals.", sender=Sender.BOT),
    ]


# ===== Outcome Tests =====


class TestPersistenceOutcome:
    def test_success(self):
        outcome = PersistenceOutcome.success(3)

        assert outcome.ok is True
        assert outcome.value == 3
        assert outcome.error is None

    def test_failure(self):
        outcome = PersistenceOutcome.failure("boom")

        assert outcome.ok is False
        assert outcome.value is None
        assert outcome.error == "boom"


# ===== Round Trip Tests =====


class TestRoundTrip:
    """Test create, append and reload"""

    @pytest.mark.asyncio
    async def test_append_then_load_preserves_order(self, history, exchange):
        chat = (await history.create_chat()).value

        appended = await history.append_messages(chat.chat_id, exchange)
        loaded = await history.load_messages(chat.chat_id)

        assert appended.ok and appended.value == 2
        assert [(m.text, m.sender) for m in loaded.value] == [
            (m.text, m.sender) for m in exchange
        ]

    @pytest.mark.asyncio
    async def test_append_updates_last_activity(self, history, chat_repo, exchange):
        chat = (await history.create_chat()).value
        assert chat.last_message_at is None

        await history.append_messages(chat.chat_id, exchange)

        assert chat_repo.chats[chat.chat_id].last_message_at is not None

    @pytest.mark.asyncio
    async def test_list_chats_most_recent_first(self, history, exchange):
        first = (await history.create_chat()).value
        second = (await history.create_chat()).value
        await history.append_messages(first.chat_id, exchange)

        chats = (await history.list_chats()).value

        assert [c.chat_id for c in chats] == [first.chat_id, second.chat_id]

    @pytest.mark.asyncio
    async def test_rename(self, history):
        chat = (await history.create_chat()).value

        outcome = await history.rename(chat.chat_id, "Budget help")

        assert outcome.value.title == "Budget help"


# ===== Anonymous Caller Tests =====


class TestAnonymous:
    """Test operations without an identity"""

    @pytest.mark.asyncio
    async def test_every_operation_fails_softly(self, chat_repo, message_repo, exchange):
        history = ChatHistoryService(chat_repo, message_repo, None)

        outcomes = [
            await history.create_chat(),
            await history.append_messages("chat_1", exchange),
            await history.list_chats(),
            await history.load_messages("chat_1"),
            await history.rename("chat_1", "x"),
            await history.delete("chat_1"),
            await history.delete_all(),
        ]

        assert all(not o.ok and o.error == NOT_AUTHENTICATED for o in outcomes)
        assert chat_repo.chats == {}


# ===== Ownership Tests =====


class TestOwnership:
    """Test that callers only reach their own chats"""

    @pytest.mark.asyncio
    async def test_other_users_chat_is_not_found(self, chat_repo, message_repo, history, exchange):
        other = ChatHistoryService(chat_repo, message_repo, Identity(user_id="user_2"))
        chat = (await other.create_chat()).value

        assert (await history.load_messages(chat.chat_id)).error == CHAT_NOT_FOUND
        assert (await history.append_messages(chat.chat_id, exchange)).error == CHAT_NOT_FOUND
        assert (await history.delete(chat.chat_id)).error == CHAT_NOT_FOUND
        assert chat.chat_id in chat_repo.chats

    @pytest.mark.asyncio
    async def test_missing_chat(self, history):
        assert (await history.rename("chat_missing", "x")).error == CHAT_NOT_FOUND


# ===== Delete Tests =====


class TestDelete:
    """Test cascading deletes"""

    @pytest.mark.asyncio
    async def test_delete_removes_messages(self, history, chat_repo, message_repo, exchange):
        keep = (await history.create_chat()).value
        drop = (await history.create_chat()).value
        await history.append_messages(keep.chat_id, exchange)
        await history.append_messages(drop.chat_id, exchange)

        outcome = await history.delete(drop.chat_id)

        assert outcome.ok
        assert drop.chat_id not in chat_repo.chats
        assert {m.chat_id for m in message_repo.messages} == {keep.chat_id}

    @pytest.mark.asyncio
    async def test_delete_all_only_touches_caller(
        self, history, chat_repo, message_repo, exchange
    ):
        other = ChatHistoryService(chat_repo, message_repo, Identity(user_id="user_2"))
        theirs = (await other.create_chat()).value
        await other.append_messages(theirs.chat_id, exchange)
        for _ in range(2):
            chat = (await history.create_chat()).value
            await history.append_messages(chat.chat_id, exchange)

        outcome = await history.delete_all()

        assert outcome.value == 2
        assert list(chat_repo.chats) == [theirs.chat_id]
        assert {m.chat_id for m in message_repo.messages} == {theirs.chat_id}


# ===== Failure Tests =====


class TestStorageFailure:
    """Test that repository errors become failed outcomes"""

    @pytest.mark.asyncio
    async def test_error_is_captured(self, history, chat_repo):
        chat_repo.create = AsyncMock(side_effect=Exception("mongo down"))

        outcome = await history.create_chat()

        assert outcome.ok is False
        assert outcome.error == "mongo down"
