"""
Shared fixtures: in-memory chat storage for history and session tests.
"""

from itertools import count

import pytest

from src.core.utils.date_utils import utcnow
from src.models.chat import Chat, ChatCreate
from src.models.identity import Identity
from src.models.message import Message, StoredMessage


class InMemoryChatRepository:
    """Dict-backed ChatRepository with the same async surface."""

    def __init__(self):
        self.chats: dict[str, Chat] = {}
        self._ids = count(1)

    async def create(self, chat_create: ChatCreate) -> Chat:
        chat = Chat(chat_id=f"chat_{next(self._ids)}", **chat_create.model_dump())
        self.chats[chat.chat_id] = chat
        return chat

    async def get(self, chat_id: str) -> Chat | None:
        return self.chats.get(chat_id)

    async def list_by_user(self, user_id: str, limit: int = 100) -> list[Chat]:
        owned = [c for c in self.chats.values() if c.user_id == user_id]
        owned.sort(
            key=lambda c: (c.last_message_at or c.created_at, c.created_at), reverse=True
        )
        return owned[:limit]

    async def list_ids_by_user(self, user_id: str) -> list[str]:
        return [c.chat_id for c in self.chats.values() if c.user_id == user_id]

    async def update_title(self, chat_id: str, title: str) -> Chat | None:
        chat = self.chats.get(chat_id)
        if chat is None:
            return None
        self.chats[chat_id] = chat.model_copy(update={"title": title})
        return self.chats[chat_id]

    async def update_last_message_at(self, chat_id: str) -> Chat | None:
        chat = self.chats.get(chat_id)
        if chat is None:
            return None
        self.chats[chat_id] = chat.model_copy(update={"last_message_at": utcnow()})
        return self.chats[chat_id]

    async def delete(self, chat_id: str) -> bool:
        return self.chats.pop(chat_id, None) is not None

    async def delete_by_user(self, user_id: str) -> int:
        ids = await self.list_ids_by_user(user_id)
        for chat_id in ids:
            del self.chats[chat_id]
        return len(ids)


class InMemoryMessageRepository:
    """List-backed MessageRepository."""

    def __init__(self):
        self.messages: list[StoredMessage] = []
        self._ids = count(1)

    async def create_many(self, chat_id: str, messages: list[Message]) -> list[StoredMessage]:
        stored = [
            StoredMessage(
                message_id=f"msg_{next(self._ids)}",
                chat_id=chat_id,
                sender=m.sender,
                text=m.text,
            )
            for m in messages
        ]
        self.messages.extend(stored)
        return stored

    async def get_by_chat(self, chat_id: str, limit: int | None = None) -> list[StoredMessage]:
        return [m for m in self.messages if m.chat_id == chat_id]

    async def delete_by_chat(self, chat_id: str) -> int:
        before = len(self.messages)
        self.messages = [m for m in self.messages if m.chat_id != chat_id]
        return before - len(self.messages)

    async def delete_by_chats(self, chat_ids: list[str]) -> int:
        before = len(self.messages)
        self.messages = [m for m in self.messages if m.chat_id not in chat_ids]
        return before - len(self.messages)


@pytest.fixture
def chat_repo():
    return InMemoryChatRepository()


@pytest.fixture
def message_repo():
    return InMemoryMessageRepository()


@pytest.fixture
def identity():
    return Identity(user_id="user_1", email="asha@example.com")
