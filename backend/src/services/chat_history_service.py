"""
Chat history adapter.

Persists chats and their messages for one caller. Every operation returns a
PersistenceOutcome instead of raising: chatting keeps working when storage
is down or the caller is anonymous, and failures are logged here.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from ..database.repositories.chat_repository import ChatRepository
from ..database.repositories.message_repository import MessageRepository
from ..models.chat import Chat, ChatCreate
from ..models.identity import Identity
from ..models.message import Message

logger = structlog.get_logger()

T = TypeVar("T")

NOT_AUTHENTICATED = "not authenticated"
CHAT_NOT_FOUND = "chat not found"


@dataclass(frozen=True)
class PersistenceOutcome(Generic[T]):
    """Result of a best-effort storage call."""

    ok: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "PersistenceOutcome[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "PersistenceOutcome[T]":
        return cls(ok=False, error=error)


class ChatHistoryService:
    """Best-effort chat persistence scoped to an optional identity."""

    def __init__(
        self,
        chat_repo: ChatRepository,
        message_repo: MessageRepository,
        identity: Identity | None,
    ):
        self.chat_repo = chat_repo
        self.message_repo = message_repo
        self.identity = identity

    @property
    def user_id(self) -> str | None:
        return self.identity.user_id if self.identity else None

    async def _run(
        self,
        operation: str,
        call: Callable[[str], Awaitable[PersistenceOutcome[T]]],
        **context: object,
    ) -> PersistenceOutcome[T]:
        """Run `call(user_id)`, turning a missing identity or any error into a failure."""
        user_id = self.user_id
        if user_id is None:
            logger.debug("Chat history skipped", operation=operation, reason=NOT_AUTHENTICATED)
            return PersistenceOutcome.failure(NOT_AUTHENTICATED)

        try:
            outcome = await call(user_id)
        except Exception as e:
            logger.error(
                "Chat history operation failed",
                operation=operation,
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
                **context,
            )
            return PersistenceOutcome.failure(str(e))

        if not outcome.ok:
            logger.warning(
                "Chat history operation rejected",
                operation=operation,
                user_id=user_id,
                error=outcome.error,
                **context,
            )
        return outcome

    async def _owned_chat(self, user_id: str, chat_id: str) -> Chat | None:
        chat = await self.chat_repo.get(chat_id)
        if chat is None or chat.user_id != user_id:
            return None
        return chat

    async def create_chat(self, title: str | None = None) -> PersistenceOutcome[Chat]:
        """Create an empty chat owned by the caller."""

        async def call(user_id: str) -> PersistenceOutcome[Chat]:
            chat = await self.chat_repo.create(ChatCreate(user_id=user_id, title=title))
            return PersistenceOutcome.success(chat)

        return await self._run("create_chat", call)

    async def append_messages(
        self, chat_id: str, messages: list[Message]
    ) -> PersistenceOutcome[int]:
        """Append messages in order and bump the chat's last activity time."""

        async def call(user_id: str) -> PersistenceOutcome[int]:
            if await self._owned_chat(user_id, chat_id) is None:
                return PersistenceOutcome.failure(CHAT_NOT_FOUND)

            stored = await self.message_repo.create_many(chat_id, messages)
            await self.chat_repo.update_last_message_at(chat_id)
            return PersistenceOutcome.success(len(stored))

        return await self._run("append_messages", call, chat_id=chat_id)

    async def list_chats(self) -> PersistenceOutcome[list[Chat]]:
        """Caller's chats, most recently active first."""

        async def call(user_id: str) -> PersistenceOutcome[list[Chat]]:
            return PersistenceOutcome.success(await self.chat_repo.list_by_user(user_id))

        return await self._run("list_chats", call)

    async def load_messages(self, chat_id: str) -> PersistenceOutcome[list[Message]]:
        """Stored transcript of a chat, oldest first."""

        async def call(user_id: str) -> PersistenceOutcome[list[Message]]:
            if await self._owned_chat(user_id, chat_id) is None:
                return PersistenceOutcome.failure(CHAT_NOT_FOUND)

            stored = await self.message_repo.get_by_chat(chat_id)
            return PersistenceOutcome.success([m.to_message() for m in stored])

        return await self._run("load_messages", call, chat_id=chat_id)

    async def rename(self, chat_id: str, title: str) -> PersistenceOutcome[Chat]:
        async def call(user_id: str) -> PersistenceOutcome[Chat]:
            if await self._owned_chat(user_id, chat_id) is None:
                return PersistenceOutcome.failure(CHAT_NOT_FOUND)

            chat = await self.chat_repo.update_title(chat_id, title)
            if chat is None:
                return PersistenceOutcome.failure(CHAT_NOT_FOUND)
            return PersistenceOutcome.success(chat)

        return await self._run("rename", call, chat_id=chat_id)

    async def delete(self, chat_id: str) -> PersistenceOutcome[bool]:
        """Delete a chat and all of its messages."""

        async def call(user_id: str) -> PersistenceOutcome[bool]:
            if await self._owned_chat(user_id, chat_id) is None:
                return PersistenceOutcome.failure(CHAT_NOT_FOUND)

            await self.message_repo.delete_by_chat(chat_id)
            await self.chat_repo.delete(chat_id)
            return PersistenceOutcome.success(True)

        return await self._run("delete", call, chat_id=chat_id)

    async def delete_all(self) -> PersistenceOutcome[int]:
        """Delete every chat of the caller, messages included."""

        async def call(user_id: str) -> PersistenceOutcome[int]:
            chat_ids = await self.chat_repo.list_ids_by_user(user_id)
            await self.message_repo.delete_by_chats(chat_ids)
            deleted = await self.chat_repo.delete_by_user(user_id)
            return PersistenceOutcome.success(deleted)

        return await self._run("delete_all", call)
