"""
Chat repository for conversation history.
Handles CRUD operations for the chats collection.
"""

import uuid
from typing import Any

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

from ...core.utils.date_utils import utcnow
from ...models.chat import Chat, ChatCreate

logger = structlog.get_logger()


class ChatRepository:
    """Repository for chat data access operations."""

    def __init__(self, collection: AsyncIOMotorCollection):
        """
        Initialize chat repository.

        Args:
            collection: MongoDB collection for chats
        """
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """
        Create indexes for optimal query performance.
        Called during application startup.
        """
        await self.collection.create_index("chat_id", unique=True, name="idx_chat_id")
        await self.collection.create_index(
            [("user_id", 1), ("last_message_at", -1), ("created_at", -1)],
            name="idx_user_chats",
        )

        logger.info("Chat indexes ensured")

    async def create(self, chat_create: ChatCreate) -> Chat:
        """
        Create a new chat.

        Args:
            chat_create: Chat creation data

        Returns:
            Created chat with generated ID
        """
        chat = Chat(
            chat_id=f"chat_{uuid.uuid4().hex[:12]}",
            user_id=chat_create.user_id,
            title=chat_create.title,
            created_at=utcnow(),
            last_message_at=None,
        )

        await self.collection.insert_one(chat.model_dump())

        logger.info("Chat created", chat_id=chat.chat_id, user_id=chat.user_id)

        return chat

    async def get(self, chat_id: str) -> Chat | None:
        """
        Get chat by ID.

        Args:
            chat_id: Chat identifier

        Returns:
            Chat if found, None otherwise
        """
        chat_dict = await self.collection.find_one({"chat_id": chat_id})

        if not chat_dict:
            return None

        # Remove MongoDB _id field
        chat_dict.pop("_id", None)

        return Chat(**chat_dict)

    async def list_by_user(self, user_id: str, limit: int = 50) -> list[Chat]:
        """
        List a user's chats, most recently active first.

        Chats that never received a message have a null last_message_at,
        which sorts after every timestamp in descending order, so they fall
        back to creation time ordering at the end of the list.

        Args:
            user_id: User identifier
            limit: Maximum number of chats to return

        Returns:
            List of chats
        """
        cursor = (
            self.collection.find({"user_id": user_id})
            .sort([("last_message_at", -1), ("created_at", -1)])
            .limit(limit)
        )

        chats = []
        async for chat_dict in cursor:
            chat_dict.pop("_id", None)
            chats.append(Chat(**chat_dict))

        return chats

    async def update_title(self, chat_id: str, title: str) -> Chat | None:
        """
        Rename a chat.

        Returns:
            Updated chat if found, None otherwise
        """
        result = await self.collection.find_one_and_update(
            {"chat_id": chat_id},
            {"$set": {"title": title}},
            return_document=ReturnDocument.AFTER,
        )

        if not result:
            return None

        result.pop("_id", None)

        logger.info("Chat renamed", chat_id=chat_id)

        return Chat(**result)

    async def update_last_message_at(self, chat_id: str) -> Chat | None:
        """
        Update chat's last message timestamp.

        Args:
            chat_id: Chat identifier

        Returns:
            Updated chat if found, None otherwise
        """
        result = await self.collection.find_one_and_update(
            {"chat_id": chat_id},
            {"$set": {"last_message_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

        if not result:
            return None

        result.pop("_id", None)

        return Chat(**result)

    async def delete(self, chat_id: str) -> bool:
        """
        Delete a chat (hard delete).

        Args:
            chat_id: Chat identifier

        Returns:
            True if deleted, False if not found
        """
        result = await self.collection.delete_one({"chat_id": chat_id})

        if result.deleted_count > 0:
            logger.info("Chat deleted", chat_id=chat_id)
            return True

        return False

    async def list_ids_by_user(self, user_id: str) -> list[str]:
        """All chat IDs owned by a user."""
        cursor = self.collection.find({"user_id": user_id}, {"chat_id": 1})
        return [doc["chat_id"] async for doc in cursor]

    async def delete_by_user(self, user_id: str) -> int:
        """
        Delete every chat owned by a user.

        Returns:
            Number of chats deleted
        """
        query: dict[str, Any] = {"user_id": user_id}
        result = await self.collection.delete_many(query)

        logger.info("User chats deleted", user_id=user_id, count=result.deleted_count)

        return result.deleted_count
