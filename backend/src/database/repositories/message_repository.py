"""
Message repository for conversation history.
Handles CRUD operations for the chat_messages collection.
"""

import uuid
from datetime import timedelta

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection

from ...core.utils.date_utils import utcnow
from ...models.message import Message, StoredMessage

logger = structlog.get_logger()


class MessageRepository:
    """Repository for message data access operations."""

    def __init__(self, collection: AsyncIOMotorCollection):
        """
        Initialize message repository.

        Args:
            collection: MongoDB collection for messages
        """
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """
        Create indexes for optimal query performance.
        Called during application startup.
        """
        await self.collection.create_index(
            [("chat_id", 1), ("created_at", 1)], name="idx_chat_messages"
        )

        logger.info("Message indexes ensured")

    async def create_many(
        self, chat_id: str, messages: list[Message]
    ) -> list[StoredMessage]:
        """
        Append messages to a chat in one insert.

        Timestamps are spaced one millisecond apart so that ordering by
        created_at reproduces the order given here.

        Args:
            chat_id: Chat identifier
            messages: Transcript messages in conversation order

        Returns:
            Stored messages with generated IDs
        """
        if not messages:
            return []

        base = utcnow()
        stored = [
            StoredMessage(
                message_id=f"msg_{uuid.uuid4().hex[:12]}",
                chat_id=chat_id,
                sender=message.sender,
                text=message.text,
                created_at=base + timedelta(milliseconds=offset),
            )
            for offset, message in enumerate(messages)
        ]

        await self.collection.insert_many(
            [
                {**message.model_dump(), "sender": message.sender.value}
                for message in stored
            ],
            ordered=True,
        )

        logger.info("Messages stored", chat_id=chat_id, count=len(stored))

        return stored

    async def get_by_chat(self, chat_id: str, limit: int = 500) -> list[StoredMessage]:
        """
        Get messages for a chat.

        Args:
            chat_id: Chat identifier
            limit: Maximum number of messages to return

        Returns:
            List of messages sorted by created_at ascending
        """
        cursor = (
            self.collection.find({"chat_id": chat_id})
            .sort("created_at", 1)  # Ascending (oldest first)
            .limit(limit)
        )

        messages = []
        async for message_dict in cursor:
            # Remove MongoDB _id field
            message_dict.pop("_id", None)
            messages.append(StoredMessage(**message_dict))

        return messages

    async def delete_by_chat(self, chat_id: str) -> int:
        """
        Delete all messages of a chat.

        Returns:
            Number of messages deleted
        """
        result = await self.collection.delete_many({"chat_id": chat_id})

        logger.info("Chat messages deleted", chat_id=chat_id, count=result.deleted_count)

        return result.deleted_count

    async def delete_by_chats(self, chat_ids: list[str]) -> int:
        """Delete all messages belonging to any of the given chats."""
        if not chat_ids:
            return 0

        result = await self.collection.delete_many({"chat_id": {"$in": chat_ids}})
        return result.deleted_count
