"""
Holding repository for the investment tracker.
Handles CRUD operations for the holdings collection.
"""

import uuid

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

from ...core.utils.date_utils import utcnow
from ...models.holding import Holding, HoldingCreate

logger = structlog.get_logger()


class HoldingRepository:
    """Repository for portfolio holdings."""

    def __init__(self, collection: AsyncIOMotorCollection):
        """
        Initialize holding repository.

        Args:
            collection: MongoDB collection for holdings
        """
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Create indexes for optimal query performance."""
        await self.collection.create_index("holding_id", unique=True)
        await self.collection.create_index([("user_id", 1), ("created_at", 1)])

        logger.info("Holding indexes created")

    async def list_by_user(self, user_id: str) -> list[Holding]:
        """
        List all holdings for a user, oldest first.

        Args:
            user_id: User identifier

        Returns:
            List of holdings
        """
        cursor = self.collection.find({"user_id": user_id}).sort("created_at", 1)

        holdings = []
        async for doc in cursor:
            doc.pop("_id", None)
            holdings.append(Holding(**doc))

        return holdings

    async def upsert(
        self,
        user_id: str,
        holding_create: HoldingCreate,
        holding_id: str | None = None,
    ) -> Holding:
        """
        Create a holding, or replace the fields of an existing one.

        The user_id filter keeps a user from overwriting another user's
        holding by guessing its ID.

        Args:
            user_id: Owner user ID
            holding_create: Holding fields
            holding_id: Existing holding to replace (None creates a new one)

        Returns:
            Stored holding
        """
        holding_id = holding_id or f"holding_{uuid.uuid4().hex[:12]}"

        doc = await self.collection.find_one_and_update(
            {"holding_id": holding_id, "user_id": user_id},
            {
                "$set": {**holding_create.model_dump(), "ticker": holding_create.ticker.upper()},
                "$setOnInsert": {
                    "holding_id": holding_id,
                    "user_id": user_id,
                    "created_at": utcnow(),
                },
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

        doc.pop("_id", None)

        logger.info("Holding saved", user_id=user_id, holding_id=holding_id)

        return Holding(**doc)

    async def delete(self, user_id: str, holding_id: str) -> bool:
        """
        Delete a holding owned by the user.

        Returns:
            True if deleted, False if not found or not owned
        """
        result = await self.collection.delete_one(
            {"holding_id": holding_id, "user_id": user_id}
        )

        if result.deleted_count > 0:
            logger.info("Holding deleted", user_id=user_id, holding_id=holding_id)
            return True

        return False
