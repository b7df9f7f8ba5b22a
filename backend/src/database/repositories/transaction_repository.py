"""
Transaction repository for cash-flow tracking.
Handles CRUD operations for the transactions collection.
"""

import uuid
from typing import Any

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

from ...core.utils.date_utils import utcnow
from ...models.transaction import Transaction, TransactionCreate

logger = structlog.get_logger()


class TransactionRepository:
    """Repository for income and expense records."""

    def __init__(self, collection: AsyncIOMotorCollection):
        """
        Initialize transaction repository.

        Args:
            collection: MongoDB collection for transactions
        """
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """
        Create indexes for optimal query performance.
        Called during application startup.
        """
        await self.collection.create_index("transaction_id", unique=True)
        await self.collection.create_index([("user_id", 1), ("date", -1)])

        logger.info("Transaction indexes created")

    async def list_by_user(self, user_id: str) -> list[Transaction]:
        """
        List a user's transactions, newest first.

        Args:
            user_id: User identifier

        Returns:
            List of transactions
        """
        cursor = self.collection.find({"user_id": user_id}).sort("date", -1)

        transactions = []
        async for doc in cursor:
            doc.pop("_id", None)
            transactions.append(Transaction(**doc))

        return transactions

    async def upsert(
        self,
        user_id: str,
        transaction_create: TransactionCreate,
        transaction_id: str | None = None,
    ) -> Transaction:
        """
        Create a transaction, or replace the fields of an existing one.

        Dates are stored as ISO strings (BSON has no date-only type); they
        still sort chronologically.

        Args:
            user_id: Owner user ID
            transaction_create: Transaction fields
            transaction_id: Existing transaction to replace (None creates one)

        Returns:
            Stored transaction
        """
        transaction_id = transaction_id or f"txn_{uuid.uuid4().hex[:12]}"

        fields: dict[str, Any] = transaction_create.model_dump()
        fields["date"] = transaction_create.date.isoformat()

        doc = await self.collection.find_one_and_update(
            {"transaction_id": transaction_id, "user_id": user_id},
            {
                "$set": fields,
                "$setOnInsert": {
                    "transaction_id": transaction_id,
                    "user_id": user_id,
                    "created_at": utcnow(),
                },
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

        doc.pop("_id", None)

        logger.info(
            "Transaction saved",
            user_id=user_id,
            transaction_id=transaction_id,
            amount=transaction_create.amount,
        )

        return Transaction(**doc)

    async def delete(self, user_id: str, transaction_id: str) -> bool:
        """
        Delete a transaction owned by the user.

        Returns:
            True if deleted, False if not found or not owned
        """
        result = await self.collection.delete_one(
            {"transaction_id": transaction_id, "user_id": user_id}
        )

        if result.deleted_count > 0:
            logger.info(
                "Transaction deleted", user_id=user_id, transaction_id=transaction_id
            )
            return True

        return False
