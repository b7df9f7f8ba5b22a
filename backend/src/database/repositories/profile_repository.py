"""
Profile repository for user persona and demographics.
One document per user, keyed by user_id.
"""

from typing import Any

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument

from ...core.utils.date_utils import utcnow
from ...models.profile import ProfileRecord, UserProfile

logger = structlog.get_logger()


def _profile_fields(profile: UserProfile) -> dict[str, Any]:
    """Profile fields as BSON-friendly values (enums as strings)."""
    return profile.model_dump(mode="json")


class ProfileRepository:
    """Repository for profile data access operations."""

    def __init__(self, collection: AsyncIOMotorCollection):
        """
        Initialize profile repository.

        Args:
            collection: MongoDB collection for profiles
        """
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """
        Create indexes for optimal query performance.
        The unique user_id index backs the one-profile-per-user rule.
        """
        await self.collection.create_index("user_id", unique=True, name="idx_profile_user")

        logger.info("Profile indexes ensured")

    async def get(self, user_id: str) -> ProfileRecord | None:
        """
        Get a user's profile.

        Args:
            user_id: User identifier

        Returns:
            Profile if found, None otherwise
        """
        profile_dict = await self.collection.find_one({"user_id": user_id})

        if not profile_dict:
            return None

        profile_dict.pop("_id", None)

        return ProfileRecord(**profile_dict)

    async def upsert(self, user_id: str, profile: UserProfile) -> ProfileRecord:
        """
        Create or replace a user's profile.

        Args:
            user_id: User identifier
            profile: Profile fields to store

        Returns:
            Stored profile
        """
        now = utcnow()
        result = await self.collection.find_one_and_update(
            {"user_id": user_id},
            {
                "$set": {**_profile_fields(profile), "updated_at": now},
                "$setOnInsert": {"user_id": user_id, "created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

        result.pop("_id", None)

        logger.info("Profile saved", user_id=user_id, persona=profile.persona.value)

        return ProfileRecord(**result)

    async def create_if_missing(self, user_id: str) -> bool:
        """
        Insert a default profile unless one already exists.

        A single upsert with only $setOnInsert is atomic, so concurrent or
        repeated calls never produce two documents for the same user.

        Returns:
            True if a profile was created, False if one already existed
        """
        now = utcnow()
        result = await self.collection.update_one(
            {"user_id": user_id},
            {
                "$setOnInsert": {
                    **_profile_fields(UserProfile()),
                    "user_id": user_id,
                    "created_at": now,
                    "updated_at": now,
                }
            },
            upsert=True,
        )

        created = result.upserted_id is not None
        if created:
            logger.info("Default profile created", user_id=user_id)

        return created
