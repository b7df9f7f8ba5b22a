"""
Profile service: load, save and first-sign-in creation of user profiles.
"""

import structlog

from ..database.repositories.profile_repository import ProfileRepository
from ..models.identity import Identity
from ..models.profile import UserProfile

logger = structlog.get_logger()


class ProfileService:
    """Service for user profile operations."""

    def __init__(self, profile_repo: ProfileRepository):
        self.profile_repo = profile_repo

    async def load_profile(self, identity: Identity) -> UserProfile | None:
        """Stored profile of the caller, or None if none exists."""
        record = await self.profile_repo.get(identity.user_id)
        return record.to_profile() if record else None

    async def save_profile(self, identity: Identity, profile: UserProfile) -> UserProfile:
        """Create or replace the caller's profile."""
        record = await self.profile_repo.upsert(identity.user_id, profile)
        return record.to_profile()

    async def ensure_profile(self, identity: Identity) -> UserProfile:
        """
        Make sure the caller has a profile, creating the default Student
        profile on first sign-in.

        Idempotent: repeated or concurrent calls never create a second record.
        """
        created = await self.profile_repo.create_if_missing(identity.user_id)
        if created:
            logger.info("Profile initialized on first sign-in", user_id=identity.user_id)

        record = await self.profile_repo.get(identity.user_id)
        return record.to_profile() if record else UserProfile()
