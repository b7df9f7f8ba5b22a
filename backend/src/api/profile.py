"""
Profile endpoints.

The profile selects the assistant persona and fills the personal context of
its system prompt. Saving a profile updates the caller's open chat sessions.
"""

import structlog
from fastapi import APIRouter, Depends

from ..agent.session_manager import ChatSessionRegistry
from ..models.identity import Identity
from ..models.profile import UserProfile
from ..services.profile_service import ProfileService
from .dependencies.auth import get_current_identity
from .dependencies.chat_deps import get_registry
from .dependencies.portfolio_deps import get_profile_service
from .schemas.portfolio_models import ProfileResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    identity: Identity = Depends(get_current_identity),
    profile_service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Get the caller's profile.

    The first call after sign-in creates the default Student profile;
    repeated calls never create a second one.
    """
    profile = await profile_service.ensure_profile(identity)
    return ProfileResponse(profile=profile)


@router.put("", response_model=ProfileResponse)
async def save_profile(
    profile: UserProfile,
    identity: Identity = Depends(get_current_identity),
    profile_service: ProfileService = Depends(get_profile_service),
    registry: ChatSessionRegistry = Depends(get_registry),
) -> ProfileResponse:
    """
    Save the caller's profile.

    Open chat sessions pick up the new profile; sessions whose persona
    changed start a new conversation.
    """
    saved = await profile_service.save_profile(identity, profile)
    restarted = await registry.notify_profile_changed(identity.user_id, saved)

    logger.info(
        "Profile updated",
        user_id=identity.user_id,
        persona=saved.persona.value,
        sessions_restarted=restarted,
    )
    return ProfileResponse(profile=saved, sessions_restarted=restarted)
