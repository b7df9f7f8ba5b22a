"""
Request/Response models for chat API endpoints.
"""

from pydantic import BaseModel, Field

from ...agent.chat_session import SessionSnapshot
from ...models.chat import Chat
from ...models.message import Message
from ...models.profile import UserProfile

# ===== Request Models =====


class StartSessionRequest(BaseModel):
    """Open a chat screen."""

    profile: UserProfile | None = Field(
        None,
        description="Profile snapshot for anonymous callers (signed-in callers use their stored profile)",
    )
    grounding: str | None = Field(
        None,
        max_length=20000,
        description="Optional user-provided context the assistant should ground on",
    )


class SendMessageRequest(BaseModel):
    """User message for the active chat."""

    message: str = Field(..., max_length=10000, description="User message text")


class RenameChatRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)


# ===== Response Models =====


class SessionResponse(BaseModel):
    """Chat screen state plus the session handle."""

    session_id: str
    session: SessionSnapshot
    restarted: bool = Field(False, description="True if the call started a new conversation")


class ChatListResponse(BaseModel):
    chats: list[Chat]


class ChatDetailResponse(BaseModel):
    chat_id: str
    messages: list[Message]


class DeleteChatsResponse(BaseModel):
    deleted: int
