"""
Chat models for persisted conversations.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ..core.utils.date_utils import utcnow


class ChatCreate(BaseModel):
    """Request model for creating a new chat."""

    user_id: str = Field(..., description="User who owns this chat")
    title: str | None = Field(None, description="Chat title (set after first exchange)")


class Chat(BaseModel):
    """
    Chat record for database storage.

    Messages live in their own collection; the chat only carries metadata
    for the history list.
    """

    chat_id: str = Field(..., description="Unique chat identifier")
    user_id: str = Field(..., description="User who owns this chat")
    title: str | None = Field(None, description="Chat title")

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    last_message_at: datetime | None = Field(None, description="Last message timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "chat_id": "chat_abc123def456",
                "user_id": "5f1c9a2e-7d7b-4a51-9d1e-0c2b9f3e8a11",
                "title": "How do I budget better?",
                "created_at": "2025-10-05T10:00:00Z",
                "last_message_at": "2025-10-05T10:15:00Z",
            }
        }
