"""
Message models for chat conversations.

Two shapes exist: `Message` is a transcript entry as the UI sees it, and
`StoredMessage` is the persisted row belonging to a chat.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..core.utils.date_utils import utcnow


class Sender(str, Enum):
    """Who authored a message."""

    USER = "user"
    BOT = "bot"


class Message(BaseModel):
    """
    Transcript entry.

    Immutable. `pending` marks the bot reply that is still streaming; the UI
    renders it as "typing" rather than as empty content.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Message identifier (creation time in ms)")
    text: str = Field(..., description="Message text")
    sender: Sender = Field(..., description="Message author")
    pending: bool = Field(False, description="True while the bot reply streams")


class StoredMessage(BaseModel):
    """Message row for database storage."""

    message_id: str = Field(..., description="Unique message identifier")
    chat_id: str = Field(..., description="Chat this message belongs to")
    sender: Sender = Field(..., description="Message author")
    text: str = Field(..., description="Message text")
    created_at: datetime = Field(default_factory=utcnow)

    def to_message(self) -> Message:
        return Message(id=self.message_id, text=self.text, sender=self.sender)

    class Config:
        json_schema_extra = {
            "example": {
                "message_id": "msg_abc123def456",
                "chat_id": "chat_xyz789abc012",
                "sender": "bot",
                "text": "Track spending and set savings goals.",
                "created_at": "2025-10-05T10:15:00Z",
            }
        }
