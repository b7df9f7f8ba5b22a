"""API request/response schemas."""

from .chat_models import (
    ChatDetailResponse,
    ChatListResponse,
    DeleteChatsResponse,
    RenameChatRequest,
    SendMessageRequest,
    SessionResponse,
    StartSessionRequest,
)
from .portfolio_models import (
    HoldingListResponse,
    ProfileResponse,
    TransactionListResponse,
)

__all__ = [
    "ChatDetailResponse",
    "ChatListResponse",
    "DeleteChatsResponse",
    "RenameChatRequest",
    "SendMessageRequest",
    "SessionResponse",
    "StartSessionRequest",
    "HoldingListResponse",
    "ProfileResponse",
    "TransactionListResponse",
]
