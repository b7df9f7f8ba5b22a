"""
Chat history endpoints.

Read and manage persisted chats outside of an open session. All operations
require authentication; chats of other users are reported as not found.
"""

from typing import TypeVar

import structlog
from fastapi import APIRouter, Depends

from ...core.exceptions import DatabaseError, NotFoundError
from ...models.chat import Chat
from ...services.chat_history_service import (
    CHAT_NOT_FOUND,
    ChatHistoryService,
    PersistenceOutcome,
)
from ..dependencies.chat_deps import get_chat_history_service
from ..schemas.chat_models import (
    ChatDetailResponse,
    ChatListResponse,
    DeleteChatsResponse,
    RenameChatRequest,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/chats")

T = TypeVar("T")


def _unwrap(outcome: PersistenceOutcome[T], chat_id: str | None = None) -> T:
    """Value of a successful outcome; failures become HTTP errors."""
    if outcome.ok:
        return outcome.value
    if outcome.error == CHAT_NOT_FOUND:
        raise NotFoundError("Chat not found", chat_id=chat_id)
    raise DatabaseError("Chat history unavailable", chat_id=chat_id, reason=outcome.error)


@router.get("", response_model=ChatListResponse)
async def list_chats(
    history: ChatHistoryService = Depends(get_chat_history_service),
) -> ChatListResponse:
    """
    List the caller's chats, most recently active first.

    **Authentication**: Requires Bearer token in Authorization header.
    """
    chats = _unwrap(await history.list_chats())
    logger.info("Chats listed", user_id=history.user_id, count=len(chats))
    return ChatListResponse(chats=chats)


@router.get("/{chat_id}", response_model=ChatDetailResponse)
async def get_chat_messages(
    chat_id: str,
    history: ChatHistoryService = Depends(get_chat_history_service),
) -> ChatDetailResponse:
    """Stored messages of a chat, oldest first."""
    messages = _unwrap(await history.load_messages(chat_id), chat_id)
    return ChatDetailResponse(chat_id=chat_id, messages=messages)


@router.patch("/{chat_id}", response_model=Chat)
async def rename_chat(
    chat_id: str,
    request: RenameChatRequest,
    history: ChatHistoryService = Depends(get_chat_history_service),
) -> Chat:
    """Rename a chat."""
    return _unwrap(await history.rename(chat_id, request.title.strip()), chat_id)


@router.delete("/{chat_id}")
async def delete_chat(
    chat_id: str,
    history: ChatHistoryService = Depends(get_chat_history_service),
) -> dict[str, bool]:
    """Delete a chat and its messages."""
    _unwrap(await history.delete(chat_id), chat_id)
    return {"deleted": True}


@router.delete("", response_model=DeleteChatsResponse)
async def delete_all_chats(
    history: ChatHistoryService = Depends(get_chat_history_service),
) -> DeleteChatsResponse:
    """Delete every chat of the caller."""
    deleted = _unwrap(await history.delete_all())
    return DeleteChatsResponse(deleted=deleted)
