"""
Chat session endpoints.

A session is one open chat screen. Signed-in callers get persistence and
their stored profile; anonymous callers chat without history.
"""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ...agent.chat_session import ChatSessionManager
from ...agent.llm_client import GenerativeClient
from ...agent.session_manager import ChatSessionRegistry
from ...core.config import Settings, get_settings
from ...core.exceptions import ConflictError, NotFoundError, ValidationError
from ...models.identity import Identity
from ...models.profile import UserProfile
from ...services.chat_history_service import ChatHistoryService
from ...services.financial_data_service import FinancialDataService
from ...services.profile_service import ProfileService
from ..dependencies.auth import get_optional_identity
from ..dependencies.chat_deps import (
    get_generative_client,
    get_optional_chat_history_service,
    get_registry,
)
from ..dependencies.portfolio_deps import (
    get_financial_data_service,
    get_profile_service,
)
from ..schemas.chat_models import (
    DeleteChatsResponse,
    SendMessageRequest,
    SessionResponse,
    StartSessionRequest,
)
from .streaming import chat_stream_response

logger = structlog.get_logger()

router = APIRouter(prefix="/sessions")


def _get_manager(
    session_id: str,
    identity: Identity | None,
    registry: ChatSessionRegistry,
) -> ChatSessionManager:
    manager = registry.get(session_id, identity.user_id if identity else None)
    if manager is None:
        raise NotFoundError("Chat session not found", session_id=session_id)
    return manager


def _response(
    session_id: str, manager: ChatSessionManager, restarted: bool = False
) -> SessionResponse:
    return SessionResponse(
        session_id=session_id, session=manager.snapshot(), restarted=restarted
    )


# ===== Session Lifecycle =====


@router.post("", response_model=SessionResponse)
async def start_session(
    request: StartSessionRequest,
    identity: Identity | None = Depends(get_optional_identity),
    client: GenerativeClient = Depends(get_generative_client),
    history: ChatHistoryService = Depends(get_optional_chat_history_service),
    financial_service: FinancialDataService = Depends(get_financial_data_service),
    profile_service: ProfileService = Depends(get_profile_service),
    registry: ChatSessionRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
) -> SessionResponse:
    """
    Open a chat screen and start its first conversation.

    **Authentication**: Optional. Without a Bearer token the session works
    but nothing is persisted and no financial data is used.

    A failed start is not an HTTP error: the returned session is in the
    `error` state with a displayable message, and `POST /new` retries.
    """
    if identity is not None:
        profile = await profile_service.ensure_profile(identity)
    else:
        profile = request.profile or UserProfile()

    manager = ChatSessionManager(
        client=client,
        history=history,
        financial_service=financial_service,
        settings=settings,
        identity=identity,
        profile=profile,
        grounding=request.grounding,
    )
    await manager.start()
    session_id = registry.register(manager)

    logger.info(
        "Chat session opened",
        session_id=session_id,
        user_id=manager.user_id,
        state=manager.state.value,
    )
    return _response(session_id, manager, restarted=True)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    identity: Identity | None = Depends(get_optional_identity),
    registry: ChatSessionRegistry = Depends(get_registry),
) -> SessionResponse:
    """Current transcript, follow-ups and state of a session."""
    return _response(session_id, _get_manager(session_id, identity, registry))


@router.delete("/{session_id}")
async def close_session(
    session_id: str,
    identity: Identity | None = Depends(get_optional_identity),
    registry: ChatSessionRegistry = Depends(get_registry),
) -> dict[str, bool]:
    """Close a chat screen after its pending persistence finished."""
    manager = _get_manager(session_id, identity, registry)
    await manager.drain()
    registry.remove(session_id, manager.user_id)
    return {"closed": True}


@router.post("/{session_id}/new", response_model=SessionResponse)
async def new_chat(
    session_id: str,
    identity: Identity | None = Depends(get_optional_identity),
    registry: ChatSessionRegistry = Depends(get_registry),
) -> SessionResponse:
    """Start a new conversation with the current profile (allowed in any state)."""
    manager = _get_manager(session_id, identity, registry)
    await manager.new_chat()
    return _response(session_id, manager, restarted=True)


@router.put("/{session_id}/profile", response_model=SessionResponse)
async def update_session_profile(
    session_id: str,
    profile: UserProfile,
    identity: Identity | None = Depends(get_optional_identity),
    registry: ChatSessionRegistry = Depends(get_registry),
) -> SessionResponse:
    """
    Replace the session's profile snapshot; a persona change restarts the chat.

    Signed-in callers normally save through `PUT /api/profile`, which
    updates all of their sessions.
    """
    manager = _get_manager(session_id, identity, registry)
    restarted = await manager.update_profile(profile)
    return _response(session_id, manager, restarted=restarted)


# ===== Messaging =====


@router.post("/{session_id}/messages")
async def send_message(
    session_id: str,
    request: SendMessageRequest,
    identity: Identity | None = Depends(get_optional_identity),
    registry: ChatSessionRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """
    Send a message and stream the reply as Server-Sent Events.

    Events: `user_message`, `placeholder`, `chunk` (cumulative text),
    then `done` (final message, follow-ups, title) or `error`.

    **Errors**: 400 for a blank message, 409 while the session is starting,
    failed, or already sending.
    """
    manager = _get_manager(session_id, identity, registry)

    if not request.message.strip():
        raise ValidationError("Message must not be empty", session_id=session_id)

    # Reserve before responding so a concurrent send sees SENDING
    pending = manager.begin_send(request.message)
    if pending is None:
        raise ConflictError(
            "Chat session is not ready for a new message",
            session_id=session_id,
            state=manager.state.value,
        )

    return chat_stream_response(manager, pending, settings.chat_stream_timeout_seconds)


# ===== History Navigation =====


@router.post("/{session_id}/chats/{chat_id}/select", response_model=SessionResponse)
async def select_chat(
    session_id: str,
    chat_id: str,
    identity: Identity | None = Depends(get_optional_identity),
    registry: ChatSessionRegistry = Depends(get_registry),
) -> SessionResponse:
    """Show a stored chat in this session and continue it."""
    manager = _get_manager(session_id, identity, registry)
    if not await manager.select_chat(chat_id):
        raise NotFoundError("Chat not found or empty", chat_id=chat_id)
    return _response(session_id, manager)


@router.delete("/{session_id}/chats/{chat_id}", response_model=SessionResponse)
async def delete_chat(
    session_id: str,
    chat_id: str,
    identity: Identity | None = Depends(get_optional_identity),
    registry: ChatSessionRegistry = Depends(get_registry),
) -> SessionResponse:
    """Delete a stored chat; deleting the active chat starts a new one."""
    manager = _get_manager(session_id, identity, registry)
    was_active = chat_id == manager.chat_id
    outcome = await manager.delete_chat(chat_id)
    if not outcome.ok and not was_active:
        raise NotFoundError("Chat not found", chat_id=chat_id, reason=outcome.error)
    return _response(session_id, manager, restarted=was_active)


@router.delete("/{session_id}/chats", response_model=DeleteChatsResponse)
async def clear_all_chats(
    session_id: str,
    identity: Identity | None = Depends(get_optional_identity),
    registry: ChatSessionRegistry = Depends(get_registry),
) -> DeleteChatsResponse:
    """Delete every stored chat of the caller and start a new conversation."""
    manager = _get_manager(session_id, identity, registry)
    outcome = await manager.clear_all_chats()
    return DeleteChatsResponse(deleted=outcome.value or 0)

