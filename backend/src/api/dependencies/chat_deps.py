"""
Dependencies for chat API endpoints.
"""

from fastapi import Depends

from ...agent.llm_client import GenerativeClient
from ...agent.session_manager import ChatSessionRegistry, get_session_registry
from ...core.config import Settings, get_settings
from ...database.mongodb import CHAT_MESSAGES, CHATS, MongoDB
from ...database.repositories.chat_repository import ChatRepository
from ...database.repositories.message_repository import MessageRepository
from ...models.identity import Identity
from ...services.chat_history_service import ChatHistoryService
from .auth import get_current_identity, get_mongodb, get_optional_identity

# ===== Generative Client Singleton (Per-Worker Process) =====
# One ChatTongyi client is shared by every session of the worker

_client_singleton: GenerativeClient | None = None


def get_generative_client(settings: Settings = Depends(get_settings)) -> GenerativeClient:
    """Get or create the shared generative client."""
    global _client_singleton
    if _client_singleton is None:
        _client_singleton = GenerativeClient(settings)
    return _client_singleton


def get_registry() -> ChatSessionRegistry:
    """Get the in-memory chat session registry."""
    return get_session_registry()


# ===== MongoDB and Repository Dependencies =====


def get_chat_repository(mongodb: MongoDB = Depends(get_mongodb)) -> ChatRepository:
    """Get chat repository instance."""
    return ChatRepository(mongodb.get_collection(CHATS))


def get_message_repository(
    mongodb: MongoDB = Depends(get_mongodb),
) -> MessageRepository:
    """Get message repository instance."""
    return MessageRepository(mongodb.get_collection(CHAT_MESSAGES))


# ===== Service Dependencies =====


def get_chat_history_service(
    chat_repo: ChatRepository = Depends(get_chat_repository),
    message_repo: MessageRepository = Depends(get_message_repository),
    identity: Identity = Depends(get_current_identity),
) -> ChatHistoryService:
    """Chat history bound to the authenticated caller."""
    return ChatHistoryService(chat_repo, message_repo, identity)


def get_optional_chat_history_service(
    chat_repo: ChatRepository = Depends(get_chat_repository),
    message_repo: MessageRepository = Depends(get_message_repository),
    identity: Identity | None = Depends(get_optional_identity),
) -> ChatHistoryService:
    """Chat history for a possibly anonymous caller (fails softly without identity)."""
    return ChatHistoryService(chat_repo, message_repo, identity)
