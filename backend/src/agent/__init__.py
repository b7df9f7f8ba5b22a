"""
FinBot agent module: persona prompts, the generative client and the chat
session state machine.
"""

from .chat_session import ChatSessionManager, ChatState
from .llm_client import GenerativeClient
from .session_manager import ChatSessionRegistry, get_session_registry

__all__ = [
    "ChatSessionManager",
    "ChatState",
    "GenerativeClient",
    "ChatSessionRegistry",
    "get_session_registry",
]
