"""
Repository layer for MongoDB data access.
Provides clean abstraction over database operations.
"""

from .chat_repository import ChatRepository
from .holding_repository import HoldingRepository
from .message_repository import MessageRepository
from .profile_repository import ProfileRepository
from .transaction_repository import TransactionRepository

__all__ = [
    "ChatRepository",
    "MessageRepository",
    "ProfileRepository",
    "HoldingRepository",
    "TransactionRepository",
]
