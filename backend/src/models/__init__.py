"""
Pydantic models for MongoDB collections and the chat transcript.
Provides type safety and validation for database operations.
"""

from .chat import Chat, ChatCreate
from .financial_summary import FinancialSummary
from .holding import Holding, HoldingCreate
from .message import Message, Sender, StoredMessage
from .profile import IncomeRange, Persona, ProfileRecord, UserProfile
from .transaction import Transaction, TransactionCreate

__all__ = [
    "Chat",
    "ChatCreate",
    "Message",
    "Sender",
    "StoredMessage",
    "Persona",
    "IncomeRange",
    "UserProfile",
    "ProfileRecord",
    "Holding",
    "HoldingCreate",
    "Transaction",
    "TransactionCreate",
    "FinancialSummary",
]
