"""
Transaction models for cash-flow tracking.

Amounts are signed: positive is money in, negative is money out.
"""

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

from ..core.utils.date_utils import utcnow

DEFAULT_CATEGORY = "Uncategorized"


class Transaction(BaseModel):
    """Income or expense record."""

    transaction_id: str = Field(..., description="Unique transaction identifier")
    user_id: str = Field(..., description="Owner user ID")
    description: str = Field("", description="What the money was for")
    amount: float = Field(..., description="Signed amount")
    type: Literal["income", "expense"] = Field(..., description="Direction")
    category: str = Field(DEFAULT_CATEGORY, description="Category label")
    date: dt.date = Field(..., description="Booking date")

    created_at: dt.datetime = Field(default_factory=utcnow)


class TransactionCreate(BaseModel):
    """Request model for creating or replacing a transaction."""

    description: str = Field("", max_length=200)
    amount: float
    type: Literal["income", "expense"]
    category: str = Field(DEFAULT_CATEGORY, min_length=1, max_length=60)
    date: dt.date
