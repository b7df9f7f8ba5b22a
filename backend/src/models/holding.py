"""
Holding model for the investment tracker.

A holding is a user-maintained position: current value and the gain on it.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ..core.utils.date_utils import utcnow


class Holding(BaseModel):
    """Investment position in a user's portfolio."""

    holding_id: str = Field(..., description="Unique holding identifier")
    user_id: str = Field(..., description="Owner user ID")
    name: str = Field(..., description="Instrument name")
    ticker: str = Field(..., description="Ticker symbol")
    value: float = Field(..., description="Current market value")
    gain: float = Field(0.0, description="Unrealized gain (negative for a loss)")

    created_at: datetime = Field(default_factory=utcnow)

    class Config:
        """Pydantic config."""
        json_schema_extra = {
            "example": {
                "holding_id": "holding_abc123def456",
                "user_id": "user_123",
                "name": "Nifty 50 Index Fund",
                "ticker": "NIFTYBEES",
                "value": 1000.0,
                "gain": 100.0,
                "created_at": "2025-11-01T10:00:00Z",
            }
        }


class HoldingCreate(BaseModel):
    """Request model for creating or replacing a holding."""

    name: str = Field(..., min_length=1, max_length=120)
    ticker: str = Field(..., min_length=1, max_length=20)
    value: float = Field(..., ge=0)
    gain: float = 0.0
