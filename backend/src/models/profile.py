"""
User profile models.

The profile drives the assistant's persona and the personal context block of
its system prompt. One profile per authenticated user.
"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ..core.utils.date_utils import utcnow


class Persona(str, Enum):
    """Behavioral mode of the assistant."""

    STUDENT = "Student"
    PROFESSIONAL = "Professional"


class IncomeRange(str, Enum):
    """Annual income brackets offered by the profile screen."""

    LT_30K = "< ₹30,000"
    FROM_30K_TO_50K = "₹30,000 - ₹50,000"
    FROM_50K_TO_100K = "₹50,000 - ₹100,000"
    FROM_100K_TO_200K = "₹100,000 - ₹200,000"
    GT_200K = "> ₹200,000"


TimeHorizon = Literal["short", "medium", "long", ""]


class UserProfile(BaseModel):
    """
    Persona and demographic attributes of a user.

    Empty form fields arrive as "" and are kept as "not set": age becomes
    None, income stays "".
    """

    persona: Persona = Field(Persona.STUDENT, description="Assistant persona")
    age: int | None = Field(None, ge=0, le=130, description="Age in years")
    income: IncomeRange | Literal[""] = Field("", description="Income bracket")
    goals: str = Field("", description="Free-text financial goals")
    risk_tolerance: int = Field(3, ge=1, le=5, description="1 (low) to 5 (high)")
    time_horizon: TimeHorizon = Field("", description="Investment time horizon")

    # Display / locale metadata
    display_name: str = ""
    avatar_data_url: str = ""
    country: str = ""
    currency: str = ""
    locale: str = ""

    @field_validator("age", mode="before")
    @classmethod
    def blank_age_is_unset(cls, value: object) -> object:
        if value == "" or value is None:
            return None
        return value

    class Config:
        json_schema_extra = {
            "example": {
                "persona": "Professional",
                "age": 29,
                "income": "₹50,000 - ₹100,000",
                "goals": "Buy a house, retire early",
                "risk_tolerance": 4,
                "time_horizon": "long",
                "display_name": "Asha",
                "country": "IN",
                "currency": "INR",
                "locale": "en-IN",
            }
        }


class ProfileRecord(UserProfile):
    """Profile as stored in MongoDB, scoped by user."""

    user_id: str = Field(..., description="Owner user ID")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_profile(self) -> UserProfile:
        """Strip storage fields."""
        return UserProfile(**self.model_dump(exclude={"user_id", "created_at", "updated_at"}))
