"""
Request/Response models for profile and portfolio endpoints.
"""

from pydantic import BaseModel

from ...models.holding import Holding
from ...models.profile import UserProfile
from ...models.transaction import Transaction


class ProfileResponse(BaseModel):
    profile: UserProfile
    sessions_restarted: int = 0


class HoldingListResponse(BaseModel):
    holdings: list[Holding]


class TransactionListResponse(BaseModel):
    transactions: list[Transaction]
