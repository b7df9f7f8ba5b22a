"""
Authenticated identity passed explicitly to components that need
user-scoped storage access.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """Verified caller identity (subject of the bearer token)."""

    user_id: str
    email: str | None = None
