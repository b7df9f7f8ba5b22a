"""
Core utility functions for the FinBot backend.
"""

from .date_utils import epoch_millis, month_key, utcnow
from .followup_utils import GENERIC_FOLLOWUPS, generate_followups
from .title_utils import derive_chat_title, display_title

__all__ = [
    # Dates
    "utcnow",
    "epoch_millis",
    "month_key",
    # Chat heuristics
    "derive_chat_title",
    "display_title",
    "generate_followups",
    "GENERIC_FOLLOWUPS",
]
