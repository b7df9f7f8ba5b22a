"""
Date utility functions for chat messages and financial records.
"""

from datetime import UTC, date, datetime


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Replaces deprecated datetime.utcnow() which is scheduled for removal in Python 3.14.
    See: https://docs.python.org/3/library/datetime.html#datetime.datetime.utcnow
    """
    return datetime.now(UTC)


def epoch_millis(moment: datetime | None = None) -> int:
    """Milliseconds since the epoch for `moment` (defaults to now)."""
    moment = moment or utcnow()
    return int(moment.timestamp() * 1000)


def month_key(value: date | datetime | str) -> str:
    """
    Calendar month bucket key in YYYY-MM form.

    Examples:
        >>> month_key("2025-03-14")
        '2025-03'
        >>> month_key(date(2024, 12, 1))
        '2024-12'
    """
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return f"{value.year:04d}-{value.month:02d}"
