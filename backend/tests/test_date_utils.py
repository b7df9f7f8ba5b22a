"""
Unit tests for date utility functions.

Tests timezone-aware helpers and month bucketing used by the financial summary.
"""

from datetime import UTC, date, datetime, timezone

import pytest

from src.core.utils.date_utils import epoch_millis, month_key, utcnow

# ===== UTC Helper Tests =====


class TestUtcHelpers:
    """Test timezone-aware replacements for deprecated datetime helpers"""

    def test_utcnow_is_timezone_aware(self):
        now = utcnow()

        assert now.tzinfo is not None
        assert now.utcoffset().total_seconds() == 0

    def test_epoch_millis_for_given_moment(self):
        moment = datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=timezone.utc)

        assert epoch_millis(moment) == 1500

    def test_epoch_millis_defaults_to_now(self):
        before = int(datetime.now(UTC).timestamp() * 1000)
        result = epoch_millis()
        after = int(datetime.now(UTC).timestamp() * 1000)

        assert before <= result <= after


# ===== Month Bucket Tests =====


class TestMonthKey:
    """Test calendar month bucketing"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2025-03-14", "2025-03"),
            ("2025-03-14T10:30:00Z", "2025-03"),
            (date(2024, 12, 1), "2024-12"),
            (datetime(2024, 1, 31, 23, 59), "2024-01"),
        ],
    )
    def test_month_key(self, value, expected):
        assert month_key(value) == expected

    def test_invalid_string_raises(self):
        with pytest.raises(ValueError):
            month_key("not-a-date")
