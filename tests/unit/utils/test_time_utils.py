"""Test clock and ISO 8601 helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from api_key_core.constants import EPOCH_SENTINEL
from api_key_core.exceptions import FormatError, ShapeError
from api_key_core.utils.time_utils import (
    format_iso,
    is_epoch_sentinel,
    is_valid_iso_date,
    parse_datetime,
    to_utc,
    utc_now,
)


class TestToUtc:
    """Test to_utc function."""

    def test_naive_treated_as_utc(self):
        """Test naive datetimes are assumed to be UTC."""
        assert to_utc(datetime(2026, 5, 1, 9, 30)) == datetime(2026, 5, 1, 9, 30, tzinfo=timezone.utc)

    def test_offset_converted(self):
        """Test aware datetimes are converted to UTC."""
        plus_two = timezone(timedelta(hours=2))
        result = to_utc(datetime(2026, 5, 1, 11, 30, tzinfo=plus_two))

        assert result.tzinfo == timezone.utc
        assert result.hour == 9

    def test_truncates_to_milliseconds(self):
        """Test microseconds below a millisecond are dropped."""
        result = to_utc(datetime(2026, 5, 1, 0, 0, 0, 123999, tzinfo=timezone.utc))

        assert result.microsecond == 123000


class TestUtcNow:
    """Test utc_now function."""

    def test_aware_and_millisecond_precision(self):
        """Test the current time is aware UTC with millisecond precision."""
        now = utc_now()

        assert now.tzinfo == timezone.utc
        assert now.microsecond % 1000 == 0


class TestFormatIso:
    """Test format_iso function."""

    def test_format(self):
        """Test the Z-suffixed millisecond form."""
        value = datetime(2026, 1, 31, 12, 0, 5, 42000, tzinfo=timezone.utc)

        assert format_iso(value) == "2026-01-31T12:00:05.042Z"

    def test_epoch(self):
        """Test the revocation marker formats as the epoch."""
        assert format_iso(EPOCH_SENTINEL) == "1970-01-01T00:00:00.000Z"

    def test_round_trip(self):
        """Test formatted text parses back to the same instant."""
        value = utc_now()

        assert parse_datetime(format_iso(value), "value") == value


class TestParseDatetime:
    """Test parse_datetime and is_valid_iso_date."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2026-01-01T00:00:00Z", datetime(2026, 1, 1, tzinfo=timezone.utc)),
            ("2026-01-01T00:00:00.500Z", datetime(2026, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)),
            ("2026-01-01T02:00:00+02:00", datetime(2026, 1, 1, tzinfo=timezone.utc)),
            ("2026-01-01", datetime(2026, 1, 1, tzinfo=timezone.utc)),
        ],
    )
    def test_parses_iso_text(self, text, expected):
        """Test supported ISO 8601 forms."""
        assert is_valid_iso_date(text) is True
        assert parse_datetime(text, "valid_until") == expected

    def test_accepts_datetime(self):
        """Test datetime instances pass straight through to UTC."""
        value = datetime(2026, 1, 1, tzinfo=timezone.utc)

        assert parse_datetime(value, "valid_until") == value

    @pytest.mark.parametrize("text", ["", "tomorrow", "2026-13-01", "01/02/2026"])
    def test_rejects_bad_text(self, text):
        """Test malformed text is a FormatError naming the field."""
        assert is_valid_iso_date(text) is False

        with pytest.raises(FormatError) as exc_info:
            parse_datetime(text, "valid_until")

        assert exc_info.value.context["field"] == "valid_until"

    @pytest.mark.parametrize(
        "value",
        [
            "9999-12-31T23:00:00-05:00",
            "0001-01-01T00:30:00+01:00",
            datetime(9999, 12, 31, 23, 0, tzinfo=timezone(timedelta(hours=-5))),
        ],
    )
    def test_rejects_instants_outside_utc_range(self, value):
        """Test instants that overflow on conversion to UTC are FormatErrors."""
        with pytest.raises(FormatError) as exc_info:
            parse_datetime(value, "valid_until")

        assert isinstance(exc_info.value.__cause__, OverflowError)

    @pytest.mark.parametrize("value", [None, 1767225600, 3.5, ["2026-01-01"]])
    def test_rejects_other_types(self, value):
        """Test non-text, non-datetime values are ShapeErrors."""
        assert is_valid_iso_date(value) is False

        with pytest.raises(ShapeError):
            parse_datetime(value, "valid_until")


class TestIsEpochSentinel:
    """Test is_epoch_sentinel function."""

    def test_detects_epoch(self):
        """Test the epoch in any zone is the sentinel."""
        assert is_epoch_sentinel(EPOCH_SENTINEL) is True
        assert is_epoch_sentinel(datetime(1970, 1, 1)) is True

    def test_other_dates(self):
        """Test ordinary instants are not the sentinel."""
        assert is_epoch_sentinel(datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)) is False
        assert is_epoch_sentinel(utc_now()) is False
