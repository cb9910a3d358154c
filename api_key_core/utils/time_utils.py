"""
Clock and ISO 8601 helpers.

All instants handled by the package are timezone-aware UTC datetimes with
millisecond precision, so that a value survives a trip through its ISO
text form unchanged.
"""

from datetime import datetime, timezone
from typing import Any

from ..constants import EPOCH_SENTINEL
from ..exceptions import invalid_format, type_mismatch


def to_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones, drop sub-millisecond digits."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def utc_now() -> datetime:
    """Return the current UTC time. Read fresh on every call."""
    return to_utc(datetime.now(timezone.utc))


def format_iso(value: datetime) -> str:
    """Format an instant like ``2026-01-31T12:00:00.000Z``."""
    return to_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _from_iso(text: str) -> datetime:
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def is_valid_iso_date(value: Any) -> bool:
    """Return True if value is text that parses as an ISO 8601 date or datetime."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        _from_iso(value)
    except ValueError:
        return False
    return True


def parse_datetime(value: Any, label: str) -> datetime:
    """
    Parse a datetime instance or ISO 8601 text into a UTC instant.

    Args:
        value: datetime or ISO text
        label: Field name used in error messages

    Raises:
        ShapeError: If value is neither a datetime nor text
        FormatError: If the text is not a valid ISO date, or the instant
            falls outside the years 1-9999 once converted to UTC
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        if not is_valid_iso_date(value):
            raise invalid_format(label, value, "ISO 8601 date")
        parsed = _from_iso(value)
    else:
        raise type_mismatch(label, value, "a datetime or an ISO 8601 date string")

    try:
        return to_utc(parsed)
    except OverflowError as e:
        raise invalid_format(label, value, "ISO 8601 date within years 1-9999 UTC") from e


def is_epoch_sentinel(value: datetime) -> bool:
    """Return True if value is the revocation marker."""
    return to_utc(value) == EPOCH_SENTINEL
