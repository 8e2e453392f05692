"""
UTC timestamp helpers shared by the ORM models, the record store and the
request/response schemas.

Columns hold naive datetimes that are always UTC; everything above the store
works with timezone-aware UTC values and renders them as RFC3339 with a "Z"
suffix.
"""

from datetime import datetime, UTC
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(UTC)


def _utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_storage(value: datetime) -> datetime:
    """Aware datetime -> naive UTC for persistence."""
    if value.tzinfo is None:
        raise ValueError("timezone-naive datetime cannot be stored")
    return value.astimezone(UTC).replace(tzinfo=None)


def _to_utc(value: datetime) -> datetime:
    try:
        return value.astimezone(UTC)
    except OverflowError as exc:
        # e.g. 9999-12-31T23:59:59-01:00 has no UTC representation
        raise ValueError("timestamp is outside the supported range") from exc


def from_storage(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware datetime to UTC; naive values are returned untouched."""
    if value is None or value.tzinfo is None:
        return value
    return _to_utc(value)


def format_rfc3339(value: Optional[datetime]) -> Optional[str]:
    """
    Render as RFC3339 with a "Z" suffix. Naive values are read as UTC.

    Example:
        >>> format_rfc3339(datetime(2025, 10, 21, 10, 0, tzinfo=UTC))
        '2025-10-21T10:00:00Z'
    """
    if value is None:
        return None
    value = from_storage(value)
    if value.microsecond:
        return value.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_rfc3339(raw: str) -> datetime:
    """
    Parse an RFC3339 timestamp. Raises ValueError for malformed or
    timezone-naive input, and for instants with no UTC representation.
    """
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError("timestamp must include a UTC offset")
    return _to_utc(parsed)
