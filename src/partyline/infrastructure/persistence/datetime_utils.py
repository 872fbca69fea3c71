"""Datetime utilities for persistence layer."""

from datetime import datetime, timezone

from partyline.domain.entities import NOT_SET


def normalize_to_utc(dt: datetime) -> datetime:
    """Ensure datetime is UTC and timezone-aware.

    SQLite stores datetimes without timezone info, so naive values are
    treated as UTC and aware values are converted to UTC.

    Args:
        dt: datetime to process

    Returns:
        timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_column(dt: datetime) -> datetime | None:
    """Map a lifecycle timestamp to a nullable column value (NOT_SET -> None)."""
    if dt == NOT_SET:
        return None
    return normalize_to_utc(dt)


def from_column(value: datetime | None) -> datetime:
    """Map a nullable column value back to a lifecycle timestamp."""
    if value is None:
        return NOT_SET
    return normalize_to_utc(value)
