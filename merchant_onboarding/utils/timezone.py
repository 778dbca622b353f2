"""Timezone utilities for UTC timestamp handling.

All persisted timestamps are timezone-aware UTC values rendered as ISO 8601.
"""

from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Get current time in UTC.

    Returns:
        datetime: Current timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def now_utc_iso() -> str:
    """Get current time in UTC as ISO string.

    Returns:
        str: Current datetime in UTC as ISO format string
    """
    return to_iso(now_utc())


def to_iso(dt: datetime) -> str:
    """Render a datetime as an ISO 8601 string in UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()


def parse_iso_to_utc(iso_string: str) -> datetime:
    """Parse ISO datetime string and convert to UTC.

    Args:
        iso_string: ISO format datetime string, "Z" suffix accepted

    Returns:
        datetime: Parsed timezone-aware datetime in UTC
    """
    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def current_year() -> int:
    """Get the current calendar year in UTC."""
    return now_utc().year
