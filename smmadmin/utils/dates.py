"""Timestamp helpers.

All timestamps are stored as UTC ISO-8601 strings with microsecond precision,
so that comparing the stored strings orders them the same way as the times.
Naive datetimes are treated as UTC.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """Format a datetime for storage."""
    return to_utc(dt).isoformat(timespec="microseconds")


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse a stored or user-supplied timestamp.

    Args:
        value: ISO-8601 string (a trailing ``Z`` is accepted), datetime or None

    Returns:
        Aware UTC datetime, or None for empty or unparseable input
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc(value)

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_utc(datetime.fromisoformat(text))
    except ValueError:
        logging.error(f"💥 Error parsing timestamp: {value}")
        return None
