"""Utility functions for Teamup timestamps and identifiers."""

from datetime import UTC, datetime, timedelta, timezone
from typing import Any

INSTANCE_MARKER = "-rid-"


def parse_provider_datetime(value: Any) -> datetime | None:
    """Parse a Teamup ISO-8601 timestamp.

    Handles offsets (+HH:MM, -HH:MM), a trailing Z and bare dates. Returns None
    for anything unparseable.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def get_utc_offset(value: Any) -> timedelta | None:
    """Return the UTC offset carried by a timestamp string, if it has one."""
    dt = parse_provider_datetime(value)
    if dt is None or dt.tzinfo is None:
        return None
    return dt.utcoffset()


def epoch_to_provider_datetime(epoch_seconds: int, like: Any = None) -> str:
    """Convert Unix epoch seconds to Teamup's ISO-8601 format.

    If ``like`` is a timestamp with an offset (usually the event's own start
    time), the result is expressed in that offset so it compares equal to the
    provider's own values. Otherwise UTC is used.
    """
    offset = get_utc_offset(like)
    tz = timezone(offset) if offset is not None else UTC
    return datetime.fromtimestamp(epoch_seconds, tz=tz).isoformat()


def is_instance_id(raw_id: Any) -> bool:
    """Return True if the id is a compound recurring-instance id."""
    return INSTANCE_MARKER in str(raw_id or "")
