"""Timestamp helpers: all persisted timestamps are ISO-8601 strings in UTC."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a stored timestamp; naive values are assumed to be UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_within(timestamp: str | datetime | None, max_age: timedelta, now: datetime) -> bool:
    """True when ``now - timestamp <= max_age`` (inclusive boundary)."""
    parsed = parse_timestamp(timestamp)
    if parsed is None:
        return False
    return now - parsed <= max_age
