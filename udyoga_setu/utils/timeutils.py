"""Timestamp helpers. All stored timestamps are UTC ISO-8601 strings."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return utcnow().isoformat(timespec="microseconds")


def iso_ago(**delta) -> str:
    """ISO timestamp for now minus the given timedelta kwargs."""
    return (utcnow() - timedelta(**delta)).isoformat(timespec="microseconds")


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Accept a datetime (PostgreSQL driver) or ISO string (SQLite) and
    return an aware UTC datetime.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
