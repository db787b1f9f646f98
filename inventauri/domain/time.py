"""
Timestamp helpers (pure).

All timestamps leaving the domain are timezone-aware UTC.  Naive values are
interpreted as UTC: SQLite hands back naive datetimes for timezone-aware
columns, and inbound ISO-8601 strings without an offset are treated the same
way.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from inventauri.exceptions import InvalidTimestampError


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as a timezone-aware UTC datetime."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any, *, field: str = "soldAt") -> datetime:
    """
    Parse an inbound timestamp into a UTC datetime.

    Accepts ``datetime`` instances and ISO-8601 strings, including a trailing
    ``Z``.  Date-only strings mean midnight UTC.

    Raises:
        InvalidTimestampError: if the value is not a datetime or parseable string.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidTimestampError(value, field=field) from None
        return ensure_utc(parsed)
    raise InvalidTimestampError(value, field=field)
