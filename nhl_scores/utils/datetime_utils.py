"""
Low-level timezone and timestamp utilities.

Domain-agnostic helpers for timezone-aware UTC datetimes. Season logic
belongs in date_utils.py.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def now_utc() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def today_in(tz_name: str) -> date:
    """Return the current calendar date in the given IANA timezone.

    The league schedules on Eastern Time: a 10 PM ET game on Feb 5 is a
    "Feb 5 game" even though it's Feb 6 in UTC.
    """
    return datetime.now(ZoneInfo(tz_name)).date()


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_utc_datetime(value: str | None, tz_name: str | None = None) -> datetime | None:
    """Parse an ISO-8601 string into a UTC datetime.

    Offsets and a trailing ``Z`` are honoured. Strings without an offset are
    interpreted in ``tz_name`` when given, otherwise as UTC. Returns None for
    empty or unparseable input.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None and tz_name:
        parsed = parsed.replace(tzinfo=ZoneInfo(tz_name))
    return ensure_utc(parsed)
