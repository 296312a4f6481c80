"""Time helpers: aware UTC timestamps and the rules calendar date."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on round-trip; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def rules_today(now: datetime, tz_name: str | None = None) -> date:
    """Calendar date of ``now`` in the configured rules timezone."""
    try:
        tz = ZoneInfo(tz_name or settings.rules_timezone)
    except (ValueError, ZoneInfoNotFoundError):
        return as_utc(now).date()
    return as_utc(now).astimezone(tz).date()
