"""
Wall-clock range helpers shared by quiet-hours conditions and rule
exclusion windows.
"""

from __future__ import annotations

from datetime import datetime, time
from typing import Any, Iterable, Optional


def parse_hhmm(value: Any) -> Optional[time]:
    """Parse a HH:MM string; None when malformed."""
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        return None


def minutes_since_midnight(hour: int, minute: int) -> int:
    return hour * 60 + minute


def _to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def is_minute_in_range(now: int, start: time, end: time) -> bool:
    """
    Inclusive [start, end] check on minutes since midnight. A range whose
    end is before its start wraps past midnight.
    """
    start_m = _to_minutes(start)
    end_m = _to_minutes(end)
    if start_m <= end_m:
        return start_m <= now <= end_m
    return now >= start_m or now <= end_m


def in_any_range(now: int, ranges: Optional[Iterable[Any]]) -> bool:
    """True when ``now`` falls inside any ``{start, end}`` range; malformed entries are skipped."""
    if not ranges:
        return False
    for period in ranges:
        if isinstance(period, dict):
            start, end = period.get("start"), period.get("end")
        else:
            start, end = getattr(period, "start", None), getattr(period, "end", None)
        start_t = parse_hhmm(start)
        end_t = parse_hhmm(end)
        if start_t is None or end_t is None:
            continue
        if is_minute_in_range(now, start_t, end_t):
            return True
    return False
