"""
Firing gates checked before any condition is evaluated.

Gates run cheapest first: cooldown, daily cap, excluded times, excluded
rooms. A blocked rule gets a skip status and no audit record.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from ..core.clock import as_utc
from ..models.rule import Rule
from ..schemas.evaluation import EvaluationContext
from .time_windows import in_any_range, minutes_since_midnight


SKIPPED_COOLDOWN = "skipped_cooldown"
SKIPPED_DAILY_CAP = "skipped_daily_cap"
SKIPPED_EXCLUDED_TIME = "skipped_excluded_time"
SKIPPED_EXCLUDED_ROOM = "skipped_excluded_room"


def is_in_cooldown(rule: Rule, now: datetime) -> bool:
    if rule.last_fired_at is None:
        return False
    cooldown = timedelta(minutes=max(0, rule.cooldown_minutes or 0))
    return as_utc(now) - as_utc(rule.last_fired_at) < cooldown


def effective_times_fired_today(rule: Rule, today: date) -> int:
    """Daily counter as of ``today``; a counter from an earlier day reads as 0."""
    if rule.last_reset_date != today:
        return 0
    return rule.times_fired_today or 0


def hit_daily_cap(rule: Rule, today: date) -> bool:
    if not rule.max_fires_per_day:
        return False
    return effective_times_fired_today(rule, today) >= rule.max_fires_per_day


def is_in_excluded_time(rule: Rule, context: EvaluationContext) -> bool:
    now = minutes_since_midnight(context.current_hour, context.current_minute)
    return in_any_range(now, rule.excluded_times)


def is_in_excluded_room(rule: Rule, context: EvaluationContext) -> bool:
    if not rule.excluded_rooms:
        return False
    return (context.current_room or "") in rule.excluded_rooms


def exclusion_status(rule: Rule, context: EvaluationContext) -> Optional[str]:
    if is_in_excluded_time(rule, context):
        return SKIPPED_EXCLUDED_TIME
    if is_in_excluded_room(rule, context):
        return SKIPPED_EXCLUDED_ROOM
    return None


def check_gates(rule: Rule, context: EvaluationContext, now: datetime, today: date) -> Optional[str]:
    """Return the skip status for the first gate that blocks ``rule``, else None."""
    if is_in_cooldown(rule, now):
        return SKIPPED_COOLDOWN
    if hit_daily_cap(rule, today):
        return SKIPPED_DAILY_CAP
    return exclusion_status(rule, context)
