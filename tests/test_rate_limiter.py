from datetime import date, datetime, timedelta, timezone

from cortana_rules.models.rule import Rule
from cortana_rules.schemas.evaluation import EvaluationContext
from cortana_rules.services.rate_limiter import (
    SKIPPED_COOLDOWN,
    SKIPPED_DAILY_CAP,
    SKIPPED_EXCLUDED_ROOM,
    SKIPPED_EXCLUDED_TIME,
    check_gates,
    effective_times_fired_today,
    is_in_cooldown,
)


NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
TODAY = date(2026, 10, 17)


def _rule(**overrides) -> Rule:
    values = dict(
        cooldown_minutes=60,
        max_fires_per_day=None,
        last_fired_at=None,
        times_fired_today=0,
        last_reset_date=None,
        excluded_rooms=None,
        excluded_times=None,
    )
    values.update(overrides)
    return Rule(**values)


def test_cooldown_window():
    rule = _rule(last_fired_at=NOW - timedelta(minutes=10))
    assert is_in_cooldown(rule, NOW) is True
    assert is_in_cooldown(rule, NOW + timedelta(minutes=50)) is False
    assert check_gates(rule, EvaluationContext(), NOW, TODAY) == SKIPPED_COOLDOWN


def test_cooldown_reads_naive_timestamps_as_utc():
    rule = _rule(last_fired_at=datetime(2026, 10, 17, 11, 30))
    assert is_in_cooldown(rule, NOW) is True


def test_never_fired_rule_is_not_in_cooldown():
    assert is_in_cooldown(_rule(), NOW) is False
    assert is_in_cooldown(_rule(cooldown_minutes=0, last_fired_at=NOW), NOW) is False


def test_daily_cap_blocks_same_day():
    rule = _rule(max_fires_per_day=2, times_fired_today=2, last_reset_date=TODAY)
    assert check_gates(rule, EvaluationContext(), NOW, TODAY) == SKIPPED_DAILY_CAP


def test_daily_cap_resets_on_new_day():
    rule = _rule(max_fires_per_day=1, times_fired_today=1, last_reset_date=TODAY - timedelta(days=1))
    assert effective_times_fired_today(rule, TODAY) == 0
    assert check_gates(rule, EvaluationContext(), NOW, TODAY) is None
    # Reading the gate does not write the counter.
    assert rule.times_fired_today == 1


def test_excluded_time_wraps_midnight():
    rule = _rule(excluded_times=[{"start": "22:00", "end": "06:00"}])
    assert check_gates(rule, EvaluationContext(current_hour=23, current_minute=30), NOW, TODAY) == SKIPPED_EXCLUDED_TIME
    assert check_gates(rule, EvaluationContext(current_hour=5, current_minute=30), NOW, TODAY) == SKIPPED_EXCLUDED_TIME
    assert check_gates(rule, EvaluationContext(current_hour=12), NOW, TODAY) is None


def test_excluded_room():
    rule = _rule(excluded_rooms=["bedroom"])
    assert check_gates(rule, EvaluationContext(current_room="bedroom"), NOW, TODAY) == SKIPPED_EXCLUDED_ROOM
    assert check_gates(rule, EvaluationContext(current_room="office"), NOW, TODAY) is None
    assert check_gates(rule, EvaluationContext(), NOW, TODAY) is None


def test_gate_order_cooldown_first():
    rule = _rule(
        last_fired_at=NOW - timedelta(minutes=1),
        max_fires_per_day=1,
        times_fired_today=1,
        last_reset_date=TODAY,
        excluded_rooms=["office"],
    )
    assert check_gates(rule, EvaluationContext(current_room="office"), NOW, TODAY) == SKIPPED_COOLDOWN
