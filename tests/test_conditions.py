import logging

import pytest

from cortana_rules.schemas.evaluation import EvaluationContext
from cortana_rules.schemas.rule import Condition, parse_condition
from cortana_rules.services.conditions import evaluate_all, evaluate_condition


CONDITIONS = [
    Condition(type="time_of_day", value="evening"),
    Condition(type="time_of_day", value=["morning", "evening"]),
    Condition(type="day_of_week", value=[5, 6]),
    Condition(type="entity_state", entity_id="light.kitchen", value="on"),
    Condition(type="room", operator="equals", value="office"),
    Condition(type="room", operator="not_equals", value="office"),
    Condition(type="room", operator="contains", value="office"),
    Condition(type="idle_minutes", operator="greater_than", value=30),
    Condition(type="idle_minutes", operator="less_than", value="30"),
    Condition(type="idle_minutes", operator="equals", value=45),
    Condition(type="task_in_progress", value=True),
    Condition(type="task_in_progress", value=False),
    Condition(type="quiet_hours", value=[{"start": "22:00", "end": "06:00"}]),
    Condition(type="no_such_type", value=1),
]

CONTEXTS = [
    EvaluationContext(
        current_room="office",
        idle_minutes=45,
        time_of_day="evening",
        day_of_week=6,
        current_hour=23,
        current_minute=30,
        entity_states={"light.kitchen": "on"},
        active_task_id="task-1",
    ),
    EvaluationContext(current_room="kitchen", idle_minutes=5, time_of_day="morning", current_hour=12),
    EvaluationContext(),
]


@pytest.mark.parametrize("condition", CONDITIONS, ids=lambda c: f"{c.type}:{c.operator}")
@pytest.mark.parametrize("context", CONTEXTS)
def test_negate_inverts_result(condition, context):
    plain = evaluate_condition(condition, context)
    negated = evaluate_condition(condition.model_copy(update={"negate": True}), context)
    assert negated.result is (not plain.result)
    assert negated.actual_value == plain.actual_value


def test_idle_minutes_comparisons():
    ctx = EvaluationContext(idle_minutes=45)
    assert evaluate_condition(Condition(type="idle_minutes", operator="greater_than", value=30), ctx).result is True
    assert evaluate_condition(Condition(type="idle_minutes", operator="less_than", value=30), ctx).result is False
    assert evaluate_condition(Condition(type="idle_minutes", operator="equals", value="45"), ctx).result is True
    # Non-numeric thresholds never match.
    res = evaluate_condition(Condition(type="idle_minutes", operator="greater_than", value="soon"), ctx)
    assert res.result is False
    assert res.actual_value == 45


def test_membership_conditions():
    ctx = EvaluationContext(time_of_day="night", day_of_week=0)
    assert evaluate_condition(Condition(type="time_of_day", value=["night", "evening"]), ctx).result is True
    assert evaluate_condition(Condition(type="time_of_day", value="morning"), ctx).result is False
    assert evaluate_condition(Condition(type="day_of_week", value=0), ctx).result is True
    assert evaluate_condition(Condition(type="day_of_week", value=[1, 2, 3]), ctx).result is False


def test_entity_state_uses_literal_equality():
    ctx = EvaluationContext(entity_states={"binary_sensor.door": "open", "sensor.temp": 21})
    door = Condition(type="entity_state", entity_id="binary_sensor.door", value="open")
    res = evaluate_condition(door, ctx)
    assert res.result is True
    assert res.actual_value == "open"
    assert evaluate_condition(Condition(type="entity_state", entity_id="sensor.temp", value="21"), ctx).result is False
    # Absent entity reads as None.
    missing = evaluate_condition(Condition(type="entity_state", entity_id="light.attic", value="on"), ctx)
    assert missing.result is False
    assert missing.actual_value is None


def test_room_operators():
    ctx = EvaluationContext(current_room="bedroom")
    assert evaluate_condition(Condition(type="room", operator="equals", value="bedroom"), ctx).result is True
    assert evaluate_condition(Condition(type="room", operator="not_equals", value="bedroom"), ctx).result is False
    assert evaluate_condition(Condition(type="room", operator="in_range", value="bedroom"), ctx).result is False


def test_task_in_progress():
    busy = EvaluationContext(active_task_id="t-1")
    idle = EvaluationContext()
    want_busy = Condition(type="task_in_progress", value=True)
    want_idle = Condition(type="task_in_progress", value=False)
    assert evaluate_condition(want_busy, busy).result is True
    assert evaluate_condition(want_busy, idle).result is False
    assert evaluate_condition(want_idle, idle).result is True
    assert evaluate_condition(want_idle, busy).result is False


@pytest.mark.parametrize(
    "hour,minute,expected",
    [(23, 30, True), (5, 30, True), (22, 0, True), (6, 0, True), (12, 0, False), (6, 1, False)],
)
def test_quiet_hours_wrap_past_midnight(hour, minute, expected):
    cond = Condition(type="quiet_hours", value=[{"start": "22:00", "end": "06:00"}])
    ctx = EvaluationContext(current_hour=hour, current_minute=minute)
    res = evaluate_condition(cond, ctx)
    assert res.result is expected
    assert res.actual_value == hour * 60 + minute


def test_quiet_hours_ignores_malformed_ranges():
    cond = Condition(type="quiet_hours", value=[{"start": "25:00", "end": "06:00"}, {"start": "12:00"}])
    assert evaluate_condition(cond, EvaluationContext(current_hour=1)).result is False
    assert evaluate_condition(Condition(type="quiet_hours", value="22:00-06:00"), EvaluationContext()).result is False


def test_unknown_condition_type_is_false(caplog):
    caplog.set_level(logging.WARNING)
    res = evaluate_condition(Condition(type="moon_phase", value="full"), EvaluationContext())
    assert res.result is False
    assert res.actual_value is None
    assert any("Unknown condition type" in rec.message for rec in caplog.records)


def test_malformed_stored_condition_never_matches():
    cond = parse_condition({"operator": "equals"})
    assert evaluate_condition(cond, EvaluationContext()).result is False
    assert evaluate_condition(parse_condition("garbage"), EvaluationContext()).result is False


def test_evaluate_all_does_not_short_circuit():
    ctx = EvaluationContext(idle_minutes=45, current_room="office")
    met, results = evaluate_all(
        [
            Condition(type="room", operator="equals", value="kitchen"),
            Condition(type="idle_minutes", operator="greater_than", value=30),
        ],
        ctx,
    )
    assert met is False
    assert [r.result for r in results] == [False, True]
    assert results[1].to_record()["actual_value"] == 45


def test_evaluate_all_empty_is_met():
    met, results = evaluate_all([], EvaluationContext())
    assert met is True
    assert results == []
