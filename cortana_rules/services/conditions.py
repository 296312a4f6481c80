"""
Condition evaluation for automation rules.

`evaluate_condition` maps one condition and the caller's evaluation
context to a boolean plus the observed value that was compared, which is
kept in the audit record. It is pure and total: an unknown condition type
or an unusable value yields ``(False, None)`` / ``False`` rather than an
exception. ``negate`` is applied last, after the type-specific check.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..schemas.evaluation import EvaluationContext
from ..schemas.rule import Condition
from .time_windows import in_any_range, minutes_since_midnight


logger = logging.getLogger("rule_conditions")


@dataclass
class ConditionResult:
    condition: Condition
    result: bool
    actual_value: Any

    def to_record(self) -> dict:
        return {
            "condition": self.condition.model_dump(exclude_none=True),
            "result": self.result,
            "actual_value": self.actual_value,
        }


def _membership_or_equal(actual: Any, expected: Any) -> bool:
    if isinstance(expected, list):
        return actual in expected
    return actual == expected


def _coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


def _time_of_day(cond: Condition, ctx: EvaluationContext) -> Tuple[bool, Any]:
    actual = ctx.time_of_day
    return _membership_or_equal(actual, cond.value), actual


def _day_of_week(cond: Condition, ctx: EvaluationContext) -> Tuple[bool, Any]:
    actual = ctx.day_of_week
    return _membership_or_equal(actual, cond.value), actual


def _entity_state(cond: Condition, ctx: EvaluationContext) -> Tuple[bool, Any]:
    # An absent entity reads as None and only matches a condition with no value.
    actual = ctx.entity_states.get(cond.entity_id) if cond.entity_id else None
    return actual == cond.value, actual


def _room(cond: Condition, ctx: EvaluationContext) -> Tuple[bool, Any]:
    actual = ctx.current_room
    if cond.operator == "equals":
        return actual == cond.value, actual
    if cond.operator == "not_equals":
        return actual != cond.value, actual
    return False, actual


def _idle_minutes(cond: Condition, ctx: EvaluationContext) -> Tuple[bool, Any]:
    actual = ctx.idle_minutes
    threshold = _coerce_number(cond.value)
    if threshold is None:
        return False, actual
    if cond.operator == "greater_than":
        return actual > threshold, actual
    if cond.operator == "less_than":
        return actual < threshold, actual
    return actual == threshold, actual


def _task_in_progress(cond: Condition, ctx: EvaluationContext) -> Tuple[bool, Any]:
    actual = bool(ctx.active_task_id)
    return (actual if cond.value is True else not actual), actual


def _quiet_hours(cond: Condition, ctx: EvaluationContext) -> Tuple[bool, Any]:
    now = minutes_since_midnight(ctx.current_hour, ctx.current_minute)
    if not isinstance(cond.value, list):
        return False, now
    return in_any_range(now, cond.value), now


_EVALUATORS: Dict[str, Callable[[Condition, EvaluationContext], Tuple[bool, Any]]] = {
    "time_of_day": _time_of_day,
    "day_of_week": _day_of_week,
    "entity_state": _entity_state,
    "room": _room,
    "idle_minutes": _idle_minutes,
    "task_in_progress": _task_in_progress,
    "quiet_hours": _quiet_hours,
}


def evaluate_condition(condition: Condition, context: EvaluationContext) -> ConditionResult:
    evaluator = _EVALUATORS.get(condition.type)
    if evaluator is None:
        logger.warning("Unknown condition type=%s", condition.type)
        result, actual = False, None
    else:
        result, actual = evaluator(condition, context)
    if condition.negate:
        result = not result
    return ConditionResult(condition=condition, result=bool(result), actual_value=actual)


def evaluate_all(conditions: List[Condition], context: EvaluationContext) -> Tuple[bool, List[ConditionResult]]:
    """Evaluate every condition (no short-circuit, so the audit is complete); AND the results."""
    results = [evaluate_condition(cond, context) for cond in conditions]
    return all(r.result for r in results), results
