"""Explanation template rendering for the audit trail."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..schemas.evaluation import EvaluationContext


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def render_explanation(
    template: Optional[str],
    context: EvaluationContext,
    trigger_data: Optional[Mapping[str, Any]] = None,
) -> str:
    if not template:
        return ""
    result = template
    result = result.replace("{idle_minutes}", _text(context.idle_minutes))
    result = result.replace("{room}", context.current_room or "unknown")
    result = result.replace("{activity}", context.current_activity or "unknown")
    result = result.replace("{time_of_day}", context.time_of_day)
    for key, value in (trigger_data or {}).items():
        result = result.replace("{" + str(key) + "}", _text(value))
    return result
