"""
Store boundary for rules and their execution log.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.clock import as_utc
from ..core.errors import RuleStoreError
from ..models.rule import Rule
from ..models.rule_execution import RuleExecution


logger = logging.getLogger("rule_store")


def load_candidate_rules(db: Session, user_id: str, trigger_type: str) -> List[Rule]:
    """Enabled rules for one trigger type, in creation order."""
    try:
        return (
            db.query(Rule)
            .filter(
                Rule.user_id == user_id,
                Rule.is_enabled.is_(True),
                Rule.trigger_type == trigger_type,
            )
            .order_by(Rule.created_at.asc(), Rule.id.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise RuleStoreError(f"Failed to load rules for user {user_id}: {exc}") from exc


def load_escalation_candidates(db: Session, user_id: str, now: datetime) -> List[Rule]:
    """
    Enabled rules whose last firing is older than their escalation delay
    and has not been escalated yet.
    """
    try:
        rows = (
            db.query(Rule)
            .filter(
                Rule.user_id == user_id,
                Rule.is_enabled.is_(True),
                Rule.escalation_enabled.is_(True),
                Rule.last_fired_at.is_not(None),
            )
            .order_by(Rule.created_at.asc(), Rule.id.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise RuleStoreError(f"Failed to load escalation rules for user {user_id}: {exc}") from exc
    due: List[Rule] = []
    for rule in rows:
        if not rule.escalation_action:
            continue
        fired_at = as_utc(rule.last_fired_at)
        delay_sec = max(0, rule.escalation_after_minutes or 0) * 60
        if (as_utc(now) - fired_at).total_seconds() < delay_sec:
            continue
        if rule.last_escalated_at is not None and as_utc(rule.last_escalated_at) >= fired_at:
            continue
        due.append(rule)
    return due


def record_execution(
    db: Session,
    *,
    user_id: str,
    rule_id: str,
    triggered_at: datetime,
    trigger_data: Optional[dict],
    conditions_evaluated: List[dict],
    all_conditions_met: bool,
    actions_executed: List[dict],
    execution_status: str,
    explanation: Optional[str] = None,
    error_message: Optional[str] = None,
    is_escalation: bool = False,
) -> RuleExecution:
    row = RuleExecution(
        user_id=user_id,
        rule_id=rule_id,
        triggered_at=triggered_at,
        trigger_data=_jsonable(trigger_data or {}),
        conditions_evaluated=_jsonable(conditions_evaluated),
        all_conditions_met=all_conditions_met,
        actions_executed=_jsonable(actions_executed),
        explanation=explanation,
        execution_status=execution_status,
        error_message=error_message,
        is_escalation=is_escalation,
    )
    db.add(row)
    db.commit()
    return row


def claim_firing(db: Session, rule: Rule, now: datetime, today: date) -> bool:
    """
    Advance the rule's firing counters, but only if nobody else fired it
    since we read it. The WHERE clause pins ``last_fired_at`` to the value
    seen at gate time; zero matched rows means a concurrent evaluation won.
    """
    seen_last_fired = rule.last_fired_at
    values: dict[str, Any] = {
        "last_fired_at": now,
        "times_fired": (rule.times_fired or 0) + 1,
    }
    if rule.last_reset_date != today:
        values["times_fired_today"] = 1
        values["last_reset_date"] = today
    else:
        values["times_fired_today"] = (rule.times_fired_today or 0) + 1

    stmt = update(Rule).where(Rule.id == rule.id)
    if seen_last_fired is None:
        stmt = stmt.where(Rule.last_fired_at.is_(None))
    else:
        stmt = stmt.where(Rule.last_fired_at == seen_last_fired)
    result = db.execute(stmt.values(**values).execution_options(synchronize_session=False))
    db.commit()
    return result.rowcount == 1


def claim_escalation(db: Session, rule: Rule, now: datetime) -> bool:
    """Mark the current firing as escalated; False if another evaluation already did."""
    seen = rule.last_escalated_at
    stmt = update(Rule).where(Rule.id == rule.id)
    if seen is None:
        stmt = stmt.where(Rule.last_escalated_at.is_(None))
    else:
        stmt = stmt.where(Rule.last_escalated_at == seen)
    result = db.execute(stmt.values(last_escalated_at=now).execution_options(synchronize_session=False))
    db.commit()
    return result.rowcount == 1


def recent_executions_for_rule(db: Session, user_id: str, rule_id: str, limit: int) -> List[RuleExecution]:
    return (
        db.query(RuleExecution)
        .filter(RuleExecution.rule_id == rule_id, RuleExecution.user_id == user_id)
        .order_by(RuleExecution.triggered_at.desc(), RuleExecution.created_at.desc())
        .limit(limit)
        .all()
    )


def recent_executions_for_user(db: Session, user_id: str, limit: int) -> List[RuleExecution]:
    return (
        db.query(RuleExecution)
        .filter(RuleExecution.user_id == user_id)
        .order_by(RuleExecution.triggered_at.desc(), RuleExecution.created_at.desc())
        .limit(limit)
        .all()
    )


def delete_rule(db: Session, rule: Rule) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on.
    db.query(RuleExecution).filter(RuleExecution.rule_id == rule.id).delete(synchronize_session=False)
    db.delete(rule)
    db.commit()


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
