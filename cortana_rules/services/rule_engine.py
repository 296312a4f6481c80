"""
Central rule engine for the Cortana rules service.

Given one user's trigger event and evaluation context, the engine selects
that user's enabled rules for the trigger type and walks them in order:

    firing gates -> conditions -> claim firing -> actions -> explanation
    -> execution record

Rules are processed strictly one after another, so a later rule sees
what an earlier rule's actions wrote. Nothing in here talks to the
network; actions that need an outside channel come back as staged
payloads on the result for the caller to perform.

Only a failure to load the rule set escapes `evaluate`. Problems local to
one rule or one action are logged and reported on that rule's outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, List, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..core.clock import rules_today, utcnow
from ..core.errors import InvalidEvaluationRequest, error_message, log_exception
from ..models.rule import Rule
from ..schemas.evaluation import EvaluationContext
from ..schemas.rule import ESCALATION_TRIGGER, TRIGGER_TYPES, parse_condition
from . import rule_store
from .actions import ActionDispatcher, ActionResult
from .conditions import ConditionResult, evaluate_all
from .explanations import render_explanation
from .rate_limiter import SKIPPED_COOLDOWN, check_gates, exclusion_status


STATUS_SUCCESS = "success"
STATUS_PARTIAL = "partial"
STATUS_FAILED = "failed"
STATUS_SKIPPED_CONDITIONS = "skipped_conditions"

FIRED_STATUSES = {STATUS_SUCCESS, STATUS_PARTIAL}


@dataclass
class RuleOutcome:
    rule_id: str
    rule_name: str
    status: str
    explanation: Optional[str] = None
    actions: Optional[List[ActionResult]] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "status": self.status,
        }
        if self.explanation is not None:
            payload["explanation"] = self.explanation
        if self.actions is not None:
            payload["actions"] = [
                {"type": a.type, "success": a.success, "result": a.result, "error": a.error}
                for a in self.actions
            ]
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass
class EvaluationResult:
    results: List[RuleOutcome] = field(default_factory=list)

    @property
    def executed(self) -> int:
        return sum(1 for r in self.results if r.status in FIRED_STATUSES)

    def to_dict(self) -> dict:
        return {"executed": self.executed, "results": [r.to_dict() for r in self.results]}


class RuleEngine:
    """
    Evaluates one user's rules against a trigger event.

    One engine wraps one database session. ``clock`` supplies the current
    time (timezone-aware UTC); tests inject a fixed clock.
    """

    def __init__(
        self,
        db: Session,
        *,
        clock: Callable[[], datetime] = utcnow,
        timezone_name: Optional[str] = None,
    ) -> None:
        self.db = db
        self.clock = clock
        self.timezone_name = timezone_name
        self.logger = logging.getLogger("rule_engine")

    # -- entry point -----------------------------------------------------

    def evaluate(
        self,
        user_id: str,
        trigger_type: str,
        trigger_data: Optional[Mapping[str, Any]] = None,
        context: Union[EvaluationContext, Mapping[str, Any], None] = None,
    ) -> EvaluationResult:
        user_id, trigger_data, context = self._validate_request(user_id, trigger_type, trigger_data, context)
        now = self.clock()
        today = rules_today(now, self.timezone_name)

        if trigger_type == ESCALATION_TRIGGER:
            rules = rule_store.load_escalation_candidates(self.db, user_id, now)
        else:
            rules = rule_store.load_candidate_rules(self.db, user_id, trigger_type)

        outcome = EvaluationResult()
        for rule in rules:
            rule_id, rule_name = rule.id, rule.name
            try:
                if trigger_type == ESCALATION_TRIGGER:
                    result = self._escalate_rule(rule, user_id, trigger_data, context, now)
                else:
                    result = self._evaluate_rule(rule, user_id, trigger_data, context, now, today)
            except Exception as exc:
                self.db.rollback()
                log_exception(
                    self.logger,
                    "Rule evaluation failed",
                    extra={"user_id": user_id, "rule_id": rule_id},
                    exc=exc,
                )
                result = RuleOutcome(rule_id, rule_name, STATUS_FAILED, error=error_message(exc))
            self.logger.info(
                "Rule evaluated user_id=%s trigger=%s rule_id=%s status=%s",
                user_id,
                trigger_type,
                rule_id,
                result.status,
            )
            outcome.results.append(result)
        return outcome

    # -- per rule ----------------------------------------------------------

    def _evaluate_rule(
        self,
        rule: Rule,
        user_id: str,
        trigger_data: dict,
        context: EvaluationContext,
        now: datetime,
        today: date,
    ) -> RuleOutcome:
        rule_id, rule_name = rule.id, rule.name
        blocked = check_gates(rule, context, now, today)
        if blocked:
            return RuleOutcome(rule_id, rule_name, blocked)

        met, condition_results = self._conditions(rule, context)
        if not met:
            self._record(
                user_id, rule_id, now, trigger_data, condition_results, False, [], STATUS_SKIPPED_CONDITIONS
            )
            return RuleOutcome(rule_id, rule_name, STATUS_SKIPPED_CONDITIONS)

        if not self._claim(rule_store.claim_firing, rule, now, today, user_id=user_id):
            self.logger.warning("Rule fired concurrently; skipping user_id=%s rule_id=%s", user_id, rule_id)
            return RuleOutcome(rule_id, rule_name, SKIPPED_COOLDOWN)

        return self._fire(
            rule_id,
            rule_name,
            user_id,
            rule.severity,
            list(rule.actions or []),
            rule.explanation_template,
            trigger_data,
            context,
            condition_results,
            now,
        )

    def _escalate_rule(
        self,
        rule: Rule,
        user_id: str,
        trigger_data: dict,
        context: EvaluationContext,
        now: datetime,
    ) -> RuleOutcome:
        rule_id, rule_name = rule.id, rule.name
        blocked = exclusion_status(rule, context)
        if blocked:
            return RuleOutcome(rule_id, rule_name, blocked)

        met, condition_results = self._conditions(rule, context)
        if not met:
            # Condition cleared before the delay ran out; nothing left to escalate.
            self._record(
                user_id,
                rule_id,
                now,
                trigger_data,
                condition_results,
                False,
                [],
                STATUS_SKIPPED_CONDITIONS,
                is_escalation=True,
            )
            self._claim(rule_store.claim_escalation, rule, now, user_id=user_id)
            return RuleOutcome(rule_id, rule_name, STATUS_SKIPPED_CONDITIONS)

        if not self._claim(rule_store.claim_escalation, rule, now, user_id=user_id):
            return RuleOutcome(rule_id, rule_name, SKIPPED_COOLDOWN)

        return self._fire(
            rule_id,
            rule_name,
            user_id,
            rule.severity,
            [rule.escalation_action],
            rule.explanation_template,
            trigger_data,
            context,
            condition_results,
            now,
            is_escalation=True,
        )

    def _fire(
        self,
        rule_id: str,
        rule_name: str,
        user_id: str,
        severity: str,
        actions: list,
        template: Optional[str],
        trigger_data: dict,
        context: EvaluationContext,
        condition_results: List[ConditionResult],
        now: datetime,
        *,
        is_escalation: bool = False,
    ) -> RuleOutcome:
        dispatcher = ActionDispatcher(self.db, user_id, now=now, default_severity=severity or "info")
        action_results = dispatcher.dispatch(actions)
        explanation = render_explanation(template, context, trigger_data)
        status = STATUS_SUCCESS if all(a.success for a in action_results) else STATUS_PARTIAL
        self._record(
            user_id,
            rule_id,
            now,
            trigger_data,
            condition_results,
            True,
            [a.to_record() for a in action_results],
            status,
            explanation=explanation,
            is_escalation=is_escalation,
        )
        return RuleOutcome(rule_id, rule_name, status, explanation=explanation, actions=action_results)

    # -- helpers -----------------------------------------------------------

    def _conditions(self, rule: Rule, context: EvaluationContext) -> tuple[bool, List[ConditionResult]]:
        conditions = [parse_condition(raw) for raw in (rule.conditions or [])]
        return evaluate_all(conditions, context)

    def _claim(self, claim: Callable[..., bool], rule: Rule, *args: Any, user_id: str) -> bool:
        rule_id = rule.id
        try:
            return claim(self.db, rule, *args)
        except Exception as exc:
            # Counters are bookkeeping: a store error here must not block the firing.
            self.db.rollback()
            log_exception(
                self.logger,
                "Rule counter update failed",
                extra={"user_id": user_id, "rule_id": rule_id},
                exc=exc,
            )
            return True

    def _record(
        self,
        user_id: str,
        rule_id: str,
        now: datetime,
        trigger_data: dict,
        condition_results: List[ConditionResult],
        all_met: bool,
        actions_executed: List[dict],
        status: str,
        *,
        explanation: Optional[str] = None,
        is_escalation: bool = False,
    ) -> None:
        try:
            rule_store.record_execution(
                self.db,
                user_id=user_id,
                rule_id=rule_id,
                triggered_at=now,
                trigger_data=trigger_data,
                conditions_evaluated=[c.to_record() for c in condition_results],
                all_conditions_met=all_met,
                actions_executed=actions_executed,
                execution_status=status,
                explanation=explanation,
                is_escalation=is_escalation,
            )
        except Exception as exc:
            self.db.rollback()
            log_exception(
                self.logger,
                "Rule execution record failed",
                extra={"user_id": user_id, "rule_id": rule_id, "status": status},
                exc=exc,
            )

    def _validate_request(
        self,
        user_id: Any,
        trigger_type: Any,
        trigger_data: Any,
        context: Any,
    ) -> tuple[str, dict, EvaluationContext]:
        if not isinstance(user_id, str) or not user_id.strip():
            raise InvalidEvaluationRequest("user_id is required")
        if trigger_type not in TRIGGER_TYPES and trigger_type != ESCALATION_TRIGGER:
            raise InvalidEvaluationRequest(f"Unknown trigger type: {trigger_type!r}")
        if trigger_data is None:
            trigger_data = {}
        if not isinstance(trigger_data, Mapping):
            raise InvalidEvaluationRequest("trigger_data must be an object")
        if context is None:
            context = EvaluationContext()
        elif not isinstance(context, EvaluationContext):
            try:
                context = EvaluationContext.model_validate(context)
            except ValidationError as exc:
                raise InvalidEvaluationRequest(f"Invalid evaluation context: {exc}") from exc
        return user_id.strip(), dict(trigger_data), context


def evaluate_rules(
    db: Session,
    user_id: str,
    trigger_type: str,
    trigger_data: Optional[Mapping[str, Any]] = None,
    context: Union[EvaluationContext, Mapping[str, Any], None] = None,
) -> EvaluationResult:
    """Convenience wrapper: evaluate with a fresh engine on ``db``."""
    return RuleEngine(db).evaluate(user_id, trigger_type, trigger_data, context)
