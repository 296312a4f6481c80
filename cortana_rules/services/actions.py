"""
Action dispatch for fired rules.

Each action in a rule's list is attempted in order and produces one
`ActionResult`; a failing action never stops the ones after it. Actions
that need a channel this service does not own (voice, notifications,
Home Assistant, n8n) are not performed here: they are staged as a result
payload that the caller executes. Store-backed actions (tasks, goals,
ambient context) commit individually so one failure cannot roll back a
sibling's write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..core.errors import error_message, log_exception
from ..models.ambient_context import AmbientContext
from ..models.goal import Goal
from ..models.task import Task
from ..schemas.rule import UnknownAction, parse_action


logger = logging.getLogger("rule_actions")


class ActionFailed(Exception):
    """An expected, non-exceptional action failure (e.g. target row missing)."""


@dataclass
class ActionResult:
    type: str
    success: bool
    action: dict
    result: Any = None
    error: Optional[str] = None

    def to_record(self) -> dict:
        return {
            "action": self.action,
            "type": self.type,
            "success": self.success,
            "result": self.result,
            "error": self.error,
        }


class ActionDispatcher:
    """
    Executes or stages a rule's actions on behalf of one user.

    Parameters
    ----------
    db: Session
        Store handle used by task, goal and context actions.
    user_id: str
        Owner of the rule; every store write is scoped to this user.
    now: datetime
        Evaluation time, used for relative due dates.
    default_severity: str
        Severity for notify/speak actions that do not set one (the rule's).
    """

    def __init__(
        self,
        db: Session,
        user_id: str,
        *,
        now: Optional[datetime] = None,
        default_severity: str = "info",
    ) -> None:
        self.db = db
        self.user_id = user_id
        self.now = now or utcnow()
        self.default_severity = default_severity
        self._handlers: Dict[str, Callable[[Any, dict], Any]] = {
            "notify": self._stage_message,
            "speak": self._stage_message,
            "create_task": self._create_task,
            "update_task": self._update_task,
            "update_goal": self._update_goal,
            "set_context": self._set_context,
            "home_assistant": self._stage_external,
            "n8n_webhook": self._stage_external,
        }

    def dispatch(self, actions: Iterable[Any]) -> List[ActionResult]:
        return [self.dispatch_one(raw) for raw in actions or []]

    def dispatch_one(self, raw: Any) -> ActionResult:
        if isinstance(raw, BaseModel):
            action = raw
            record = raw.model_dump(exclude_none=True)
        else:
            action = parse_action(raw)
            record = raw if isinstance(raw, dict) else {"type": str(raw)}
        if isinstance(action, UnknownAction):
            logger.warning("Rule action rejected user_id=%s type=%s: %s", self.user_id, action.type, action.error)
            return ActionResult(type=action.type, success=False, action=record, error=action.error)

        handler = self._handlers[action.type]
        try:
            payload = handler(action, record)
        except ActionFailed as exc:
            self.db.rollback()
            logger.warning("Rule action failed user_id=%s type=%s: %s", self.user_id, action.type, exc)
            return ActionResult(type=action.type, success=False, action=record, error=str(exc))
        except Exception as exc:
            self.db.rollback()
            log_exception(logger, "Rule action error", extra={"user_id": self.user_id, "type": action.type}, exc=exc)
            return ActionResult(type=action.type, success=False, action=record, error=error_message(exc))
        return ActionResult(type=action.type, success=True, action=record, result=payload)

    # -- staged for the caller -------------------------------------------

    def _stage_message(self, action, record: dict) -> dict:
        return {
            "message": action.config.message,
            "severity": action.config.severity or self.default_severity,
        }

    def _stage_external(self, action, record: dict) -> dict:
        raw_config = record.get("config")
        if isinstance(raw_config, dict):
            return dict(raw_config)
        return action.config.model_dump(exclude_none=True)

    # -- store-backed ----------------------------------------------------

    def _create_task(self, action, record: dict) -> dict:
        cfg = action.config
        due_at = None
        if cfg.due_in_minutes:
            due_at = self.now + timedelta(minutes=cfg.due_in_minutes)
        task = Task(
            user_id=self.user_id,
            title=cfg.title,
            description=cfg.description,
            priority=cfg.priority or "medium",
            room=cfg.room,
            due_at=due_at,
            status="pending",
        )
        self.db.add(task)
        self.db.commit()
        return {"task_id": task.id, "due_at": due_at.isoformat() if due_at else None}

    def _update_task(self, action, record: dict) -> dict:
        cfg = action.config
        task = (
            self.db.query(Task)
            .filter(Task.id == cfg.task_id, Task.user_id == self.user_id)
            .first()
        )
        if task is None:
            raise ActionFailed("Task not found")
        task.status = cfg.status
        self.db.commit()
        return {"task_id": cfg.task_id, "status": cfg.status}

    def _update_goal(self, action, record: dict) -> dict:
        cfg = action.config
        goal = (
            self.db.query(Goal)
            .filter(Goal.id == cfg.goal_id, Goal.user_id == self.user_id)
            .first()
        )
        if goal is None:
            return {"skipped": "goal_not_found", "goal_id": cfg.goal_id}
        increment = cfg.increment_value if cfg.increment_value is not None else 1
        goal.current_value = (goal.current_value or 0) + increment
        new_value = goal.current_value
        self.db.commit()
        return {"goal_id": cfg.goal_id, "current_value": new_value}

    def _set_context(self, action, record: dict) -> dict:
        cfg = action.config
        row = self.db.query(AmbientContext).filter(AmbientContext.user_id == self.user_id).first()
        if row is None:
            row = AmbientContext(user_id=self.user_id)
            self.db.add(row)
        changed: dict = {}
        if cfg.room:
            row.current_room = cfg.room
            changed["room"] = cfg.room
        if cfg.activity:
            row.current_activity = cfg.activity
            changed["activity"] = cfg.activity
        self.db.commit()
        return changed
