"""
SQLAlchemy model base class for the Cortana rules service.

This package defines ORM models for automation rules, their execution
audit log, and the task, goal and ambient-context rows that rule actions
write to. All models inherit from the declarative `Base` defined here.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


from .rule import Rule  # noqa: E402,F401
from .rule_execution import RuleExecution  # noqa: E402,F401
from .task import Task  # noqa: E402,F401
from .goal import Goal  # noqa: E402,F401
from .ambient_context import AmbientContext  # noqa: E402,F401

__all__ = [
    "Base",

    # Rules / audit
    "Rule",
    "RuleExecution",

    # Action targets
    "Task",
    "Goal",
    "AmbientContext",
]
