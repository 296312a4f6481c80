"""
Append-only audit log of rule evaluations.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from . import Base


class RuleExecution(Base):
    __tablename__ = "rule_executions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    rule_id: Mapped[str] = mapped_column(String(36), ForeignKey("rules.id", ondelete="CASCADE"), nullable=False)

    triggered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    trigger_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # [{"condition": {...}, "result": bool, "actual_value": any}]
    conditions_evaluated: Mapped[list | None] = mapped_column(JSON, nullable=True)
    all_conditions_met: Mapped[bool] = mapped_column(Boolean, nullable=False)

    # [{"action": {...}, "type": str, "success": bool, "result": any, "error": str | None}]
    actions_executed: Mapped[list | None] = mapped_column(JSON, nullable=True)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)

    execution_status: Mapped[str] = mapped_column(String(32), default="success", nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_escalation: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        Index("ix_rule_executions_user_time", "user_id", "triggered_at"),
        Index("ix_rule_executions_rule_time", "rule_id", "triggered_at"),
    )
