"""
User-owned automation rules.

A rule pairs a trigger type with an AND-list of conditions and an ordered
list of actions. Conditions, actions and the exclusion windows are stored
as JSON and parsed into typed schemas by the engine at evaluation time.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from . import Base


class Rule(Base):
    __tablename__ = "rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)  # security | routine | chore | energy | health | custom
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), default="info", nullable=False)  # info | nudge | warning | urgent

    trigger_type: Mapped[str] = mapped_column(String(32), nullable=False)
    trigger_config: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    conditions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    cooldown_minutes: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    max_fires_per_day: Mapped[int | None] = mapped_column(Integer, nullable=True)

    actions: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    explanation_template: Mapped[str | None] = mapped_column(Text, nullable=True)

    escalation_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    escalation_after_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    escalation_action: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    excluded_rooms: Mapped[list | None] = mapped_column(JSON, nullable=True)
    excluded_times: Mapped[list | None] = mapped_column(JSON, nullable=True)  # [{"start": "22:00", "end": "07:00"}]

    last_fired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_escalated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    times_fired: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    times_fired_today: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_reset_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_rules_user_enabled", "user_id", "is_enabled"),
        Index("ix_rules_user_trigger", "user_id", "trigger_type"),
    )
