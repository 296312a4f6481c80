"""
Per-user ambient state (room, activity) that `set_context` actions patch.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from . import Base


class AmbientContext(Base):
    __tablename__ = "user_context"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    current_room: Mapped[str | None] = mapped_column(String(128), nullable=True)
    current_activity: Mapped[str | None] = mapped_column(String(128), nullable=True)
    active_task_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    idle_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)
