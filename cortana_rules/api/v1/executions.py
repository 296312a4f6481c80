"""
Rule execution history across all of a user's rules.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...core.auth import Principal, get_current_user
from ...core.db import get_db
from ...core.pagination import resolve_history_limit
from ...schemas.execution import RuleExecutionOut
from ...services import rule_store


router = APIRouter(prefix="/api/v1/executions", tags=["executions"])


@router.get("", response_model=list[RuleExecutionOut])
def list_executions(
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    user: Principal = Depends(get_current_user),
) -> list[RuleExecutionOut]:
    rows = rule_store.recent_executions_for_user(db, user.user_id, resolve_history_limit(limit))
    return [RuleExecutionOut.model_validate(row) for row in rows]
