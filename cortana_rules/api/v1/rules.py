"""
API endpoints for managing automation rules.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ...core.auth import Principal, get_current_user
from ...core.config import settings
from ...core.db import get_db
from ...core.pagination import clamp_page_size, resolve_history_limit, set_pagination_headers
from ...models.rule import Rule
from ...schemas.execution import RuleExecutionOut
from ...schemas.rule import RuleCreate, RuleOut, RuleUpdate
from ...services import rule_store


router = APIRouter(prefix="/api/v1/rules", tags=["rules"])

# Columns that cannot be cleared through PATCH; a null there is ignored.
REQUIRED_FIELDS = {
    "name",
    "is_enabled",
    "severity",
    "trigger_type",
    "trigger_config",
    "conditions",
    "actions",
    "escalation_enabled",
}


def _default_cooldown() -> int:
    return max(0, settings.default_cooldown_minutes)


def _get_rule_for_user(db: Session, rule_id: str, user: Principal) -> Rule:
    rule = db.query(Rule).filter(Rule.id == rule_id, Rule.user_id == user.user_id).first()
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule


def _to_rule_out(rule: Rule) -> RuleOut:
    return RuleOut.model_validate(rule)


@router.get("", response_model=dict)
def list_rules(
    response: Response,
    trigger_type: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    enabled: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1),
    db: Session = Depends(get_db),
    user: Principal = Depends(get_current_user),
) -> dict:
    page_size = clamp_page_size(page_size)
    query = db.query(Rule).filter(Rule.user_id == user.user_id)
    if trigger_type:
        query = query.filter(Rule.trigger_type == trigger_type)
    if category:
        query = query.filter(Rule.category == category)
    if enabled is not None:
        query = query.filter(Rule.is_enabled.is_(enabled))
    total = query.count()
    items = (
        query.order_by(Rule.created_at.asc(), Rule.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    set_pagination_headers(response, total=total, page=page, page_size=page_size)
    return {
        "items": [_to_rule_out(r).model_dump() for r in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.post("", response_model=RuleOut, status_code=201)
def create_rule(
    payload: RuleCreate,
    db: Session = Depends(get_db),
    user: Principal = Depends(get_current_user),
) -> RuleOut:
    data = payload.model_dump(mode="json", exclude_none=True)
    if payload.cooldown_minutes is None:
        data["cooldown_minutes"] = _default_cooldown()
    rule = Rule(user_id=user.user_id, **data)
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return _to_rule_out(rule)


@router.get("/{rule_id}", response_model=RuleOut)
def get_rule(
    rule_id: str,
    db: Session = Depends(get_db),
    user: Principal = Depends(get_current_user),
) -> RuleOut:
    return _to_rule_out(_get_rule_for_user(db, rule_id, user))


@router.patch("/{rule_id}", response_model=RuleOut)
def update_rule(
    rule_id: str,
    payload: RuleUpdate,
    db: Session = Depends(get_db),
    user: Principal = Depends(get_current_user),
) -> RuleOut:
    rule = _get_rule_for_user(db, rule_id, user)
    data: dict[str, Any] = payload.model_dump(mode="json", exclude_unset=True)
    for key, value in data.items():
        if key == "cooldown_minutes" and value is None:
            value = _default_cooldown()
        elif value is None and key in REQUIRED_FIELDS:
            continue
        setattr(rule, key, value)
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return _to_rule_out(rule)


@router.post("/{rule_id}/toggle", response_model=RuleOut)
def toggle_rule(
    rule_id: str,
    db: Session = Depends(get_db),
    user: Principal = Depends(get_current_user),
) -> RuleOut:
    rule = _get_rule_for_user(db, rule_id, user)
    rule.is_enabled = not rule.is_enabled
    db.commit()
    db.refresh(rule)
    return _to_rule_out(rule)


@router.delete("/{rule_id}", status_code=204)
def delete_rule(
    rule_id: str,
    db: Session = Depends(get_db),
    user: Principal = Depends(get_current_user),
) -> Response:
    rule = _get_rule_for_user(db, rule_id, user)
    rule_store.delete_rule(db, rule)
    return Response(status_code=204)


@router.get("/{rule_id}/executions", response_model=list[RuleExecutionOut])
def list_rule_executions(
    rule_id: str,
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    user: Principal = Depends(get_current_user),
) -> list[RuleExecutionOut]:
    rule = _get_rule_for_user(db, rule_id, user)
    rows = rule_store.recent_executions_for_rule(db, user.user_id, rule.id, resolve_history_limit(limit))
    return [RuleExecutionOut.model_validate(row) for row in rows]
