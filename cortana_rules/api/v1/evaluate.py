"""
Engine entry point over HTTP.

The caller (dashboard or automation bridge) posts one trigger event with
its evaluation context and gets back the per-rule outcomes, including the
staged payloads of notify, speak, Home Assistant and n8n actions that it
must carry out itself.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...core.auth import Principal, get_current_user
from ...core.db import get_db
from ...core.errors import InvalidEvaluationRequest, RuleStoreError, log_exception
from ...schemas.evaluation import EvaluateRequest, EvaluateResponse
from ...services.rule_engine import RuleEngine


router = APIRouter(prefix="/api/v1/engine", tags=["engine"])

logger = logging.getLogger("rule_engine")


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate(
    payload: EvaluateRequest,
    db: Session = Depends(get_db),
    user: Principal = Depends(get_current_user),
) -> EvaluateResponse:
    engine = RuleEngine(db)
    try:
        result = engine.evaluate(user.user_id, payload.trigger_type, payload.trigger_data, payload.context)
    except InvalidEvaluationRequest as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except RuleStoreError as exc:
        log_exception(logger, "Rule evaluation unavailable", extra={"user_id": user.user_id}, exc=exc)
        raise HTTPException(status_code=503, detail="Rule store unavailable")
    return EvaluateResponse.model_validate(result.to_dict())
