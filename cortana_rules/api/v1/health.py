"""
Health endpoint for the Cortana rules service.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.config import get_app_env
from ...core.db import get_db
from ...core.errors import log_exception


router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("")
def health(response: Response, db: Session = Depends(get_db)) -> dict:
    database = {"ok": True}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        log_exception(logging.getLogger("health"), "Health DB check failed", exc=exc)
        database = {"ok": False, "error": exc.__class__.__name__}
        response.status_code = 503
    return {
        "status": "ok" if database["ok"] else "degraded",
        "env": get_app_env(),
        "timestamp_utc": datetime.utcnow().isoformat() + "Z",
        "database": database,
    }
