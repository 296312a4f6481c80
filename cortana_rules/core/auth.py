"""
Request identity for the rules API.

Every rule and execution belongs to one user, so each request resolves
to exactly one user id. The calling dashboard authenticates with a
shared service token and names the acting user in ``X-User-Id``.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException

from .config import auth_disabled, get_app_env


@dataclass
class Principal:
    user_id: str
    via_token: bool = False


def _expected_token() -> str:
    token = os.getenv("CORTANA_AUTH_TOKEN")
    if token:
        return token
    if get_app_env() == "prod":
        return ""
    return "demo-token"


def _extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    if not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def get_current_user(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> Principal:
    user_id = (x_user_id or "").strip()
    if auth_disabled():
        if not user_id:
            raise HTTPException(status_code=401, detail="Missing X-User-Id header")
        return Principal(user_id=user_id)
    token = _extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    expected = _expected_token()
    if not expected or not secrets.compare_digest(token, expected):
        raise HTTPException(status_code=401, detail="Invalid token")
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return Principal(user_id=user_id, via_token=True)
