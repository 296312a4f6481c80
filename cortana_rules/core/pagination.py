"""Page-size and history-limit caps for list endpoints."""

from __future__ import annotations

import os
from typing import Optional

from fastapi import Response

from .config import settings


DEFAULT_MAX_PAGE_SIZE = 200


def get_max_page_size() -> int:
    try:
        val = int(os.getenv("API_MAX_PAGE_SIZE", str(DEFAULT_MAX_PAGE_SIZE)))
    except ValueError:
        return DEFAULT_MAX_PAGE_SIZE
    return val if val >= 1 else DEFAULT_MAX_PAGE_SIZE


def clamp_page_size(page_size: int) -> int:
    return max(1, min(page_size, get_max_page_size()))


def resolve_history_limit(limit: Optional[int]) -> int:
    """Execution-history limit: configured default when absent, capped like pages."""
    if limit is None:
        limit = settings.execution_history_limit
    return clamp_page_size(limit)


def set_pagination_headers(
    response: Optional[Response],
    *,
    total: Optional[int],
    page: int,
    page_size: int,
) -> None:
    if not response:
        return
    if total is not None:
        response.headers["X-Total-Count"] = str(total)
    response.headers["X-Page"] = str(page)
    response.headers["X-Page-Size"] = str(page_size)
