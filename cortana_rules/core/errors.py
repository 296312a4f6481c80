"""
Shared error types and error-logging helpers for the rules service.
"""

from __future__ import annotations

import logging


class RuleEngineError(Exception):
    """Base class for errors raised by the rule engine."""


class InvalidEvaluationRequest(RuleEngineError, ValueError):
    """The caller supplied an unusable user id, trigger type or context."""


class RuleStoreError(RuleEngineError):
    """The rule set for an evaluation could not be loaded."""


def _format_extra(extra: dict | None) -> str:
    if not extra:
        return ""
    parts: list[str] = []
    for key, value in extra.items():
        if value is None:
            continue
        parts.append(f"{key}={value}")
    return f" {' '.join(parts)}" if parts else ""


def log_exception(logger: logging.Logger, msg: str, *, extra: dict | None = None, exc: Exception | None = None) -> None:
    """
    Log an exception with context. Uses logger.exception for stack traces.
    """
    suffix = _format_extra(extra)
    if exc is not None:
        logger.error(f"{msg}{suffix}: {exc}", exc_info=exc)
        return
    logger.exception(f"{msg}{suffix}")


def error_message(exc: BaseException) -> str:
    """Short human-readable text for an exception, used in audit records."""
    orig = getattr(exc, "orig", None)
    if orig is not None:
        return str(orig) or exc.__class__.__name__
    return str(exc) or exc.__class__.__name__
