"""
Entry point for the Cortana rules service.

This module creates the FastAPI application, includes the API routers,
and prepares the database on startup. Run with:

    uvicorn cortana_rules.main:app --reload

"""

from __future__ import annotations

import logging
from fastapi import FastAPI

from .core.db import engine
from .models import Base
from .scripts.run_migrations import run_migrations_to_head

from .api import api_router
from .core.config import env_flag, get_app_env, settings, validate_runtime_settings
from .core.errors import log_exception
from .core.logging_config import setup_logging


def create_app() -> FastAPI:
    setup_logging(settings.log_level, settings.log_file)
    validate_runtime_settings()
    app = FastAPI(title="Cortana Rules", version="0.1.0")
    app.include_router(api_router)

    # Ensure tables exist for local use
    @app.on_event("startup")
    def _init_db() -> None:
        logger = logging.getLogger("startup")
        env = get_app_env()
        if env_flag("AUTO_CREATE_DB", "true"):
            try:
                Base.metadata.create_all(bind=engine)
            except Exception as exc:
                log_exception(logger, "DB create_all failed", exc=exc)
                if env == "prod":
                    raise
        if env_flag("AUTO_RUN_MIGRATIONS", "false"):
            try:
                run_migrations_to_head()
            except Exception as exc:
                log_exception(logger, "DB migrations failed", exc=exc)
                if env == "prod":
                    raise
        logger.info("Rules service ready env=%s timezone=%s", env, settings.rules_timezone)

    return app


app = create_app()
