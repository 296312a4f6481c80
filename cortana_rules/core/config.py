"""
Configuration for the Cortana rules service.

Settings are loaded from environment variables or a `.env` file next to
the project root. Defaults are suitable for local development against a
SQLite file; point `DATABASE_URL` at PostgreSQL in deployed environments.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pathlib import Path
from dotenv import load_dotenv
import logging
import os

ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(ENV_PATH, override=False)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+pysqlite:///./cortana_rules.db",
        validation_alias="DATABASE_URL",
    )
    # Calendar used for the daily firing cap ("today").
    rules_timezone: str = Field(default="UTC", validation_alias="RULES_TIMEZONE")
    default_cooldown_minutes: int = Field(default=30, validation_alias="RULES_DEFAULT_COOLDOWN_MINUTES")
    execution_history_limit: int = Field(default=10, validation_alias="RULES_EXECUTION_HISTORY_LIMIT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()


def get_app_env() -> str:
    raw = os.getenv("CORTANA_ENV") or os.getenv("APP_ENV") or "dev"
    env = raw.strip().lower()
    if env not in {"dev", "prod"}:
        logging.getLogger("config").warning("Unknown CORTANA_ENV=%s; defaulting to dev", raw)
        env = "dev"
    return env


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def auth_disabled() -> bool:
    return env_flag("CORTANA_AUTH_DISABLED", "true")


def is_weak_token(token: str | None) -> bool:
    if not token:
        return True
    token = token.strip()
    if len(token) < 20:
        return True
    weak = {"demo-token", "change-me", "changeme", "password", "admin"}
    return token.lower() in weak


def validate_runtime_settings() -> None:
    env = get_app_env()
    logger = logging.getLogger("config")

    disabled = auth_disabled()
    token = os.getenv("CORTANA_AUTH_TOKEN")
    if env == "prod":
        if disabled:
            raise RuntimeError("CORTANA_AUTH_DISABLED must be false in prod.")
        if is_weak_token(token):
            raise RuntimeError("CORTANA_AUTH_TOKEN must be set to a strong value in prod.")
        if env_flag("AUTO_CREATE_DB", "true"):
            logger.warning("AUTO_CREATE_DB is enabled in prod. Consider running migrations instead.")
    else:
        if not disabled and is_weak_token(token):
            logger.warning("CORTANA_AUTH_TOKEN is weak or missing; dev fallback will be used.")

    if settings.default_cooldown_minutes < 0:
        logger.warning(
            "RULES_DEFAULT_COOLDOWN_MINUTES=%s is negative; rules will use 0.",
            settings.default_cooldown_minutes,
        )
