"""
Database engine and sessions for the Cortana rules service.

One engine per process, built from `DATABASE_URL`. Request handlers get a
session through the `get_db` dependency; each rule evaluation runs on that
single session so later rules see earlier rules' writes.
"""

from __future__ import annotations

import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import settings


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:
    # rule_executions.rule_id cascades only with the pragma on.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
        )
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine
    return create_engine(
        url,
        echo=False,
        future=True,
        pool_pre_ping=True,
        pool_size=_env_int("DB_POOL_SIZE", 5),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
        pool_recycle=_env_int("DB_POOL_RECYCLE_SEC", 1800),
        pool_timeout=_env_int("DB_POOL_TIMEOUT_SEC", 30),
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db():
    """Yield a database session for FastAPI dependencies."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
