from sqlalchemy import create_engine, inspect

from cortana_rules.models import Base
from cortana_rules.scripts.run_migrations import run_migrations_to_head


TABLES = {"rules", "rule_executions", "tasks", "goals", "user_context"}


def _tables(url: str) -> set[str]:
    engine = create_engine(url)
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_migrations_create_schema(tmp_path, monkeypatch):
    url = f"sqlite+pysqlite:///{tmp_path / 'fresh.db'}"
    monkeypatch.setenv("DATABASE_URL", url)

    run_migrations_to_head()

    assert TABLES | {"alembic_version"} <= _tables(url)


def test_create_all_database_is_stamped(tmp_path, monkeypatch):
    url = f"sqlite+pysqlite:///{tmp_path / 'legacy.db'}"
    engine = create_engine(url)
    Base.metadata.create_all(engine)
    engine.dispose()
    monkeypatch.setenv("DATABASE_URL", url)

    run_migrations_to_head()

    assert "alembic_version" in _tables(url)
