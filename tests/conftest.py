import os

# Settings are read once at import; point every test module at a throwaway DB.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:////tmp/cortana_rules_test.db")
os.environ.setdefault("AUTO_CREATE_DB", "true")
os.environ.setdefault("AUTO_RUN_MIGRATIONS", "false")
os.environ.setdefault("CORTANA_ENV", "dev")
os.environ.setdefault("CORTANA_AUTH_DISABLED", "true")
