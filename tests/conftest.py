from __future__ import annotations

import os
import tempfile

# Settings and the engine are built on first import, so the test database
# must be chosen before any quizduel module is loaded.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="quizduel-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/quizduel.db"
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("APP_ENV", "test")
