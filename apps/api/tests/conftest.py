from __future__ import annotations

import os


os.environ.setdefault("PARENT_HELPER_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("PARENT_HELPER_REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("PARENT_HELPER_JWT_SECRET", "test-secret-with-enough-length-1234")
os.environ.setdefault("PARENT_HELPER_APP_ENV", "test")
