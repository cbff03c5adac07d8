"""Test-wide environment: SQLite instead of PostgreSQL, throwaway upload directory."""

import os
import tempfile

# Must run before app.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="kb-uploads-"))
