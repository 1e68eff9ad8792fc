"""Global pytest configuration."""

import os

# Set backends for tests before any imports
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("LOCK_BACKEND", "memory")
os.environ.setdefault("LOG_JSON", "false")
