"""Root conftest — shared test configuration."""

import os

# Ensure tests never talk to a real database or require a shared token
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.pop("ACCESS_TOKEN", None)
os.environ.setdefault("LOG_FORMAT", "text")
