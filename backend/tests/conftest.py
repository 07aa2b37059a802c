"""
Pytest configuration.

Pure pipeline tests need nothing. Tests marked with ``requires_database``
run against a real PostgreSQL (TEST_DATABASE_URL, asyncpg driver) and are
skipped otherwise.
"""
from __future__ import annotations
import os

import pytest

if os.getenv("TEST_DATABASE_URL"):
    # must happen before fitleague.config is imported anywhere
    os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]
os.environ.setdefault("ENQUEUE_LEAGUE_COMPLETION", "0")


def _database_configured() -> bool:
    return bool(os.getenv("TEST_DATABASE_URL"))


requires_database = pytest.mark.skipif(
    not _database_configured(),
    reason="TEST_DATABASE_URL required for integration tests",
)
