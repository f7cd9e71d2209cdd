"""
Shared pytest fixtures and configuration for norm tests.

This module provides:
- Default dialect reset between tests
- A file-backed SQLite database (SQLAlchemy + aiosqlite) seeded with the
  ``tests`` and ``tests_2`` tables

Usage:
    @pytest.mark.asyncio
    async def test_something(db):
        users = new_view(db, Model, read=READ, dialect="sqlite")
"""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from norm.sql.adapters import SQLAlchemyDatabase
from norm.sql.dialect import get_default_dialect, set_default_dialect


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).name
        if "integration" in test_path:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Process-wide state
# =============================================================================


@pytest.fixture(autouse=True)
def restore_default_dialect():
    """Restore the default placeholder dialect after each test."""
    previous = get_default_dialect()
    yield
    set_default_dialect(previous)


# =============================================================================
# Database
# =============================================================================

SCHEMA = [
    'DROP TABLE IF EXISTS "tests"',
    """CREATE TABLE "tests" (
        "id" TEXT PRIMARY KEY,
        "field_a" TEXT NOT NULL,
        "field_b" TEXT NOT NULL,
        "field_c" INTEGER NOT NULL,
        "created_at" TEXT NOT NULL,
        "updated_at" TEXT NOT NULL
    )""",
    """INSERT INTO "tests" VALUES (
        'id01', 'a', 'b', 1234, '2001-09-28T23:00:00+00:00', '2001-09-28T23:00:00+00:00'
    )""",
    """INSERT INTO "tests" VALUES (
        'id02', 'aaaa', 'bbbb', 4321, '2002-09-28T23:00:00+00:00', '2002-09-28T23:00:00+00:00'
    )""",
    'DROP TABLE IF EXISTS "tests_2"',
    """CREATE TABLE "tests_2" (
        "id" TEXT PRIMARY KEY,
        "field_a" TEXT NOT NULL,
        "field_b" TEXT NOT NULL,
        "field_c" INTEGER NOT NULL,
        "created_at" TEXT NOT NULL,
        "updated_at" TEXT NOT NULL
    )""",
    """INSERT INTO "tests_2" VALUES (
        'id03', 'aa00', 'bb00', 1000, '2003-09-28T23:00:00+00:00', '2003-09-28T23:00:00+00:00'
    )""",
]


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite engine with a freshly seeded schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'norm.db'}")
    async with engine.begin() as conn:
        for statement in SCHEMA:
            await conn.exec_driver_sql(statement)
    yield engine
    await engine.dispose()


@pytest.fixture
def db(engine) -> SQLAlchemyDatabase:
    return SQLAlchemyDatabase(engine)
