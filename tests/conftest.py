"""Shared test fixtures for PawQL."""

import os
from collections.abc import Generator

import pytest

from pawql import Database, DummyAdapter, array_type, enum_type, json, uuid


def _psycopg_available() -> bool:
    """Check if psycopg is installed."""
    try:
        import psycopg  # noqa: F401

        return True
    except ImportError:
        return False


def _postgresql_connectable(url: str) -> bool:
    """Check if we can connect to PostgreSQL."""
    if not _psycopg_available():
        return False
    try:
        from pawql.core.connection import DatabaseConnection

        conn = DatabaseConnection(url)
        result = conn.test_connection()
        conn.close()
        return result
    except Exception:
        return False


# Skip marker for tests requiring PostgreSQL
requires_postgresql = pytest.mark.skipif(
    not _psycopg_available(),
    reason="psycopg not installed (install with: pip install pawql[postgresql])",
)


SCHEMA = {
    "users": {
        "id": {"type": int, "primary_key": True},
        "name": str,
        "email": str,
        "age": {"type": int, "nullable": True},
        "status": str,
        "isActive": bool,
    },
    "posts": {
        "id": {"type": int, "primary_key": True},
        "userId": int,
        "title": str,
        "content": {"type": str, "nullable": True},
    },
    "events": {
        "id": uuid,
        "type": enum_type("conference", "meetup", "workshop"),
        "tags": array_type(str),
        "details": json(),
    },
}


@pytest.fixture
def adapter() -> DummyAdapter:
    """Create a recording adapter."""
    return DummyAdapter()


@pytest.fixture
def db(adapter: DummyAdapter) -> Database:
    """Create a Database over the recording adapter with quoted identifiers."""
    return Database(SCHEMA, adapter)


@pytest.fixture
def raw_db(adapter: DummyAdapter) -> Database:
    """Create a Database that renders identifiers unquoted."""
    return Database(SCHEMA, adapter, quote_identifiers=False)


@pytest.fixture
def memory_db() -> Generator[Database, None, None]:
    """Create a Database backed by SQLite in-memory.

    Uses a single-connection pool so every statement sees the same database.
    """
    from sqlalchemy import create_engine
    from sqlalchemy.pool import StaticPool

    from pawql import SQLAlchemyAdapter

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database = Database(
        {
            "accounts": {
                "id": {"type": int, "primary_key": True},
                "owner": str,
                "balance": int,
                "note": {"type": str, "nullable": True},
            }
        },
        SQLAlchemyAdapter(engine),
    )
    database.create_tables()
    yield database
    database.close()


@pytest.fixture
def postgresql_url() -> str:
    """Get PostgreSQL URL from environment or use default.

    Tests using this fixture should also use @requires_postgresql marker.
    """
    url = os.environ.get("TEST_DATABASE_URL")
    if not url:
        url = "postgresql://localhost/pawql_test"

    if not _psycopg_available():
        pytest.skip("psycopg not installed")

    if not _postgresql_connectable(url):
        pytest.skip(f"Cannot connect to PostgreSQL at {url}")

    return url


@pytest.fixture
def pg_db(postgresql_url: str) -> Generator[Database, None, None]:
    """Create a Database on PostgreSQL, dropping the test tables afterwards."""
    database = Database.from_url(SCHEMA, postgresql_url)
    yield database
    for table in reversed(database.schema.tables):
        database.adapter.query(f'DROP TABLE IF EXISTS "{table}" CASCADE', [])
    database.close()


# Re-export for use in test files
__all__ = ["requires_postgresql", "SCHEMA"]
