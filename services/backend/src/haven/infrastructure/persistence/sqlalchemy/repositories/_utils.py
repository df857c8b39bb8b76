"""Shared utilities for SQLAlchemy repositories."""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def upsert_insert(session: AsyncSession, table: Any):
    """
    Return a dialect-specific ``INSERT`` that supports ``on_conflict_do_update``.

    PostgreSQL (production) and SQLite (tests, local dev) share the same
    ``ON CONFLICT`` syntax, so repositories can write one upsert for both.
    """
    dialect = session.bind.dialect.name if session.bind is not None else ""
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    msg = f"Upserts are not supported for dialect {dialect!r}"
    raise NotImplementedError(msg)
