"""Async engine construction."""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


def create_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine; SQLite engines get working savepoints."""
    engine = create_async_engine(url, **kwargs)
    enable_sqlite_savepoints(engine)
    return engine


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy own transaction begin on SQLite.

    The sqlite3 driver delays ``BEGIN`` until the first write, so a
    ``SAVEPOINT`` issued before it opens (and ``RELEASE`` commits) the
    whole transaction. Emitting ``BEGIN`` ourselves keeps
    ``session.begin_nested()`` nested. No-op for other dialects.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")
