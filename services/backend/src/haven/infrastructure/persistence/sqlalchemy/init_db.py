"""Database initialization utilities."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from haven.infrastructure.persistence.sqlalchemy.engine import create_engine
from haven.infrastructure.persistence.sqlalchemy.models import Base
from haven_config.settings import get_settings

logger = logging.getLogger(__name__)


def _get_engine() -> AsyncEngine:
    """Get the database engine for initialization."""
    return create_engine(
        get_settings().database_url,
        echo=False,
        pool_pre_ping=True,
    )


async def create_tables(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create all database tables (idempotent).

    Uses SQLAlchemy's create_all() which only creates missing tables.
    Existing tables and their data are never modified or deleted.

    Parameters
    ----------
    engine
        Engine to use; a temporary one built from settings if omitted
    """
    owned = engine is None
    engine = engine or _get_engine()
    logger.info("Ensuring all database tables exist...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if owned:
        await engine.dispose()
    logger.info("Database schema is up to date (missing tables created if needed)")


def display_database_url(url: str) -> str:
    """Strip credentials from a database URL for printing."""
    return url.split("@")[-1] if "@" in url else url
