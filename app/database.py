"""Database engine and per-request sessions for the record store."""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings
from app.models import collections

logger = structlog.get_logger(__name__)

_POSTGRES_SCHEMES = ("postgresql://", "postgres://")


def to_async_url(url: str) -> str:
    """
    Point a PostgreSQL URL at the asyncpg driver.

    Both ``postgresql://`` and the shorter ``postgres://`` form used by hosted
    providers are accepted. URLs already naming a driver are left alone.
    """
    for scheme in _POSTGRES_SCHEMES:
        if url.startswith(scheme):
            return "postgresql+asyncpg://" + url[len(scheme) :]
    return url


engine: AsyncEngine = create_async_engine(
    to_async_url(settings.database_url),
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
    pool_recycle=3600,
    connect_args={"server_settings": {"application_name": settings.app_name}},
)

SessionFactory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency yielding one session per request.

    The record store commits or rolls back each of its own writes; anything
    left open is discarded when the session closes.
    """
    async with SessionFactory() as session:
        yield session


async def check_database_connection() -> bool:
    """
    Check that the database answers and holds every collection table.

    Missing tables are logged but do not fail the check, so a fresh database
    still reports as reachable before ``scripts/init_db.py`` has run.
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            existing = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    except Exception as e:
        logger.warning("database_check_failed", error=str(e))
        return False

    missing = sorted(set(collections) - set(existing))
    if missing:
        logger.warning("database_tables_missing", tables=missing)
    return True
