"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from backoffice_service.errors import ConfigurationError
from backoffice_service.settings import settings

log = structlog.get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db(database_url: str | None = None) -> None:
    global _engine, _session_factory
    url = database_url or settings.database_url
    if not url:
        # Requests needing the database raise ConfigurationError.
        log.warning("database_not_configured")
        return
    options = {"echo": False, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        options["pool_size"] = settings.database_pool_size
    _engine = create_async_engine(url, **options)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)
    log.info("database_initialized", driver=_engine.url.drivername)


async def close_db() -> None:
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise ConfigurationError("Database not configured: set DATABASE_URL")
    return _session_factory


async def ping() -> None:
    """Round-trip ``SELECT 1``; raises if the store is unreachable or unconfigured."""
    async with get_session_factory()() as session:
        await session.execute(text("SELECT 1"))
