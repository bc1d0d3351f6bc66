"""Database engine, session factory, and table creation."""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import PNodeMonitorConfig
from .models.base import Base

logger = logging.getLogger("pnode_monitor.database")


def build_engine(config: PNodeMonitorConfig) -> AsyncEngine:
    """Create the async database engine for the configured URL."""
    connect_args = {}
    if config.database_url.startswith("sqlite"):
        connect_args["timeout"] = 30
    return create_async_engine(
        config.database_url,
        echo=config.debug,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the async session factory bound to ``engine``."""
    return async_sessionmaker(engine, expire_on_commit=False)


async def _enable_wal_mode(engine: AsyncEngine, config: PNodeMonitorConfig) -> None:
    """Enable WAL journal mode and busy timeout for SQLite."""
    if not config.db_wal_mode or engine.dialect.name != "sqlite":
        return
    if ":memory:" in config.database_url:
        return
    async with engine.begin() as conn:
        await conn.execute(text("PRAGMA journal_mode=WAL"))
        await conn.execute(text(f"PRAGMA busy_timeout={config.db_busy_timeout}"))
    logger.info(
        "SQLite PRAGMAs applied: WAL mode, busy_timeout=%d",
        config.db_busy_timeout,
    )


async def create_tables(engine: AsyncEngine, config: PNodeMonitorConfig) -> None:
    """Create all snapshot and sync log tables, then apply SQLite PRAGMAs."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await _enable_wal_mode(engine, config)
