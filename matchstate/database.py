"""Async database connection using SQLAlchemy (supports SQLite and PostgreSQL)."""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from matchstate.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def get_database_url(url: str) -> str:
    """Convert database URL to async format."""
    # SQLite
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    # PostgreSQL
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return url


def engine_options(url: str) -> dict:
    """Engine keyword arguments for a read-only dashboard workload."""
    if url.startswith("sqlite"):
        # Single shared connection
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        # Reads only: kill anything slower than 30s
        "connect_args": {"server_settings": {"statement_timeout": "30000"}},
    }


DATABASE_URL = get_database_url(settings.DATABASE_URL)

async_engine = create_async_engine(DATABASE_URL, **engine_options(DATABASE_URL))

# Sessions only read, so nothing is flushed or expired on commit
AsyncSessionLocal = async_sessionmaker(async_engine, expire_on_commit=False, autoflush=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """Create missing tables (no-op when ingestion already created them)."""
    # Register table metadata
    import matchstate.models  # noqa: F401

    logger.info("Initializing database tables...")
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables ready.")


async def close_db() -> None:
    """Close database connections."""
    logger.info("Closing database connections...")
    await async_engine.dispose()
    logger.info("Database connections closed.")
