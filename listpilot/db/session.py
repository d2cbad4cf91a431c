"""
Database session management.
"""
# listpilot/db/session.py
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from fastapi import Depends

from listpilot.core.config import settings
from listpilot.db.base import Base

logger = logging.getLogger("listpilot.db")


def _engine_options(url: str) -> dict:
    """Pool settings for the configured backend."""
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        # An in-memory database lives only as long as its single connection
        if ":memory:" in url:
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

async_session_factory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions.

    Automatically handles commit/rollback and ensures session is closed.

    Usage:
        async with get_session() as session:
            # Use session here
    """
    session = async_session_factory()
    try:
        yield session
        await session.commit()
        logger.debug("Database session committed")
    except Exception as e:
        await session.rollback()
        logger.error(f"Database session rolled back due to: {str(e)}")
        raise
    finally:
        await session.close()
        logger.debug("Database session closed")

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session for FastAPI endpoints via dependency injection.
    """
    async with get_session() as session:
        yield session

T = TypeVar('T')

def get_repository_factory(repo_type: Type[T]):
    """
    Create a repository factory for use with FastAPI dependency injection.

    Usage:
        @router.get("/")
        async def endpoint(repo = Depends(get_repository_factory(AccountRepository))):
            # Use repo here
    """
    async def _get_repo(session: AsyncSession = Depends(get_db)) -> T:
        return repo_type(session)
    return _get_repo

@asynccontextmanager
async def get_repository_context(repo_type: Type[T]) -> AsyncGenerator[T, None]:
    """
    Get a repository with managed session lifecycle.

    Usage:
        async with get_repository_context(AccountRepository) as repo:
            # Use repo here
    """
    async with get_session() as session:
        yield repo_type(session)

async def initialize_database() -> None:
    """
    Create missing tables and verify the connection.

    This should be called during application startup.
    """
    logger.info("Initializing account store")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Account store initialization complete")


async def close_database_connections() -> None:
    """
    Close all database connections in the pool.

    This should be called during application shutdown.
    """
    logger.info("Closing database connections")
    await engine.dispose()
    logger.info("Database connections closed")
