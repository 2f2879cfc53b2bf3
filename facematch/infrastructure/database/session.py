"""Database session management."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)

from facematch.core.config import settings
from facematch.core.logging import get_logger
from facematch.infrastructure.database.models import Base

logger = get_logger(__name__)


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine for the descriptor store.

    Pool sizing applies to server databases only; SQLite uses its default pool.
    """
    url = database_url or settings.DATABASE_URL
    options = {"echo": settings.DEBUG}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the async session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession: Database session

    Example:
        ```python
        async with get_db_session(session_factory) as session:
            await session.execute(query)
            await session.commit()
        ```
    """
    session = session_factory()
    logger.debug("Creating new database session")
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        logger.debug("Closing database session")
        await session.close()
