"""Async database session management for SQLAlchemy 2.0+.

Each application instance owns its engine and session maker; both are
created in the lifespan handler and stored on ``app.state``. Production uses
PostgreSQL with asyncpg, tests use SQLite with aiosqlite.
"""

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from typing_extensions import Annotated

from rsvp.app.core.config import Settings
from rsvp.app.core.logging import get_logger

logger = get_logger(__name__)


def create_engine_from_settings(config: Settings) -> AsyncEngine:
    """Create the async engine described by ``config``.

    SQLite URLs get the driver defaults; pool sizing and recycling only
    apply to PostgreSQL.
    """
    url = config.database_url

    if "sqlite" in url.lower():
        engine = create_async_engine(url, echo=False)
        logger.info("Created SQLite async engine")
        return engine

    engine = create_async_engine(
        url,
        echo=False,
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_recycle=config.db_pool_recycle,
        pool_pre_ping=config.db_pool_pre_ping,
    )
    logger.info(
        f"Created PostgreSQL async engine (pool_size={config.db_pool_size}, "
        f"max_overflow={config.db_max_overflow})"
    )
    return engine


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_async_db(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    from rsvp.app.db import models  # noqa: F401  (registers the mappers)
    from rsvp.app.db.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_async_engine(engine: AsyncEngine) -> None:
    """Dispose the engine on application shutdown."""
    try:
        await engine.dispose()
        logger.debug("Async engine disposed successfully")
    except RuntimeError:
        # Event loop mismatch in test teardown; connections are already gone
        logger.debug("Engine dispose encountered RuntimeError (event loop mismatch)")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Transaction handling:
    - Successful requests: changes are automatically committed
    - Exceptions: changes are rolled back, exception is re-raised

    Usage:
        @router.get("/items")
        async def get_items(session: SessionDep):
            result = await session.execute(select(Item))
            return result.scalars().all()
    """
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# Type alias for FastAPI dependency injection
SessionDep = Annotated[AsyncSession, Depends(get_db)]
