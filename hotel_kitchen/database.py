"""
Database Connection Module
Handles PostgreSQL connection using SQLAlchemy async engine.

The engine is created lazily so that development mode (in-memory store)
never needs a database driver or a reachable server.
"""

import logging
from functools import lru_cache
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from hotel_kitchen.core.config import get_settings

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


@lru_cache()
def get_engine() -> AsyncEngine:
    """Create the async engine on first use."""
    settings = get_settings()
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=5,  # Connection pool size
        max_overflow=10,  # Extra connections when pool is full
    )


@lru_cache()
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the lazily created engine."""
    return async_sessionmaker(
        bind=get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,  # Objects remain accessible after commit
    )


async def init_db() -> None:
    """
    Create all tables in database.
    Called once at application startup in staging/production.
    """
    # Import models so they register on Base.metadata
    from hotel_kitchen import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created successfully")


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
    get_session_maker.cache_clear()
    get_engine.cache_clear()
