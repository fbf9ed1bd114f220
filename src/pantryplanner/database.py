"""Async database engine, sessions and schema bootstrap."""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from pantryplanner.config import get_settings


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


# Shared by FastAPI endpoints and Celery tasks; tasks dispose it after each run
async_engine = create_async_engine(get_settings().database_url, echo=get_settings().sql_echo)
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_tables() -> None:
    """Create cache, interaction and pantry tables that don't exist yet."""
    # Models register themselves on Base.metadata when imported
    import pantryplanner.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency for FastAPI endpoints."""
    async with AsyncSessionLocal() as session:
        yield session
