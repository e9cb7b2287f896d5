"""
Database Session Management

This module handles async database connections using SQLAlchemy's async engine.
Uses a database abstraction layer to support different database backends.

Engines and session factories are built by functions rather than at import
time, so tests can point a store at a temporary database.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortlink.db.sqlite_adapter import get_database_adapter

# Import models so their tables are registered on SQLModel.metadata
from shortlink.db import models  # noqa: F401


def create_engine(database_url: str) -> AsyncEngine:
    """
    Create the async engine for a database URL through the adapter.

    The adapter handles all database-specific configuration.
    """
    db_adapter = get_database_adapter()
    return db_adapter.create_engine(database_url)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create an async session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables (no-op for tables that already exist)."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
