"""
Database Session Management

Provides the async SQLAlchemy engine and session factory for the snippet
store. SQLite (aiosqlite) is the default; PostgreSQL (asyncpg) works with the
same models.
"""

from __future__ import annotations

from typing import Any, Dict
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from ..config import settings


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Return pool options suited to the database backend."""
    if database_url.startswith("sqlite"):
        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url:
            # A single shared connection, otherwise every checkout sees an empty database
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
    }


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for `database_url`."""
    return create_async_engine(database_url, echo=echo, **_engine_options(database_url))


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to `engine`."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Create async engine
async_engine = build_engine(settings.database_url, echo=settings.database_echo)

# Session factory
AsyncSessionLocal = build_session_factory(async_engine)

