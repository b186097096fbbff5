# src/gipfladder/db/session.py

"""Database engine and session management.

Connection parameters come from the environment; nothing in the service
layer holds a global connection. Every operation receives the
``AsyncSession`` it must work in.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gipfladder.db.models import Base

logger = logging.getLogger(__name__)

# Database URL from environment variable with SQLite fallback for development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./gipfladder.db")


def _echo() -> bool:
    return os.getenv("DB_ECHO", "false").lower() == "true"


def build_engine(url: str, **kw) -> AsyncEngine:
    """Create an async engine for ``url``.

    SQLite has no server-side pool, so pool sizing only applies to other
    backends. For SQLite the busy timeout decides how long a writer waits
    for another connection's write transaction before failing.
    """
    if url.startswith("sqlite"):
        connect_args = kw.pop("connect_args", {})
        connect_args.setdefault("timeout", float(os.getenv("DB_BUSY_TIMEOUT", "5")))
        return create_async_engine(
            url, echo=_echo(), connect_args=connect_args, **kw
        )

    return create_async_engine(
        url,
        pool_size=int(os.getenv("DB_POOL_SIZE", "20")),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
        pool_pre_ping=True,
        pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "3600")),
        echo=_echo(),
        **kw,
    )


def make_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # autoflush=False: a pending email change must not reach the unique
    # constraint while the service is still checking it.
    # expire_on_commit=False: objects stay readable after commit.
    return async_sessionmaker(
        bind=bind, autocommit=False, autoflush=False, expire_on_commit=False
    )


engine = build_engine(DATABASE_URL)
AsyncSessionLocal = make_sessionmaker(engine)


async def create_schema(bind: AsyncEngine) -> None:
    """Create all tables. Production schemas are managed by Alembic."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """Yield a session that is rolled back on error and always closed."""
    async with (factory or AsyncSessionLocal)() as session:
        try:
            yield session
        except Exception:
            logger.warning("Session aborted, rolling back", exc_info=True)
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that provides an async database session."""
    async with session_scope() as session:
        yield session
