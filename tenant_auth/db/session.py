"""
db/session.py
-------------
Async SQLAlchemy engine and session factory.

Design decisions:
  - AsyncEngine with asyncpg driver for non-blocking I/O.
  - Connection pool sized for typical workloads:
      pool_size=10, max_overflow=20 → max 30 concurrent DB connections.
    (SQLite URLs use the dialect's default pool; pool sizing does not apply.)
  - pool_pre_ping=True: validates connections before checkout to handle
    stale connections after DB restarts or idle timeouts.
  - expire_on_commit=False: avoids lazy-load errors after commit in async
    context (attributes are already loaded, no implicit SELECT needed).
  - One session per request = one transaction per auth flow. The flow's
    store work is committed together or rolled back together.
"""

from functools import lru_cache
from typing import Annotated, AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tenant_auth.core.config import Settings, get_settings


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,                     # Log SQL in development
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,             # Recycle connections every hour
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@lru_cache()
def get_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """One engine (and pool) per database URL for the life of the process."""
    return build_engine(database_url, echo=echo)


@lru_cache()
def get_sessionmaker(database_url: str, echo: bool = False) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(get_engine(database_url, echo))


async def get_db(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency that yields a database session.
    The session is committed when the request handler returns and
    rolled back on exceptions.

    Usage:
        @router.get("/example")
        async def handler(db: AsyncSession = Depends(get_db)):
            ...
    """
    sessionmaker = get_sessionmaker(settings.DATABASE_URL, settings.DEBUG)
    async with sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
