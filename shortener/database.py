"""Database engine and session management for the URL shortener.

The service owns a single table, so there is one engine for the process and a
short-lived AsyncSession per request.

Flow Diagram — Request Session
=============================
::
    ┌─────────────┐     ┌─────────────┐     ┌─────────────┐
    │ get_db()     │ ──► │ URLRepository│ ──► │ session     │
    │ new session │     │ statements  │     │ closed      │
    └─────────────┘     └─────────────┘     └─────────────┘

Key Behaviours
===============
- PostgreSQL (asyncpg) engines use a queue pool sized by DATABASE_POOL_SIZE /
  DATABASE_MAX_OVERFLOW, with pre-ping and connection recycling.
- SQLite URLs (local runs, tests) get a single shared connection, since an
  in-memory database only lives as long as its connection.
- SQL echo follows APP_ENV == "development".

Functions:
    build_engine():  Engine factory for a database URL.
    get_db():  FastAPI dependency for database sessions.
    init_db():  Creates the `urls` table on startup.
    close_db():  Disposes the engine on shutdown.
"""

from collections.abc import AsyncGenerator
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from shortener.config import Settings, get_settings

__all__ = ["Base", "build_engine", "engine", "async_session", "get_db", "init_db", "close_db"]

settings = get_settings()


def build_engine(url: str, config: Optional[Settings] = None) -> AsyncEngine:
    config = config or settings
    echo = config.APP_ENV == "development"
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        url,
        echo=echo,
        pool_size=config.DATABASE_POOL_SIZE,
        max_overflow=config.DATABASE_MAX_OVERFLOW,
        pool_recycle=config.DATABASE_POOL_RECYCLE_SECONDS,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
