"""Database engine setup and lifecycle for the shortlink service.

This module provides SQLAlchemy async engine setup, session factory creation,
and database lifecycle operations. PostgreSQL (asyncpg) is the production
backend; SQLite (aiosqlite) is accepted for local runs and tests.

Flow Diagram — Database Operations
=================================
::
    ┌─────────────┐
    │  lifespan   │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_     │
    │ engine()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_     │
    │ session_    │
    │ factory()   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ LinkStore   │
    │ opens one   │
    │ session per │
    │ operation   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ close_db()  │
    │ (shutdown)  │
    └─────────────┘

How to Use
===========
**Step 1 — Build the engine once at startup**::
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    await init_db(engine)  # Creates tables

**Step 2 — Hand the factory to the store**::
    store = LinkStore(session_factory, timeout=settings.STORE_TIMEOUT_SECONDS)

**Step 3 — Cleanup on shutdown**::
    await close_db(engine)

Key Behaviours
===============
- The engine and session factory are long-lived shared handles, never
  recreated per request.
- Connection pooling is configured for production workloads.
- Tables are created automatically on application startup.
- expire_on_commit is disabled so returned Link rows stay readable after
  their session closes.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    create_engine():  Builds the async engine from settings.
    create_session_factory():  Builds the async session factory.
    init_db():  Creates all tables on startup.
    close_db():  Disposes the engine on shutdown.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortlink.config import Settings

__all__ = ["Base", "create_engine", "create_session_factory", "init_db", "close_db"]


class Base(DeclarativeBase):
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    if settings.DATABASE_URL.startswith("sqlite"):
        return create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    # Models must be imported so their tables are registered on Base.metadata.
    import shortlink.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
