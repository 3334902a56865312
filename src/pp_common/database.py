"""Async SQLAlchemy engine and the per-request session dependency.

Repositories receive the session as their first argument and never commit;
services own the transaction boundary (commit / rollback).
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings

# No connection is opened until the first query, so STORE_BACKEND=memory
# never touches PostgreSQL.
engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one AsyncSession per request, closed afterwards."""
    async with async_session_factory() as session:
        yield session


async def ping_database() -> None:
    """Raise if PostgreSQL is unreachable; used at startup."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
