"""Database connection and session management."""

import os
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from kolours.core.config import settings

# Lazy database initialization - don't create engine at import time
engine = None
async_session_factory = None


def to_async_url(database_url: str) -> str:
    """Rewrite a PostgreSQL URL to use the asyncpg driver."""
    for prefix in ("postgresql+psycopg2://", "postgresql://", "postgres://"):
        if database_url.startswith(prefix):
            return database_url.replace(prefix, "postgresql+asyncpg://", 1)
    return database_url


def _initialize_database() -> None:
    """Initialize database engine and session factory."""
    global engine, async_session_factory

    if engine is not None:
        return  # Already initialized

    if os.getenv("TESTING") == "true":
        # Keep as None for testing - will be overridden in test fixtures
        return

    engine = create_async_engine(
        to_async_url(settings.DATABASE_URL),
        pool_size=settings.MAX_CONNECTIONS,
        max_overflow=0,
        echo=False,
    )

    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession: Database session
    """
    _initialize_database()

    if async_session_factory is None:
        raise RuntimeError("Database not initialized - cannot create session")

    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
