"""
Database configuration and session management.
Uses SQLAlchemy 2.0 with async support (aiosqlite locally, asyncpg for PostgreSQL).
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from ticketdash.config import settings


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def get_async_database_url(url: str) -> str:
    """Convert a plain postgresql:// or sqlite:// URL to its async driver form."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def _engine_options(url: str) -> dict:
    """Pool options; SQLite pools do not accept sizing arguments."""
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,  # Verify connections before using them
        "pool_size": 5,
        "max_overflow": 10,
    }


_database_url = get_async_database_url(settings.DATABASE_URL)

# Create async engine
engine: AsyncEngine = create_async_engine(
    _database_url,
    echo=False,  # Set to True for SQL query logging in development
    **_engine_options(_database_url),
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Yields:
        AsyncSession: Database session

    Example:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Item))
            return result.scalars().all()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Initialize database tables.
    Creates all tables defined in models that do not exist yet.
    """
    # Import models so their tables are registered on Base.metadata
    import ticketdash.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """
    Close database connections.
    Should be called during application shutdown.
    """
    await engine.dispose()
