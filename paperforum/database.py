"""
Database connection and session management.
Handles the SQLAlchemy async engine for PostgreSQL (asyncpg) or SQLite (aiosqlite).
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool, StaticPool
from typing import AsyncGenerator
import json
import logging

from paperforum.config import settings

logger = logging.getLogger(__name__)


def _json_dumps(value) -> str:
    # keep non-ASCII author names searchable once the JSON column is cast to text
    return json.dumps(value, ensure_ascii=False)


def _engine_kwargs(url: str) -> dict:
    kwargs = {"json_serializer": _json_dumps}
    # In-memory SQLite must share one connection or every session sees an empty DB
    if url.startswith("sqlite") and ":memory:" in url:
        kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    else:
        kwargs.update(poolclass=NullPool, pool_pre_ping=True)
    return kwargs


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless the pragma is set per connection."""
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Create async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,  # Set to True for SQL query logging
    future=True,
    **_engine_kwargs(settings.DATABASE_URL),
)
enable_sqlite_foreign_keys(engine)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for ORM models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get database session.

    Yields:
        AsyncSession: Database session

    Example:
        @router.get("/papers")
        async def list_papers(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Paper))
            return result.scalars().all()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """
    Create all tables defined in Base metadata.
    Production deployments run Alembic migrations instead; this keeps a
    fresh development database usable without a migration step.
    """
    try:
        async with engine.begin() as conn:
            # Import all models to ensure they're registered
            from paperforum.models import database_models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created/verified")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


async def close_db() -> None:
    """Close database connections gracefully."""
    try:
        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database: {e}")
        raise
