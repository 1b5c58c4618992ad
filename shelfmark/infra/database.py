"""Async database configuration.

Provides:
- Async SQLAlchemy engine and session factory
- Transactional session context manager (commit on success, rollback on error)
- Explicit schema migration step run once at process start
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shelfmark.config import settings
from shelfmark.infra.logging import get_logger
from shelfmark.models import Base

logger = get_logger(__name__)


# Global engine (initialized on first use)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options(url: str) -> dict[str, Any]:
    """Pool options for the configured backend.

    SQLite drivers manage their own pooling, so pool sizing only applies
    to server databases.
    """
    options: dict[str, Any] = {"echo": settings.debug}
    if make_url(url).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_pool_max_overflow,
            pool_pre_ping=True,  # Verify connections before use
            pool_recycle=1800,  # Recycle connections after 30 min
        )
    return options


def get_engine() -> AsyncEngine:
    """Get or create the async database engine."""
    global _engine

    if _engine is None:
        logger.info(
            "Creating database engine",
            backend=make_url(settings.database_url).get_backend_name(),
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_pool_max_overflow,
        )
        _engine = create_async_engine(
            settings.database_url,
            **_engine_options(settings.database_url),
        )

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _session_factory


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session wrapped in a transaction.

    The session commits when the block exits normally and rolls back when
    it raises, so a reservation and its ledger row are persisted together
    or not at all.

    Yields:
        AsyncSession bound to the global engine

    Example:
        async with get_db_session() as session:
            barcode = await BarcodePool(session).reserve_best("dgk")
            await AssignmentLedger(session).open(book_id, barcode)
    """
    factory = get_session_factory()
    session = factory()

    try:
        yield session
        await session.commit()

    except Exception as e:
        await session.rollback()
        logger.warning(
            "Database session rolled back",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise

    finally:
        await session.close()


async def create_schema(engine: AsyncEngine | None = None) -> None:
    """Create all tables and indexes that do not exist yet.

    This is the one-time migration step, called from the application
    lifespan and from the seed script.
    """
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))


async def close_db_engine() -> None:
    """Close the database engine and all connections.

    Call this during application shutdown.
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Closing database engine")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def verify_db_connection() -> bool:
    """Verify database connectivity.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        async with get_db_session() as session:
            await session.execute(text("SELECT 1"))
            logger.info("Database connection verified")
            return True
    except Exception as e:
        logger.error("Database connection failed", error=str(e))
        return False
