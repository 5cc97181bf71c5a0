"""
Database connection and session management.
Handles async database operations with SQLAlchemy and connection pooling.
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import text, event, DateTime, Uuid, func
from sqlalchemy.pool import StaticPool
from app.config import settings
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

logger = logging.getLogger(__name__)


def _engine_options() -> Dict[str, Any]:
    """Build engine keyword arguments for the configured backend."""
    options: Dict[str, Any] = {"echo": settings.debug}

    if settings.is_sqlite:
        # SQLite (used by the test-suite) has no server-side pool to tune
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in settings.database_url:
            options["poolclass"] = StaticPool
        return options

    options.update(
        pool_size=10,  # Number of connections to maintain in the pool
        max_overflow=20,  # Additional connections that can be created on demand
        pool_pre_ping=True,  # Validate connections before use
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_timeout=30,
        connect_args={
            "server_settings": {
                "application_name": "real_estate_marketplace_api",
            }
        },
    )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

if settings.is_sqlite:
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # ON DELETE CASCADE / SET NULL are ignored unless foreign keys are switched on
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all database models.
    Includes common fields: id, created_at, updated_at.
    """

    # Primary key with UUID
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    # Timestamp fields with automatic management
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of the model."""
        return f"<{self.__class__.__name__}(id={self.id})>"


async def get_db() -> AsyncSession:
    """
    Dependency to get database session.
    Yields an async database session and ensures it's closed after use.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def test_database_connection() -> bool:
    """
    Test database connectivity.
    Returns True if connection is successful, False otherwise.
    """
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            logger.info("Database connection successful")
            return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


async def create_tables():
    """
    Create all database tables.
    This will be used during application startup.
    """
    # Import models so that every table is registered on the metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")


async def drop_tables():
    """
    Drop all database tables.
    This should only be used in testing or development.
    """
    if not settings.is_testing and not settings.is_development:
        raise RuntimeError("Cannot drop tables in production environment")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database tables dropped successfully")


async def close_db_connection():
    """
    Close database connection.
    This should be called during application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")
