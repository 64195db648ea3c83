import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator
from app.core.config import settings
from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker, create_async_engine)

# Initialize the logger for async database events
logger = logging.getLogger(__name__)

# --- DATABASE URL CONFIGURATION ---

db_url = settings.database_url

if not db_url:
    raise RuntimeError("DATABASE_URL is not set")

if db_url.startswith("postgresql://"):
    # async driver for the application
    async_db = db_url.replace('postgresql://', 'postgresql+asyncpg://')
else:
    async_db = db_url


# --- ASYNC ENGINE CONFIG

async_engine = create_async_engine(
    async_db,
    echo=False,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    # Row-level consistency of stock is delegated to the database
    isolation_level=settings.db_isolation_level,
)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_= AsyncSession,
    expire_on_commit= False,
)

# --- FASTAPI DEPENDENCY
async def get_async_session() -> AsyncIterator[AsyncSession]:
    """
    FastAPI Dependency that provides an asynchronous database session.
    """
    async with AsyncSessionLocal() as session:
        try:
            logger.debug("Database: New async session yielded for API request.")
            yield session
        except Exception as e:
            await session.rollback()
            logger.exception(f"Database: Async session error: {e}")
            raise
        finally:
            await session.close()


# --- UNIT OF WORK ---

@asynccontextmanager
async def unit_of_work(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Provide a transactional scope around a series of operations.

    A fresh session is acquired from `session_factory`; it is committed when
    the block exits normally and rolled back when anything escapes it. The
    rollback is best-effort: a failure while rolling back is logged and the
    original exception is re-raised.
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            try:
                await session.rollback()
            except Exception as rollback_error:
                logger.warning(f"Database: rollback failed: {rollback_error}")
            raise
