from __future__ import annotations

"""
Asynchronous Database Utilities Module

This module provides the asynchronous SQLAlchemy engine and session factory
used by the account repository and the audit store.

The engine is created in the application lifespan rather than at import time,
so importing the application never opens a connection pool. Repositories take
the session factory and open one short-lived session per operation.

**Security Note**: Ensure that the database connection URL (DATABASE_URL) is configured for SSL/TLS when
connecting over untrusted networks to prevent data interception (OWASP A02:2021 - Cryptographic Failures).
Avoid logging sensitive connection details to prevent information disclosure
(OWASP A09:2021 - Security Logging and Monitoring Failures).

Key Components:
    - create_engine: Builds the async engine from settings.
    - create_session_factory: Binds an `async_sessionmaker` to an engine.
    - check_database_health: Round-trips a trivial query.
    - create_async_db_and_tables: Creates tables (development and tests).
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from src.core.config.settings import settings

# Configure logging for async database events
logger = logging.getLogger(__name__)


def create_engine(url: Optional[str] = None) -> AsyncEngine:
    """
    Build the asynchronous engine.

    Args:
        url: Database URL; defaults to settings.DATABASE_URL.

    Returns:
        AsyncEngine: Engine with the configured pool limits.
    """
    database_url = url or settings.DATABASE_URL
    pool_kwargs = {}
    if not database_url.startswith("sqlite"):
        pool_kwargs = {
            "pool_size": settings.POSTGRES_POOL_SIZE,
            "max_overflow": settings.POSTGRES_MAX_OVERFLOW,
            "pool_timeout": settings.POSTGRES_POOL_TIMEOUT,
            "pool_pre_ping": True,
        }
    engine = create_async_engine(database_url, echo=False, **pool_kwargs)
    logger.debug("Async database engine created")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def check_database_health(engine: AsyncEngine) -> bool:
    """
    Check that the database answers a trivial query.

    Returns:
        bool: True if the round trip succeeded.
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


async def create_async_db_and_tables(engine: AsyncEngine) -> None:  # noqa: D401
    """
    Create tables using the async engine (development and test suites).

    Deployed environments use the Alembic migrations instead.
    """
    # Registers both tables on SQLModel.metadata.
    import src.domain.entities  # noqa: F401

    logger.info("Creating async database tables")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Async database tables created")
