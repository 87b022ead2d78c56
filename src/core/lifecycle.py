"""Application lifecycle management.

This module handles application startup and shutdown events, ensuring proper
initialization and cleanup of application resources: the key-value store,
the database engine, the membership filter and its refresh task, and the
background email dispatcher.
"""

import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential

from src.core.config.settings import settings
from src.core.logging import logger
from src.domain.interfaces.infrastructure import IKeyValueStore
from src.domain.services.membership.membership_index import MembershipIndex
from src.infrastructure.database import (
    check_database_health,
    create_async_db_and_tables,
    create_engine,
    create_session_factory,
)
from src.infrastructure.dependency_injection.password_reset_dependencies import (
    build_password_reset_components,
)
from src.infrastructure.redis import close_redis_client, create_redis_client
from src.infrastructure.repositories import AccountRepository, AuditRepository
from src.infrastructure.services.reset_dispatcher import EmailResetDispatcher
from src.infrastructure.stores import InMemoryKeyValueStore, RedisKeyValueStore

MEMBERSHIP_BUILD_ATTEMPTS = 3


def create_key_value_store():
    """Builds the configured key-value store.

    Returns:
        Tuple of the store and the Redis client backing it (None for the
        in-memory backend).
    """
    if settings.KEY_VALUE_BACKEND == "memory":
        logger.warning("key_value_store_in_memory", env=settings.APP_ENV)
        return InMemoryKeyValueStore(), None
    redis_client = create_redis_client()
    return RedisKeyValueStore(redis_client), redis_client


async def build_membership_filter(membership_index: MembershipIndex) -> None:
    """Runs the initial membership filter build, retrying transient failures.

    If every attempt fails the index stays not-ready and every request
    consults the system of record until the periodic refresh succeeds.
    """
    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(MEMBERSHIP_BUILD_ATTEMPTS),
            wait=wait_exponential(multiplier=1, max=10),
        ):
            with attempt:
                count = await membership_index.rebuild()
        logger.info("membership_filter_ready", addresses=count)
    except RetryError as e:
        logger.error(
            "membership_filter_build_failed",
            attempts=MEMBERSHIP_BUILD_ATTEMPTS,
            error=str(e.last_attempt.exception()),
        )


async def check_store_on_startup(store: IKeyValueStore) -> None:
    if not await store.ping():
        # Rate limits follow their fail-open rules until the store returns.
        logger.error("key_value_store_unavailable_on_startup")


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager that handles startup and shutdown events.

        Args:
            app (FastAPI): The FastAPI application instance

        Raises:
            RuntimeError: If the database is unavailable during startup
        """
        # Startup
        engine = create_engine()
        if not await check_database_health(engine):
            logger.error("database_unavailable_on_startup")
            await engine.dispose()
            raise RuntimeError("Database unavailable")
        await create_async_db_and_tables(engine)
        session_factory = create_session_factory(engine)

        store, redis_client = create_key_value_store()
        await check_store_on_startup(store)

        dispatcher = EmailResetDispatcher()
        components = build_password_reset_components(
            store=store,
            account_repository=AccountRepository(session_factory),
            audit_store=AuditRepository(session_factory),
            dispatcher=dispatcher,
        )

        app.state.db_engine = engine
        app.state.password_reset = components

        await build_membership_filter(components.membership_index)

        refresh_task = None
        if settings.MEMBERSHIP_REFRESH_INTERVAL_SECONDS > 0:
            refresh_task = asyncio.create_task(
                components.membership_index.run_periodic_refresh(
                    settings.MEMBERSHIP_REFRESH_INTERVAL_SECONDS
                )
            )

        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        yield

        # Shutdown
        if refresh_task is not None:
            refresh_task.cancel()
            with suppress(asyncio.CancelledError):
                await refresh_task
        await dispatcher.drain()
        if redis_client is not None:
            await close_redis_client(redis_client)
        await engine.dispose()
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
