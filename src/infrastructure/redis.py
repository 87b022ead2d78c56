"""
Redis Connection Module

This module builds the asynchronous Redis client that backs the reset
protocol's key-value store: rate-limit counters, credential records and the
per-account credential index.

One client (and its connection pool) is created in the application lifespan,
stored on `app.state`, and closed on shutdown.

**Security Note**: Ensure that the Redis connection URL (REDIS_URL) uses
rediss:// if connecting over an insecure network to prevent data interception
(OWASP A02:2021 - Cryptographic Failures). Avoid logging the URL, which may
carry the password.
"""

from redis.asyncio import Redis
import logging

from src.core.config.settings import settings

# Configure logging for Redis connection events
logger = logging.getLogger(__name__)


def create_redis_client() -> Redis:
    """
    Creates the application's asynchronous Redis client.

    Responses are decoded to `str`, and socket operations are bounded by
    REDIS_SOCKET_TIMEOUT so an unreachable server surfaces as an error the
    rate limiter can fail open on instead of a hung request.

    Returns:
        Redis: An asynchronous Redis client instance.
    """
    client = Redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )
    logger.debug("Redis client created")
    return client


async def close_redis_client(client: Redis) -> None:
    """Closes the client and releases its connection pool."""
    await client.aclose()
    logger.debug("Redis connection closed")
