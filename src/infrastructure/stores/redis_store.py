"""Redis adapter for the reset protocol's key-value store.

Rate-limit checks run as one server-side Lua script so that the read, the
limit comparison, the increment and the first-write TTL happen as a single
atomic unit. The script is registered once with SCRIPT LOAD and invoked by
digest with EVALSHA, and re-registered if the server's script cache was
flushed.
"""

from typing import Optional, Set

import structlog
from redis.asyncio import Redis
from redis.exceptions import NoScriptError, RedisError

from src.core.exceptions import StoreUnavailableError
from src.domain.interfaces.infrastructure import IKeyValueStore

logger = structlog.get_logger(__name__)


class RedisKeyValueStore(IKeyValueStore):
    """`IKeyValueStore` over a `redis.asyncio` client with decoded responses.

    Every Redis failure is re-raised as `StoreUnavailableError`.
    """

    # KEYS[1] counter key; ARGV[1] limit; ARGV[2] window seconds.
    # Returns 1 when allowed, 0 when denied. A denied request leaves the
    # counter untouched.
    CHECK_AND_INCREMENT_SCRIPT = """
    local current = tonumber(redis.call('GET', KEYS[1]) or '0')
    if current >= tonumber(ARGV[1]) then
        return 0
    end
    local count = redis.call('INCR', KEYS[1])
    if count == 1 then
        redis.call('EXPIRE', KEYS[1], tonumber(ARGV[2]))
    end
    return 1
    """

    def __init__(self, redis_client: Redis):
        """
        Initialize the Redis-backed store.

        Args:
            redis_client (Redis): Async client created with decode_responses=True.
        """
        self.redis = redis_client
        self._check_and_increment_sha: Optional[str] = None

    async def _register_scripts(self) -> None:
        """Register Lua scripts with Redis for atomic operations."""
        if self._check_and_increment_sha is None:
            self._check_and_increment_sha = await self.redis.script_load(
                self.CHECK_AND_INCREMENT_SCRIPT
            )

    async def check_and_increment(self, key: str, limit: int, window_seconds: int) -> bool:
        try:
            await self._register_scripts()
            try:
                result = await self.redis.evalsha(
                    self._check_and_increment_sha, 1, key, limit, window_seconds
                )
            except NoScriptError:
                logger.warning("Rate limit script missing from Redis cache; reloading")
                self._check_and_increment_sha = None
                await self._register_scripts()
                result = await self.redis.evalsha(
                    self._check_and_increment_sha, 1, key, limit, window_seconds
                )
        except RedisError as e:
            raise StoreUnavailableError(f"Redis check_and_increment failed: {e}") from e
        return int(result) == 1

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(key)
        except RedisError as e:
            raise StoreUnavailableError(f"Redis GET failed: {e}") from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self.redis.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise StoreUnavailableError(f"Redis SET failed: {e}") from e

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self.redis.delete(*keys))
        except RedisError as e:
            raise StoreUnavailableError(f"Redis DEL failed: {e}") from e

    async def ttl(self, key: str) -> Optional[int]:
        try:
            remaining = await self.redis.ttl(key)
        except RedisError as e:
            raise StoreUnavailableError(f"Redis TTL failed: {e}") from e
        # -2: key does not exist; -1: key has no expiry
        if remaining == -2:
            return None
        return int(remaining)

    async def add_to_set(self, key: str, member: str, ttl_seconds: int) -> None:
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.sadd(key, member)
                pipe.expire(key, ttl_seconds)
                await pipe.execute()
        except RedisError as e:
            raise StoreUnavailableError(f"Redis SADD failed: {e}") from e

    async def set_members(self, key: str) -> Set[str]:
        try:
            return set(await self.redis.smembers(key))
        except RedisError as e:
            raise StoreUnavailableError(f"Redis SMEMBERS failed: {e}") from e

    async def remove_from_set(self, key: str, *members: str) -> int:
        if not members:
            return 0
        try:
            return int(await self.redis.srem(key, *members))
        except RedisError as e:
            raise StoreUnavailableError(f"Redis SREM failed: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logger.warning("Redis ping failed", error=str(e))
            return False
