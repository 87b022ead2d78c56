"""Infrastructure service interfaces for cross-cutting concerns.

The reset protocol keeps all shared, short-lived state (rate-limit counters,
credential records, per-account credential indexes) in a key-value store with
TTL support. This module defines that port; Redis and in-process adapters live
in `src.infrastructure.stores`.
"""

from abc import ABC, abstractmethod
from typing import Optional, Set


class IKeyValueStore(ABC):
    """Interface for an expiring key-value store with one atomic counter primitive.

    Adapters raise `StoreUnavailableError` when the backing service cannot be
    reached; callers decide whether to fail open or closed.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Returns the value stored under `key`, or None if absent or expired."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Stores `value` under `key`, replacing any previous value.

        Args:
            key: Store key.
            value: String payload.
            ttl_seconds: Lifetime after which the key disappears.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Deletes keys and reports how many existed.

        A single-key delete returning 1 is the store's conditional claim: of
        any number of concurrent deletes of the same key, exactly one observes 1.

        Returns:
            Number of keys that were present and are now removed.
        """
        raise NotImplementedError

    @abstractmethod
    async def ttl(self, key: str) -> Optional[int]:
        """Returns the remaining lifetime of `key` in seconds, or None if absent."""
        raise NotImplementedError

    @abstractmethod
    async def check_and_increment(self, key: str, limit: int, window_seconds: int) -> bool:
        """Atomically checks a fixed-window counter and counts the request.

        If the counter is absent it is created at 1 with a TTL of
        `window_seconds`. If it is below `limit` it is incremented. If it is at
        or above `limit` it is left unchanged and the request is denied.

        Returns:
            True if the request is within the limit.
        """
        raise NotImplementedError

    @abstractmethod
    async def add_to_set(self, key: str, member: str, ttl_seconds: int) -> None:
        """Adds `member` to the set at `key` and refreshes the set's TTL."""
        raise NotImplementedError

    @abstractmethod
    async def set_members(self, key: str) -> Set[str]:
        """Returns all members of the set at `key` (empty if absent)."""
        raise NotImplementedError

    @abstractmethod
    async def remove_from_set(self, key: str, *members: str) -> int:
        """Removes the given members from the set at `key`.

        Members added concurrently by other callers are left in place. A set
        left empty disappears.

        Returns:
            Number of members that were present and are now removed.
        """
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Reports whether the store is reachable."""
        raise NotImplementedError
