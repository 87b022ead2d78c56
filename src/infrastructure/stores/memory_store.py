"""In-process key-value store.

Implements the same contract as the Redis adapter for a single process: every
operation runs under one `asyncio.Lock`, and expiry is evaluated lazily
against an injectable monotonic clock. Used for local development
(`KEY_VALUE_BACKEND=memory`) and throughout the test suite.
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Set, Union

from src.domain.interfaces.infrastructure import IKeyValueStore


@dataclass
class _Entry:
    value: Union[str, int, Set[str]]
    expires_at: Optional[float]


class InMemoryKeyValueStore(IKeyValueStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    def _live(self, key: str) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            if isinstance(entry.value, set):
                raise TypeError(f"Key {key!r} holds a set")
            return str(entry.value)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        async with self._lock:
            self._entries[key] = _Entry(value, self._clock() + ttl_seconds)

    async def delete(self, *keys: str) -> int:
        async with self._lock:
            removed = 0
            for key in keys:
                if self._live(key) is not None:
                    del self._entries[key]
                    removed += 1
            return removed

    async def ttl(self, key: str) -> Optional[int]:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            if entry.expires_at is None:
                return -1
            return math.ceil(entry.expires_at - self._clock())

    async def check_and_increment(self, key: str, limit: int, window_seconds: int) -> bool:
        if limit <= 0:
            return False
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                self._entries[key] = _Entry(1, self._clock() + window_seconds)
                return True
            count = int(entry.value)
            if count >= limit:
                return False
            entry.value = count + 1
            return True

    async def add_to_set(self, key: str, member: str, ttl_seconds: int) -> None:
        async with self._lock:
            entry = self._live(key)
            if entry is None or not isinstance(entry.value, set):
                entry = _Entry(set(), None)
                self._entries[key] = entry
            entry.value.add(member)
            entry.expires_at = self._clock() + ttl_seconds

    async def set_members(self, key: str) -> Set[str]:
        async with self._lock:
            entry = self._live(key)
            if entry is None or not isinstance(entry.value, set):
                return set()
            return set(entry.value)

    async def remove_from_set(self, key: str, *members: str) -> int:
        async with self._lock:
            entry = self._live(key)
            if entry is None or not isinstance(entry.value, set):
                return 0
            removed = len(entry.value.intersection(members))
            entry.value.difference_update(members)
            if not entry.value:
                del self._entries[key]
            return removed

    async def ping(self) -> bool:
        return True
