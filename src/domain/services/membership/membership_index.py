"""Live membership filter shared by every request.

The index owns the current `MembershipFilter` and replaces it wholesale on
rebuild: a new filter is filled from the system of record off to the side and
swapped in with one reference assignment, so readers see either the old
filter or the complete new one.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import structlog

from src.domain.interfaces.repositories import IAccountRepository
from src.domain.services.membership.membership_filter import MembershipFilter

logger = structlog.get_logger(__name__)


class MembershipIndex:
    """Explicitly constructed holder of the process-wide membership filter.

    Until the first rebuild completes `might_exist` answers True, which sends
    every request to the system of record instead of hiding real accounts.
    """

    def __init__(
        self,
        account_repository: IAccountRepository,
        expected_elements: int = 200_000,
        false_positive_rate: float = 0.001,
    ):
        self._account_repository = account_repository
        self._expected_elements = expected_elements
        self._false_positive_rate = false_positive_rate
        self._filter: Optional[MembershipFilter] = None
        self._rebuild_lock = asyncio.Lock()
        # Addresses added while a rebuild is streaming; replayed before the swap.
        self._pending: Optional[List[str]] = None
        self._last_rebuilt_at: Optional[float] = None

        logger.info(
            "MembershipIndex initialized",
            expected_elements=expected_elements,
            false_positive_rate=false_positive_rate,
        )

    @property
    def is_ready(self) -> bool:
        return self._filter is not None

    async def rebuild(self) -> int:
        """Rebuilds the filter from a full enumeration of registered addresses.

        Concurrent calls are serialized. On failure the previous filter stays
        in service and the error propagates to the caller.

        Returns:
            Number of addresses loaded.
        """
        async with self._rebuild_lock:
            started = time.monotonic()
            fresh = MembershipFilter(self._expected_elements, self._false_positive_rate)
            self._pending = []
            try:
                async for address in self._account_repository.enumerate_all_addresses():
                    fresh.add(address)
                for address in self._pending:
                    fresh.add(address)
                self._filter = fresh
            finally:
                self._pending = None

            self._last_rebuilt_at = time.time()
            logger.info(
                "Membership filter rebuilt",
                element_count=fresh.element_count,
                duration_ms=round((time.monotonic() - started) * 1000, 1),
                estimated_false_positive_rate=fresh.false_positive_probability(),
            )
            if fresh.element_count > self._expected_elements:
                logger.warning(
                    "Membership filter over capacity",
                    element_count=fresh.element_count,
                    expected_elements=self._expected_elements,
                )
            return fresh.element_count

    def add(self, address: str) -> None:
        """Registers a newly created account's address."""
        if self._pending is not None:
            self._pending.append(address)
        if self._filter is not None:
            self._filter.add(address)

    def might_exist(self, address: str) -> bool:
        current = self._filter
        if current is None:
            return True
        return current.might_exist(address)

    def stats(self) -> Dict[str, Any]:
        current = self._filter
        if current is None:
            return {"ready": False}
        return {
            "ready": True,
            "last_rebuilt_at": self._last_rebuilt_at,
            **current.stats(),
        }

    async def run_periodic_refresh(self, interval_seconds: int) -> None:
        """Rebuilds the filter every `interval_seconds` until cancelled.

        A failed rebuild is logged and the previous filter keeps serving.
        """
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.rebuild()
            except Exception as e:
                logger.error(
                    "Membership filter refresh failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
