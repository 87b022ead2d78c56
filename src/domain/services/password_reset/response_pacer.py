"""Response pacing for timing-uniform terminals.

A flow records when it started and, before answering, sleeps until a fixed
latency floor plus a random jitter has elapsed. Every terminal padded this way
takes at least the same time whether it stopped at the first check or ran the
full chain.
"""

import asyncio
import secrets
import time
from typing import Awaitable, Callable


class ResponsePacer:
    """Pads a flow's elapsed time up to `min_latency_ms` plus jitter."""

    def __init__(
        self,
        min_latency_ms: int = 300,
        jitter_ms: int = 200,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_latency_ms < 0 or jitter_ms < 0:
            raise ValueError("Latency settings must not be negative")
        self._min_latency = min_latency_ms / 1000
        self._jitter = jitter_ms / 1000
        self._clock = clock
        self._sleep = sleep
        self._random = secrets.SystemRandom()

    def start(self) -> float:
        return self._clock()

    def target_seconds(self) -> float:
        """Draws this response's total latency target."""
        if self._jitter == 0:
            return self._min_latency
        return self._min_latency + self._random.uniform(0, self._jitter)

    async def pad(self, started_at: float) -> None:
        """Sleeps for whatever remains of the drawn target since `started_at`."""
        remaining = self.target_seconds() - (self._clock() - started_at)
        if remaining > 0:
            await self._sleep(remaining)
