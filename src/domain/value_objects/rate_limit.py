"""Rate Limiting Value Objects for domain modeling.

These value objects describe the three independently keyed counters of the
reset protocol and the rule each one enforces.
"""

from dataclasses import dataclass
from enum import Enum


class RateLimitNamespace(str, Enum):
    """Identity kinds a reset counter can be keyed by.

    The value is the Redis key segment; the resulting keys are
    ``password_reset:rate:ip:<addr>``, ``password_reset:rate:user:<id>`` and
    ``password_reset:validate:token:<id>``.
    """

    CALLER_ADDRESS = "rate:ip"
    ACCOUNT = "rate:user"
    CREDENTIAL = "validate:token"

    def key_for(self, identity: str) -> str:
        return f"password_reset:{self.value}:{identity}"


@dataclass(frozen=True)
class RateLimitRule:
    """Fixed-window rule for one namespace.

    Attributes:
        limit: Requests allowed within one window
        window_seconds: Window length; also the counter TTL
        fail_open: Answer "allowed" when the store is unreachable
    """

    limit: int
    window_seconds: int
    fail_open: bool = True

    def __post_init__(self) -> None:
        """Validate rate limit configuration."""
        if self.limit <= 0:
            raise ValueError("Rate limit must be positive")

        if self.window_seconds <= 0:
            raise ValueError("Rate limit window duration must be positive")
