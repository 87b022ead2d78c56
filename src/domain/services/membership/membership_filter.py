"""Bloom filter answering "might this email address be registered?".

The filter never forgets an added key, so a negative answer is definitive and
lets the request flow skip the system of record entirely. A positive answer
may be a false positive at roughly the configured rate.
"""

import hashlib
import math
from typing import Any, Dict

from src.domain.value_objects.email import normalize_email


class MembershipFilter:
    """Fixed-size bit array with `k` SHA-256 derived indexes per key.

    Sizing follows the standard formulas for `n` expected elements and a
    target false-positive rate `p`:

        m = ceil(-n * ln(p) / ln(2)^2)
        k = ceil((m / n) * ln(2))

    Mutation is OR-only, so concurrent `add` calls from event-loop tasks
    never tear a reader's view.
    """

    def __init__(self, expected_elements: int = 200_000, false_positive_rate: float = 0.001):
        if expected_elements <= 0:
            raise ValueError("expected_elements must be positive")
        if not 0.0 < false_positive_rate < 1.0:
            raise ValueError("false_positive_rate must be between 0 and 1")

        self.expected_elements = expected_elements
        self.target_false_positive_rate = false_positive_rate
        self.size = math.ceil(
            -expected_elements * math.log(false_positive_rate) / (math.log(2) ** 2)
        )
        self.hash_count = max(1, math.ceil((self.size / expected_elements) * math.log(2)))
        self._bits = bytearray((self.size + 7) // 8)
        self.element_count = 0

    def _indexes(self, key: str):
        normalized = normalize_email(key)
        for i in range(self.hash_count):
            digest = hashlib.sha256(f"{normalized}{i}".encode("utf-8")).digest()
            yield int.from_bytes(digest[:4], "big") % self.size

    def add(self, key: str) -> None:
        """Adds a key. Adding the same key twice is harmless."""
        for index in self._indexes(key):
            self._bits[index >> 3] |= 1 << (index & 7)
        self.element_count += 1

    def might_exist(self, key: str) -> bool:
        """False means the key was never added; True means it may have been."""
        return all(
            self._bits[index >> 3] & (1 << (index & 7)) for index in self._indexes(key)
        )

    def clear(self) -> None:
        """Resets every bit and the element counter in one step."""
        self._bits = bytearray(len(self._bits))
        self.element_count = 0

    def false_positive_probability(self) -> float:
        """Estimated false-positive rate at the current load: (1 - e^(-k*n/m))^k."""
        if self.element_count == 0:
            return 0.0
        return (1 - math.exp(-self.hash_count * self.element_count / self.size)) ** self.hash_count

    def stats(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "hash_count": self.hash_count,
            "element_count": self.element_count,
            "memory_usage_bytes": len(self._bits),
            "false_positive_rate": self.false_positive_probability(),
        }
