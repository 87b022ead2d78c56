"""A Value Object representing an email address in the domain.

Email addresses are the lookup key of the reset protocol: the membership
filter, the system of record and the rate limiter all see the same
normalized form, so case and surrounding whitespace never split one address
into several identities.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from src.core.logging import mask_email


def normalize_email(value: str) -> str:
    """Trim and lower-case an address."""
    return value.strip().lower()


@dataclass(frozen=True, slots=True)
class Email:
    """An immutable, self-validating, normalized email address.

    Raises:
        TypeError: If the value is not a string.
        ValueError: If the normalized value is empty, too long, or not
            shaped like ``local@domain.tld``.
    """

    value: str

    MAX_LENGTH: ClassVar[int] = 254
    EMAIL_PATTERN: ClassVar[re.Pattern] = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise TypeError("Email value must be a string.")

        normalized_value = normalize_email(self.value)
        object.__setattr__(self, "value", normalized_value)

        if not normalized_value or len(normalized_value) > self.MAX_LENGTH:
            raise ValueError("Invalid email format.")
        if not self.EMAIL_PATTERN.match(normalized_value):
            raise ValueError("Invalid email format.")

    @property
    def domain(self) -> str:
        """Returns the domain part of the email address."""
        return self.value.split("@", 1)[1]

    def mask_for_logging(self) -> str:
        """Returns a masked form safe for log output."""
        return mask_email(self.value)

    def __str__(self) -> str:
        return self.value
