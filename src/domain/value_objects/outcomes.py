"""Outcome values produced by the reset protocol.

Expected branches of both flows are reported as these values rather than as
exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AuditOutcome(str, Enum):
    """Decision recorded for every terminal of the request and redemption flows."""

    # Request flow
    REQUESTED = "requested"
    USER_NOT_FOUND = "user_not_found"
    CALLER_RATE_LIMITED = "caller_rate_limited"
    ACCOUNT_RATE_LIMITED = "account_rate_limited"
    BLOOM_MISS = "bloom_miss"

    # Redemption flow
    RESET = "reset"
    TOKEN_NOT_FOUND = "token_not_found"
    TOKEN_MISMATCH = "token_mismatch"
    CREDENTIAL_RATE_LIMITED = "credential_rate_limited"

    # Either flow
    INTERNAL_ERROR = "internal_error"


class VerificationStatus(str, Enum):
    VALID = "valid"
    NOT_FOUND = "not_found"
    MISMATCH = "mismatch"


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Result of checking a presented secret against a stored credential."""

    status: VerificationStatus
    account_id: Optional[str] = None
    contact_address: Optional[str] = None

    @classmethod
    def valid(cls, account_id: str, contact_address: str) -> "VerificationResult":
        return cls(VerificationStatus.VALID, account_id, contact_address)

    @classmethod
    def not_found(cls) -> "VerificationResult":
        return cls(VerificationStatus.NOT_FOUND)

    @classmethod
    def mismatch(cls) -> "VerificationResult":
        return cls(VerificationStatus.MISMATCH)

    @property
    def is_valid(self) -> bool:
        return self.status is VerificationStatus.VALID


class RedemptionStatus(str, Enum):
    """Caller-visible result of a redemption attempt."""

    RESET = "reset"
    INVALID = "invalid"
    RATE_LIMITED = "rate_limited"
