"""Domain Value Objects for the password reset domain.

Value objects are immutable objects that describe domain concepts by their attributes
rather than their identity.
"""

from .email import Email, normalize_email
from .outcomes import AuditOutcome, RedemptionStatus, VerificationResult, VerificationStatus
from .rate_limit import RateLimitNamespace, RateLimitRule
from .reset_credential import CredentialId, IssuedCredential, ResetSecret, StoredCredential

__all__ = [
    "Email",
    "normalize_email",
    "AuditOutcome",
    "RedemptionStatus",
    "VerificationResult",
    "VerificationStatus",
    "RateLimitNamespace",
    "RateLimitRule",
    "CredentialId",
    "IssuedCredential",
    "ResetSecret",
    "StoredCredential",
]
