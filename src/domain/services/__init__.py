"""Domain Services for the password reset bounded context.

- Membership: probabilistic "might this address be registered" index
- Rate Limiting: caller, account and credential counters
- Credentials: reset credential issue/verify/consume/peek
- Audit: append-only decision records
- Password Reset: the request and redemption flows
"""

from .audit.audit_recorder import AuditRecorder
from .credentials.credential_manager import CredentialManager
from .membership.membership_filter import MembershipFilter
from .membership.membership_index import MembershipIndex
from .password_reset.password_reset_request_service import PasswordResetRequestService
from .password_reset.password_reset_service import PasswordResetService
from .password_reset.response_pacer import ResponsePacer
from .rate_limiting.reset_rate_limiter import ResetRateLimiter

__all__ = [
    "AuditRecorder",
    "CredentialManager",
    "MembershipFilter",
    "MembershipIndex",
    "PasswordResetRequestService",
    "PasswordResetService",
    "ResponsePacer",
    "ResetRateLimiter",
]
