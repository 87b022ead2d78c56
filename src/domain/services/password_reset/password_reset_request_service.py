"""Password Reset Request Service.

This domain service handles the initiation of password reset requests. Every
terminal of the flow (unknown address, rate limited, link issued, internal
fault) answers with the same message after the same paced delay, so a caller
cannot tell a registered address from an unregistered one.
"""

import uuid
from typing import Any, Dict, NamedTuple, Optional

import structlog

from src.core.exceptions import ValidationError
from src.core.logging import mask_ip_address
from src.domain.interfaces.email import IResetDispatcher
from src.domain.interfaces.repositories import IAccountRepository
from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.services.credentials.credential_manager import CredentialManager
from src.domain.services.membership.membership_index import MembershipIndex
from src.domain.services.password_reset.response_pacer import ResponsePacer
from src.domain.services.rate_limiting.reset_rate_limiter import ResetRateLimiter
from src.domain.value_objects.email import Email
from src.domain.value_objects.outcomes import AuditOutcome

logger = structlog.get_logger(__name__)

GENERIC_REQUEST_MESSAGE = "If this email is registered, you will receive a password reset link."
EMAIL_REQUIRED_MESSAGE = "Email is required"
INVALID_EMAIL_MESSAGE = "Invalid email format"

UNKNOWN_CALLER = "unknown"


class _Decision(NamedTuple):
    outcome: AuditOutcome
    account_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class PasswordResetRequestService:
    """Service for handling password reset requests.

    The flow is a short decision chain:

    1. caller address rate limit
    2. membership filter (a miss skips the system of record entirely)
    3. account lookup by normalized address
    4. account rate limit
    5. issue a credential and hand it to the dispatcher

    Each step may end the flow early; all endings share one response.
    """

    def __init__(
        self,
        account_repository: IAccountRepository,
        membership_index: MembershipIndex,
        rate_limiter: ResetRateLimiter,
        credential_manager: CredentialManager,
        dispatcher: IResetDispatcher,
        audit_recorder: AuditRecorder,
        pacer: ResponsePacer,
    ):
        """Initialize with required dependencies.

        Args:
            account_repository: System of record lookups
            membership_index: Live membership filter
            rate_limiter: Caller and account counters
            credential_manager: Issues reset credentials
            dispatcher: Delivers reset links
            audit_recorder: Records every decision
            pacer: Pads every terminal to the latency floor
        """
        self._account_repository = account_repository
        self._membership_index = membership_index
        self._rate_limiter = rate_limiter
        self._credential_manager = credential_manager
        self._dispatcher = dispatcher
        self._audit_recorder = audit_recorder
        self._pacer = pacer

        logger.info("PasswordResetRequestService initialized")

    async def request_password_reset(
        self,
        email: Optional[str],
        caller_address: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, str]:
        """Request a password reset for the given email address.

        Args:
            email: Raw address from the request body
            caller_address: Address the request came from
            correlation_id: Optional correlation ID for request tracking

        Returns:
            Dict containing the generic message, identical for every outcome

        Raises:
            ValidationError: If the address is missing or malformed. This is
                the only early, distinct answer; it carries no information
                about registration.
        """
        address = self._validate_email(email)
        correlation_id = correlation_id or str(uuid.uuid4())
        caller = caller_address or UNKNOWN_CALLER
        if not caller_address:
            # Every such request shares one caller bucket; usually a proxy dropping the client address.
            logger.warning("Reset request without caller address", correlation_id=correlation_id)
        started_at = self._pacer.start()

        try:
            decision = await self._decide(address, caller, correlation_id)
        except Exception as e:
            logger.error(
                "Unexpected error in password reset request",
                error=str(e),
                error_type=type(e).__name__,
                correlation_id=correlation_id,
            )
            decision = _Decision(AuditOutcome.INTERNAL_ERROR, metadata={"error": type(e).__name__})

        await self._audit_recorder.record(
            correlation_id=correlation_id,
            account_id=decision.account_id,
            caller_address=caller,
            outcome=decision.outcome,
            metadata=decision.metadata,
        )
        logger.info(
            "Password reset request handled",
            outcome=decision.outcome.value,
            email=address.mask_for_logging(),
            caller=mask_ip_address(caller),
            correlation_id=correlation_id,
        )

        await self._pacer.pad(started_at)
        return self._create_success_response()

    async def _decide(self, address: Email, caller: str, correlation_id: str) -> _Decision:
        if not await self._rate_limiter.allow_caller(caller):
            return _Decision(AuditOutcome.CALLER_RATE_LIMITED)

        if not self._membership_index.might_exist(address.value):
            return _Decision(AuditOutcome.BLOOM_MISS)

        account = await self._account_repository.find_account_by_address(address.value)
        if account is None or not account.is_active:
            return _Decision(AuditOutcome.USER_NOT_FOUND)

        if not await self._rate_limiter.allow_account(account.id):
            return _Decision(AuditOutcome.ACCOUNT_RATE_LIMITED, account.id)

        issued = await self._credential_manager.issue(account.id, account.email)
        metadata: Dict[str, Any] = {"credential_id": issued.credential_id.value}

        try:
            await self._dispatcher.send_reset_link(
                contact_address=account.email,
                display_name=account.display_name,
                credential_id=issued.credential_id.value,
                secret=issued.secret.value,
            )
        except Exception as e:
            # Credential stays live until its TTL.
            logger.error(
                "Failed to schedule reset link delivery",
                account_id=account.id,
                error=str(e),
                correlation_id=correlation_id,
            )
            metadata["dispatch_failed"] = True

        return _Decision(AuditOutcome.REQUESTED, account.id, metadata)

    @staticmethod
    def _validate_email(email: Optional[str]) -> Email:
        if email is None or (isinstance(email, str) and not email.strip()):
            raise ValidationError(EMAIL_REQUIRED_MESSAGE, code="email_required")
        try:
            return Email(email)
        except (TypeError, ValueError) as e:
            raise ValidationError(INVALID_EMAIL_MESSAGE, code="invalid_email") from e

    @staticmethod
    def _create_success_response() -> Dict[str, str]:
        return {"message": GENERIC_REQUEST_MESSAGE}
