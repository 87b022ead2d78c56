"""Password Reset Service.

This domain service redeems reset credentials and answers "is this link still
valid" checks. Unknown and mismatched credentials produce the same result
after the same paced delay; too many attempts against one credential produce
a distinct rate-limited result.
"""

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from src.core.exceptions import PasswordPolicyError, PasswordResetError, ValidationError
from src.core.logging import mask_ip_address
from src.domain.interfaces.email import IResetDispatcher
from src.domain.interfaces.repositories import IAccountRepository
from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.services.credentials.credential_manager import CredentialManager
from src.domain.services.password_reset.response_pacer import ResponsePacer
from src.domain.services.rate_limiting.reset_rate_limiter import ResetRateLimiter
from src.domain.value_objects.outcomes import (
    AuditOutcome,
    RedemptionStatus,
    VerificationStatus,
)
from src.domain.value_objects.reset_credential import CredentialId, ResetSecret
from src.utils.security import hash_password

logger = structlog.get_logger(__name__)

RESET_SUCCESS_MESSAGE = "Password has been reset successfully."
INVALID_LINK_MESSAGE = "This reset link is invalid or has expired."
TOO_MANY_ATTEMPTS_MESSAGE = "Too many attempts. Please request a new reset link."
FIELDS_REQUIRED_MESSAGE = "All fields are required"
INVALID_TOKEN_FORMAT_MESSAGE = "Invalid token format"


@dataclass(frozen=True)
class RedemptionResult:
    status: RedemptionStatus
    message: str


@dataclass(frozen=True)
class CredentialStatus:
    valid: bool
    expires_in: Optional[int] = None


class PasswordResetService:
    """Service for redeeming reset credentials.

    Redemption order:

    1. per-credential rate limit
    2. constant-time verification of the presented secret
    3. hash the new password
    4. consume the credential (the single winning claim)
    5. write the new hash to the system of record
    6. audit and notify

    The credential is claimed before the password is written, so of any
    number of concurrent redemptions of one credential at most one changes
    the password.
    """

    def __init__(
        self,
        account_repository: IAccountRepository,
        rate_limiter: ResetRateLimiter,
        credential_manager: CredentialManager,
        dispatcher: IResetDispatcher,
        audit_recorder: AuditRecorder,
        pacer: ResponsePacer,
        min_password_length: int = 8,
        password_hasher: Callable[[str], str] = hash_password,
    ):
        """Initialize with required dependencies.

        Args:
            account_repository: System of record lookups and password writes
            rate_limiter: Per-credential attempt counter
            credential_manager: Verifies and consumes credentials
            dispatcher: Sends the password-changed notice
            audit_recorder: Records every decision
            pacer: Pads the invalid-link terminal
            min_password_length: Minimum accepted password length
            password_hasher: Produces the stored password hash
        """
        self._account_repository = account_repository
        self._rate_limiter = rate_limiter
        self._credential_manager = credential_manager
        self._dispatcher = dispatcher
        self._audit_recorder = audit_recorder
        self._pacer = pacer
        self._min_password_length = min_password_length
        self._password_hasher = password_hasher

        logger.info("PasswordResetService initialized")

    async def reset_password(
        self,
        credential_id: Optional[str],
        secret: Optional[str],
        new_password: Optional[str],
        caller_address: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> RedemptionResult:
        """Redeem a reset credential and set a new password.

        Args:
            credential_id: Credential id from the reset link
            secret: Secret from the reset link
            new_password: Password to set
            caller_address: Address the request came from
            correlation_id: Optional correlation ID for request tracking

        Returns:
            RedemptionResult: reset, invalid, or rate_limited

        Raises:
            ValidationError: If a field is missing or malformed
            PasswordPolicyError: If the new password is too short
            PasswordResetError: On an unexpected fault (after auditing it)
        """
        cid, presented = self._validate_input(credential_id, secret, new_password)
        correlation_id = correlation_id or str(uuid.uuid4())
        started_at = self._pacer.start()
        account_id: Optional[str] = None
        consumed = False
        request_logger = logger.bind(
            correlation_id=correlation_id,
            credential_id=cid.value,
            caller=mask_ip_address(caller_address),
        )

        try:
            if not await self._rate_limiter.allow_credential_attempt(cid.value):
                await self._audit(correlation_id, None, caller_address, AuditOutcome.CREDENTIAL_RATE_LIMITED, cid)
                request_logger.warning("Reset credential attempts exhausted")
                return RedemptionResult(RedemptionStatus.RATE_LIMITED, TOO_MANY_ATTEMPTS_MESSAGE)

            verification = await self._credential_manager.verify(cid.value, presented.value)
            if verification.status is VerificationStatus.NOT_FOUND:
                return await self._invalid(
                    started_at, correlation_id, None, caller_address, AuditOutcome.TOKEN_NOT_FOUND, cid
                )
            if verification.status is VerificationStatus.MISMATCH:
                return await self._invalid(
                    started_at, correlation_id, None, caller_address, AuditOutcome.TOKEN_MISMATCH, cid
                )

            account_id = verification.account_id
            account = await self._account_repository.find_account_by_id(account_id)
            if account is None or not account.is_active:
                await self._credential_manager.consume(cid.value, account_id)
                return await self._invalid(
                    started_at, correlation_id, account_id, caller_address,
                    AuditOutcome.TOKEN_NOT_FOUND, cid, reason="account_unavailable",
                )

            password_hash = await asyncio.to_thread(self._password_hasher, new_password)

            if not await self._credential_manager.consume(cid.value, account_id):
                return await self._invalid(
                    started_at, correlation_id, account_id, caller_address,
                    AuditOutcome.TOKEN_NOT_FOUND, cid, reason="already_consumed",
                )
            consumed = True

            await self._account_repository.update_password(account_id, password_hash)
            await self._audit(correlation_id, account_id, caller_address, AuditOutcome.RESET, cid)
            request_logger.info("Password reset completed", account_id=account_id)

            await self._notify_change(account.email, caller_address, correlation_id)
            return RedemptionResult(RedemptionStatus.RESET, RESET_SUCCESS_MESSAGE)

        except Exception as e:
            request_logger.error(
                "Unexpected error in password reset",
                error=str(e),
                error_type=type(e).__name__,
                consumed=consumed,
            )
            # consumed=True: every link for the account is gone but the password is unchanged.
            await self._audit(
                correlation_id, account_id, caller_address, AuditOutcome.INTERNAL_ERROR, cid,
                error=type(e).__name__,
                consumed=consumed,
            )
            raise PasswordResetError() from e

    async def check_credential(self, credential_id: Optional[str]) -> CredentialStatus:
        """Reports whether a reset link can still be used.

        Malformed, expired, consumed and never-issued ids all answer
        ``valid=False``, as does an unreachable store.
        """
        try:
            cid = CredentialId(credential_id)
        except ValueError:
            return CredentialStatus(valid=False)

        try:
            remaining = await self._credential_manager.peek(cid.value)
        except Exception as e:
            logger.error("Reset credential check failed", credential_id=cid.value, error=str(e))
            return CredentialStatus(valid=False)

        if remaining is None:
            return CredentialStatus(valid=False)
        return CredentialStatus(valid=True, expires_in=remaining)

    def _validate_input(
        self,
        credential_id: Optional[str],
        secret: Optional[str],
        new_password: Optional[str],
    ) -> tuple[CredentialId, ResetSecret]:
        if not credential_id or not secret or not new_password:
            raise ValidationError(FIELDS_REQUIRED_MESSAGE, code="fields_required")
        try:
            cid = CredentialId(credential_id)
            presented = ResetSecret(secret)
        except ValueError as e:
            raise ValidationError(INVALID_TOKEN_FORMAT_MESSAGE, code="invalid_token_format") from e
        if len(new_password) < self._min_password_length:
            raise PasswordPolicyError(
                f"Password must be at least {self._min_password_length} characters long"
            )
        return cid, presented

    async def _invalid(
        self,
        started_at: float,
        correlation_id: str,
        account_id: Optional[str],
        caller_address: Optional[str],
        outcome: AuditOutcome,
        cid: CredentialId,
        **metadata,
    ) -> RedemptionResult:
        await self._audit(correlation_id, account_id, caller_address, outcome, cid, **metadata)
        logger.info(
            "Reset credential rejected",
            outcome=outcome.value,
            credential_id=cid.value,
            correlation_id=correlation_id,
        )
        await self._pacer.pad(started_at)
        return RedemptionResult(RedemptionStatus.INVALID, INVALID_LINK_MESSAGE)

    async def _audit(
        self,
        correlation_id: str,
        account_id: Optional[str],
        caller_address: Optional[str],
        outcome: AuditOutcome,
        cid: CredentialId,
        **metadata,
    ) -> None:
        await self._audit_recorder.record(
            correlation_id=correlation_id,
            account_id=account_id,
            caller_address=caller_address,
            outcome=outcome,
            metadata={"credential_id": cid.value, **metadata},
        )

    async def _notify_change(
        self, contact_address: str, caller_address: Optional[str], correlation_id: str
    ) -> None:
        try:
            await self._dispatcher.send_change_notification(
                contact_address=contact_address,
                caller_address=caller_address,
                timestamp=datetime.now(timezone.utc),
            )
        except Exception as e:
            logger.error(
                "Failed to schedule password change notice",
                error=str(e),
                correlation_id=correlation_id,
            )
