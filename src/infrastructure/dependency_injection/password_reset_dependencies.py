"""Dependency injection for the password reset feature.

`build_password_reset_components` assembles every collaborator from its
infrastructure inputs and the application settings. The lifespan manager
calls it once at startup and stores the result on ``app.state``; the
providers below hand the pieces to route handlers through FastAPI's
``Depends``. Tests build the same container around in-memory fakes.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from src.core.config.settings import Settings, settings as default_settings
from src.domain.interfaces.email import IResetDispatcher
from src.domain.interfaces.infrastructure import IKeyValueStore
from src.domain.interfaces.repositories import IAccountRepository, IAuditStore
from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.services.credentials.credential_manager import CredentialManager
from src.domain.services.membership.membership_index import MembershipIndex
from src.domain.services.password_reset.password_reset_request_service import (
    PasswordResetRequestService,
)
from src.domain.services.password_reset.password_reset_service import PasswordResetService
from src.domain.services.password_reset.response_pacer import ResponsePacer
from src.domain.services.rate_limiting.reset_rate_limiter import ResetRateLimiter
from src.domain.value_objects.rate_limit import RateLimitNamespace, RateLimitRule


@dataclass
class PasswordResetComponents:
    """Everything the reset endpoints need, built once per process."""

    store: IKeyValueStore
    account_repository: IAccountRepository
    dispatcher: IResetDispatcher
    rate_limiter: ResetRateLimiter
    credential_manager: CredentialManager
    membership_index: MembershipIndex
    audit_recorder: AuditRecorder
    request_service: PasswordResetRequestService
    reset_service: PasswordResetService


def build_rate_limit_rules(config: Settings):
    return {
        RateLimitNamespace.CALLER_ADDRESS: RateLimitRule(
            limit=config.RESET_CALLER_LIMIT,
            window_seconds=config.RESET_CALLER_WINDOW_SECONDS,
            fail_open=config.RESET_CALLER_FAIL_OPEN,
        ),
        RateLimitNamespace.ACCOUNT: RateLimitRule(
            limit=config.RESET_ACCOUNT_LIMIT,
            window_seconds=config.RESET_ACCOUNT_WINDOW_SECONDS,
            fail_open=config.RESET_ACCOUNT_FAIL_OPEN,
        ),
        RateLimitNamespace.CREDENTIAL: RateLimitRule(
            limit=config.RESET_CREDENTIAL_LIMIT,
            window_seconds=config.RESET_CREDENTIAL_WINDOW_SECONDS,
            fail_open=config.RESET_CREDENTIAL_FAIL_OPEN,
        ),
    }


def build_password_reset_components(
    store: IKeyValueStore,
    account_repository: IAccountRepository,
    audit_store: IAuditStore,
    dispatcher: IResetDispatcher,
    config: Optional[Settings] = None,
    pacer: Optional[ResponsePacer] = None,
) -> PasswordResetComponents:
    """Wires the reset protocol around the given infrastructure.

    Args:
        store: Shared key-value store for credentials and counters
        account_repository: System of record
        audit_store: Durable audit destination
        dispatcher: Reset link and notice delivery
        config: Settings to read limits and secrets from
        pacer: Override for the response pacer (tests pass a zero-latency one)

    Returns:
        PasswordResetComponents: The assembled services
    """
    config = config or default_settings

    rate_limiter = ResetRateLimiter(store, build_rate_limit_rules(config))
    credential_manager = CredentialManager(
        store=store,
        rate_limiter=rate_limiter,
        hmac_secret=config.RESET_TOKEN_HMAC_SECRET.get_secret_value(),
        ttl_seconds=config.RESET_TOKEN_TTL_SECONDS,
        secret_bytes=config.RESET_SECRET_BYTES,
    )
    membership_index = MembershipIndex(
        account_repository,
        expected_elements=config.MEMBERSHIP_EXPECTED_ELEMENTS,
        false_positive_rate=config.MEMBERSHIP_FALSE_POSITIVE_RATE,
    )
    audit_recorder = AuditRecorder(audit_store)
    pacer = pacer or ResponsePacer(
        min_latency_ms=config.RESET_RESPONSE_MIN_LATENCY_MS,
        jitter_ms=config.RESET_RESPONSE_JITTER_MS,
    )

    request_service = PasswordResetRequestService(
        account_repository=account_repository,
        membership_index=membership_index,
        rate_limiter=rate_limiter,
        credential_manager=credential_manager,
        dispatcher=dispatcher,
        audit_recorder=audit_recorder,
        pacer=pacer,
    )
    reset_service = PasswordResetService(
        account_repository=account_repository,
        rate_limiter=rate_limiter,
        credential_manager=credential_manager,
        dispatcher=dispatcher,
        audit_recorder=audit_recorder,
        pacer=pacer,
        min_password_length=config.PASSWORD_MIN_LENGTH,
    )

    return PasswordResetComponents(
        store=store,
        account_repository=account_repository,
        dispatcher=dispatcher,
        rate_limiter=rate_limiter,
        credential_manager=credential_manager,
        membership_index=membership_index,
        audit_recorder=audit_recorder,
        request_service=request_service,
        reset_service=reset_service,
    )


# ---------------------------------------------------------------------------
# FastAPI providers
# ---------------------------------------------------------------------------


def get_password_reset_components(request: Request) -> PasswordResetComponents:
    return request.app.state.password_reset


def get_password_reset_request_service(request: Request) -> PasswordResetRequestService:
    return get_password_reset_components(request).request_service


def get_password_reset_service(request: Request) -> PasswordResetService:
    return get_password_reset_components(request).reset_service
