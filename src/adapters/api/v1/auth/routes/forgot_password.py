"""Forgot Password endpoint module.

Thin adapter over `PasswordResetRequestService`. The response is the same
generic message for registered, unregistered, inactive and rate-limited
addresses; only a missing or malformed address gets a distinct 400.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status

from src.adapters.api.v1.auth.schemas import ForgotPasswordRequest, MessageResponse
from src.adapters.api.v1.auth.utils import get_client_address, get_correlation_id
from src.core.logging import mask_ip_address
from src.domain.services.password_reset.password_reset_request_service import (
    PasswordResetRequestService,
)
from src.infrastructure.dependency_injection.password_reset_dependencies import (
    get_password_reset_request_service,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Request password reset",
    description=(
        "Sends a reset link when the address belongs to an active account. "
        "Always answers with the same message so the response reveals nothing "
        "about registration."
    ),
    responses={
        200: {"description": "Reset link sent (or would be sent if the account exists)"},
        400: {"description": "Missing or malformed email address"},
    },
)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    password_reset_service: PasswordResetRequestService = Depends(get_password_reset_request_service),
) -> MessageResponse:
    """Request a password reset link.

    Args:
        request (Request): Source of the caller address and correlation id
        payload (ForgotPasswordRequest): Address to send the link to
        password_reset_service (PasswordResetRequestService): Request flow

    Returns:
        MessageResponse: The generic acknowledgment
    """
    correlation_id = get_correlation_id(request)
    client_ip = get_client_address(request)

    logger.debug(
        "Password reset request received",
        correlation_id=correlation_id,
        client_ip=mask_ip_address(client_ip),
    )

    result = await password_reset_service.request_password_reset(
        email=payload.email,
        caller_address=client_ip,
        correlation_id=correlation_id,
    )
    return MessageResponse(message=result["message"])
