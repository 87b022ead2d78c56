"""Reset Password endpoint module.

Thin adapter over `PasswordResetService`. Maps the redemption status to an
HTTP status: 200 on reset, 400 for an invalid link, 429 when the credential
has seen too many attempts.
"""

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from src.adapters.api.v1.auth.schemas import MessageResponse, ResetPasswordRequest
from src.adapters.api.v1.auth.utils import get_client_address, get_correlation_id
from src.domain.services.password_reset.password_reset_service import PasswordResetService
from src.domain.value_objects.outcomes import RedemptionStatus
from src.infrastructure.dependency_injection.password_reset_dependencies import (
    get_password_reset_service,
)

logger = structlog.get_logger(__name__)
router = APIRouter()

STATUS_CODES = {
    RedemptionStatus.RESET: status.HTTP_200_OK,
    RedemptionStatus.INVALID: status.HTTP_400_BAD_REQUEST,
    RedemptionStatus.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
}


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Reset password with a reset link",
    description=(
        "Redeems a reset credential and sets a new password. Unknown, expired, "
        "consumed and mismatched credentials all produce the same answer."
    ),
    responses={
        200: {"description": "Password successfully reset"},
        400: {"description": "Invalid or expired link, or invalid input"},
        429: {"description": "Too many attempts against this link"},
        500: {"description": "Unexpected fault"},
    },
)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    password_reset_service: PasswordResetService = Depends(get_password_reset_service),
):
    correlation_id = get_correlation_id(request)

    result = await password_reset_service.reset_password(
        credential_id=payload.credential_id,
        secret=payload.secret,
        new_password=payload.new_password,
        caller_address=get_client_address(request),
        correlation_id=correlation_id,
    )

    status_code = STATUS_CODES[result.status]
    if status_code != status.HTTP_200_OK:
        logger.info(
            "Password reset rejected",
            status=result.status.value,
            correlation_id=correlation_id,
        )
    return JSONResponse(status_code=status_code, content={"message": result.message})
