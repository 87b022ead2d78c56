"""Reset link status endpoint.

Lets the frontend grey out a reset form before the user types a password.
The answer is the same for never-issued, expired and consumed ids.
"""

from fastapi import APIRouter, Depends

from src.adapters.api.v1.auth.schemas import CredentialStatusResponse
from src.domain.services.password_reset.password_reset_service import PasswordResetService
from src.infrastructure.dependency_injection.password_reset_dependencies import (
    get_password_reset_service,
)

router = APIRouter()


@router.get(
    "/{credential_id}",
    response_model=CredentialStatusResponse,
    response_model_exclude_none=True,
    summary="Check whether a reset link is still valid",
)
async def check_reset_token(
    credential_id: str,
    password_reset_service: PasswordResetService = Depends(get_password_reset_service),
) -> CredentialStatusResponse:
    result = await password_reset_service.check_credential(credential_id)
    return CredentialStatusResponse(valid=result.valid, expires_in=result.expires_in)
