"""Request-payload Pydantic models for the password reset endpoints.

Fields are optional at the schema level: missing and malformed values are
reported by the domain services, which own the wording of those errors.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ForgotPasswordRequest(BaseModel):
    """Payload expected by ``POST /auth/forgot-password``."""

    email: Optional[str] = Field(
        default=None,
        examples=["john@example.com"],
        description="Email address to send password reset instructions to",
    )


class ResetPasswordRequest(BaseModel):
    """Payload expected by ``POST /auth/reset-password``.

    Accepts both the ``credentialId``/``secret`` names and the
    ``tokenId``/``token`` names used in the emailed link.
    """

    model_config = ConfigDict(populate_by_name=True)

    credential_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("credentialId", "tokenId", "credential_id"),
        examples=["0b8f3c2e-4a51-4d7e-9f2a-6c1d2e3f4a5b"],
        description="Credential id from the reset link",
    )
    secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("secret", "token"),
        description="Secret from the reset link",
    )
    new_password: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("newPassword", "new_password"),
        examples=["NewPass456!"],
        description="Password to set",
    )
