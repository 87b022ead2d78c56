"""Response envelopes for the password reset endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    """Simple envelope used for every reset acknowledgment."""

    message: str


class CredentialStatusResponse(BaseModel):
    """Answer to ``GET /auth/check-reset-token/{credential_id}``."""

    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    expires_in: Optional[int] = Field(default=None, alias="expiresIn")
