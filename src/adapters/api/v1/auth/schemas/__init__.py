"""Password reset API schemas package.

Request payloads live in ``requests`` and response envelopes in ``responses``;
both are re-exported here so routes and tests import from one place.
"""

# flake8: noqa: F401 – re-export

from .requests import ForgotPasswordRequest, ResetPasswordRequest
from .responses import CredentialStatusResponse, MessageResponse

__all__ = [
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "MessageResponse",
    "CredentialStatusResponse",
]
