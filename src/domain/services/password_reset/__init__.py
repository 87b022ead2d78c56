"""Password Reset Domain Services.

This module contains the two flows of the reset protocol: requesting a reset
link and redeeming it.
"""

from .password_reset_request_service import PasswordResetRequestService
from .password_reset_service import PasswordResetService
from .response_pacer import ResponsePacer

__all__ = [
    "PasswordResetRequestService",
    "PasswordResetService",
    "ResponsePacer",
]
