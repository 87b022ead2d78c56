from __future__ import annotations

"""Centralized, structured exception hierarchy for ResetGuard.

Every application error carries a machine-readable `code` for programmatic
handling and a human-readable `message` that is safe to return to a caller.

Expected branches of the reset protocol (rate-limited, unknown address,
unknown or mismatched credential) are *not* exceptions; they are return
values. The classes below cover malformed input and genuine faults only.
"""

from typing import Final

__all__: Final = [
    "ResetGuardError",
    "ValidationError",
    "PasswordPolicyError",
    "PasswordResetError",
    "CredentialDataError",
    "StoreUnavailableError",
    "DatabaseError",
    "GENERIC_FAULT_MESSAGE",
]

GENERIC_FAULT_MESSAGE: Final = "An error occurred. Please try again."


class ResetGuardError(Exception):
    """Base exception class for all custom errors in the application.

    Attributes:
        message (str): A human-readable error message, safe for API responses.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    # A concise, structured representation used by loggers & FastAPI handlers.
    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Caller input errors (map to 400 Bad Request)
# ---------------------------------------------------------------------------


class ValidationError(ResetGuardError):
    """Raised when request input is malformed.

    The message names the shape problem only and never depends on whether an
    account or credential exists.
    """

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class PasswordPolicyError(ValidationError):
    """Raised when a new password does not meet the minimum policy."""

    def __init__(self, message: str, code: str = "password_policy_error"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Faults
# ---------------------------------------------------------------------------


class PasswordResetError(ResetGuardError):
    """Raised when the redemption flow hits an unexpected fault.

    Maps to a `500 Internal Server Error` with a generic message; the cause
    is logged and audited before this is raised.
    """

    def __init__(self, message: str = GENERIC_FAULT_MESSAGE, code: str = "password_reset_error"):
        super().__init__(message, code)


class CredentialDataError(ResetGuardError):
    """Raised when a stored credential record cannot be decoded.

    This indicates corruption or tampering in the key-value store and is
    treated as a fault, never as an ordinary not-found outcome.
    """

    def __init__(self, message: str, code: str = "credential_data_error"):
        super().__init__(message, code)


class StoreUnavailableError(ResetGuardError):
    """Raised when the key-value store cannot be reached."""

    def __init__(self, message: str, code: str = "store_unavailable"):
        super().__init__(message, code)


class DatabaseError(ResetGuardError):
    """Raised for errors during database operations.

    Wraps lower-level driver errors so callers do not depend on SQLAlchemy
    exception types.
    """

    def __init__(self, message: str, code: str = "database_error"):
        super().__init__(message, code)
