"""Export the reset domain entities for use across the application."""

from .account import Account
from .password_reset_audit import PasswordResetAudit

__all__ = ["Account", "PasswordResetAudit"]
