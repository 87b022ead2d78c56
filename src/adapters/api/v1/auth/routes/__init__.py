"""Subpackage aggregating individual password reset route modules."""

__all__ = [
    "forgot_password",
    "reset_password",
    "check_reset_token",
]
