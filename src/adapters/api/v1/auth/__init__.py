"""Authentication router package – bundles the password reset endpoints."""

from fastapi import APIRouter

from .routes import check_reset_token as check_reset_token_route
from .routes import forgot_password as forgot_password_route
from .routes import reset_password as reset_password_route

router = APIRouter(prefix="/auth", tags=["auth"])

# Delegate to sub-routers ----------------------------------------------------

router.include_router(forgot_password_route.router, prefix="/forgot-password")
router.include_router(reset_password_route.router, prefix="/reset-password")
router.include_router(check_reset_token_route.router, prefix="/check-reset-token")

__all__ = ["router"]
