"""Password reset protocol settings.

Every tunable of the reset protocol lives here: credential lifetime and
entropy, the three rate-limit windows, the membership filter sizing, and the
response pacing used to keep request-flow terminals indistinguishable.
"""

import logging

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEVELOPMENT_HMAC_SECRET = "development-only-reset-token-hmac-secret-change-me"


class PasswordResetSettings(BaseSettings):
    """Settings for the anti-enumeration password reset protocol.

    Security Note:
        - RESET_TOKEN_HMAC_SECRET keys the digest of every issued reset secret.
          It must be unique to this purpose and at least 32 characters in
          staging/production (OWASP A02:2021 - Cryptographic Failures).
        - The *_FAIL_OPEN flags decide what a limiter answers when Redis is
          unreachable. Open keeps the reset flow available; closed favours
          abuse resistance.
    """

    RESET_TOKEN_HMAC_SECRET: SecretStr = SecretStr(DEVELOPMENT_HMAC_SECRET)
    RESET_TOKEN_TTL_SECONDS: int = Field(default=900, ge=60, le=86400)
    RESET_SECRET_BYTES: int = Field(default=48, ge=48, le=128)

    # Caller address window
    RESET_CALLER_LIMIT: int = Field(default=20, ge=1)
    RESET_CALLER_WINDOW_SECONDS: int = Field(default=3600, ge=1)
    RESET_CALLER_FAIL_OPEN: bool = True

    # Account window
    RESET_ACCOUNT_LIMIT: int = Field(default=5, ge=1)
    RESET_ACCOUNT_WINDOW_SECONDS: int = Field(default=3600, ge=1)
    RESET_ACCOUNT_FAIL_OPEN: bool = True

    # Per-credential redemption attempts
    RESET_CREDENTIAL_LIMIT: int = Field(default=10, ge=1)
    RESET_CREDENTIAL_WINDOW_SECONDS: int = Field(default=300, ge=1)
    RESET_CREDENTIAL_FAIL_OPEN: bool = True

    MEMBERSHIP_EXPECTED_ELEMENTS: int = Field(default=200_000, ge=1)
    MEMBERSHIP_FALSE_POSITIVE_RATE: float = Field(default=0.001, gt=0.0, lt=1.0)
    # 0 disables the periodic rebuild task.
    MEMBERSHIP_REFRESH_INTERVAL_SECONDS: int = Field(default=3600, ge=0)

    RESET_RESPONSE_MIN_LATENCY_MS: int = Field(default=300, ge=0)
    RESET_RESPONSE_JITTER_MS: int = Field(default=200, ge=0)

    PASSWORD_MIN_LENGTH: int = Field(default=8, ge=8)

    def validate_password_reset_config(self) -> None:
        """Validate reset protocol secrets for deployed environments.

        Raises:
            ValueError: If the HMAC key is missing, weak, or left at the
                development default outside development/test.
        """
        app_env = getattr(self, "APP_ENV", "development")
        secret = self.RESET_TOKEN_HMAC_SECRET.get_secret_value()
        if app_env not in {"staging", "production"}:
            if secret == DEVELOPMENT_HMAC_SECRET:
                logger.warning("RESET_TOKEN_HMAC_SECRET uses the development default.")
            return

        if not secret or secret == DEVELOPMENT_HMAC_SECRET:
            raise ValueError(f"RESET_TOKEN_HMAC_SECRET must be set in {app_env} environment")
        if len(secret) < 32:
            raise ValueError("RESET_TOKEN_HMAC_SECRET must be at least 32 characters")
