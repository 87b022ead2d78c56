"""Main application settings and configuration management.

This module composes all the application settings from the different modules
(app, database, redis, email, password reset) into a single, accessible
`Settings` class.

It loads settings from environment variables and .env files, validates them,
and provides a single `settings` object for use throughout the application.

Environment Support:
- Development: Uses .env, emails logged instead of sent
- Test: Uses .env.test, emails logged instead of sent
- Staging: Uses .env.staging, SMTP credentials and HMAC secret required
- Production: Uses .env.production, SMTP credentials and HMAC secret required
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .database import DatabaseSettings
from .email import EmailSettings
from .password_reset import PasswordResetSettings
from .redis import RedisSettings

logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)


class Settings(AppSettings, DatabaseSettings, RedisSettings, EmailSettings, PasswordResetSettings):
    """The main settings class that aggregates all application configurations.

    It inherits from all the specialized settings classes, providing a unified
    interface to all configuration parameters.

    Security Note:
        - Sensitive fields (passwords, RESET_TOKEN_HMAC_SECRET) are SecretStr and
          never logged (OWASP A02:2021 - Cryptographic Failures).
        - Deployed environments are validated at import time so a misconfigured
          process refuses to start (OWASP A05:2021 - Security Misconfiguration).
    Usage:
        - Access settings via the singleton instance `settings` throughout the application.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def __init__(self, **kwargs):
        """Initialize settings with environment-specific configuration."""
        super().__init__(**kwargs)
        self._set_environment_defaults(self.APP_ENV)

    def _set_environment_defaults(self, env: str) -> None:
        """Set environment-specific default values.

        Args:
            env: Environment name
        """
        if env in ("development", "test"):
            self.EMAIL_TEST_MODE = True

        if env == "development":
            self.DEBUG = True

        logger.info(f"Application running in {env} environment")
        logger.debug(f"Email test mode: {self.EMAIL_TEST_MODE}")

    def validate_required_fields(self) -> None:
        """Validates deployment-critical configuration.

        Raises:
            ValueError: If the reset HMAC key is unusable in staging/production.
        """
        self.validate_password_reset_config()

        try:
            self.validate_smtp_config()
        except ValueError as e:
            if self.APP_ENV in ("development", "test"):
                logger.warning(f"Test mode: Email config warning - {e}")
            else:
                logger.error(f"Email configuration error: {e}")
                # Delivery failures are logged by the dispatcher; the reset
                # protocol itself keeps working without SMTP.

        if self.APP_ENV in ("staging", "production") and not self.REDIS_PASSWORD.get_secret_value():
            raise ValueError(f"REDIS_PASSWORD must be set in {self.APP_ENV} environment")


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")

    env_files = {
        "development": ".env",
        "test": ".env.test",
        "staging": ".env.staging",
        "production": ".env.production"
    }

    env_file = env_files.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        settings_instance = Settings(_env_file=env_file)
    elif Path(".env").exists():
        logger.info(f"Loading environment configuration from .env (environment: {env})")
        settings_instance = Settings()
    else:
        logger.info(f"No .env file found, using environment variables only (environment: {env})")
        settings_instance = Settings()

    return settings_instance


# Create a singleton instance of the settings to be used across the application.
settings = create_settings()
settings.validate_required_fields()
