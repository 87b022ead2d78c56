"""Tests for settings composition and deployment validation."""

import pytest

from src.core.config.password_reset import DEVELOPMENT_HMAC_SECRET
from src.core.config.settings import Settings

STRONG_SECRET = "k" * 48


class TestPasswordResetSettings:
    def test_defaults(self):
        config = Settings(APP_ENV="test")

        assert config.RESET_TOKEN_TTL_SECONDS == 900
        assert config.RESET_SECRET_BYTES == 48
        assert (config.RESET_CALLER_LIMIT, config.RESET_CALLER_WINDOW_SECONDS) == (20, 3600)
        assert (config.RESET_ACCOUNT_LIMIT, config.RESET_ACCOUNT_WINDOW_SECONDS) == (5, 3600)
        assert (config.RESET_CREDENTIAL_LIMIT, config.RESET_CREDENTIAL_WINDOW_SECONDS) == (10, 300)
        assert config.MEMBERSHIP_FALSE_POSITIVE_RATE == 0.001

    def test_development_secret_is_allowed_in_test(self):
        Settings(APP_ENV="test").validate_password_reset_config()

    @pytest.mark.parametrize("secret", [DEVELOPMENT_HMAC_SECRET, "", "too-short"])
    def test_production_requires_strong_secret(self, secret):
        config = Settings(APP_ENV="production", RESET_TOKEN_HMAC_SECRET=secret)

        with pytest.raises(ValueError, match="RESET_TOKEN_HMAC_SECRET"):
            config.validate_password_reset_config()

    def test_production_accepts_strong_secret(self):
        Settings(APP_ENV="production", RESET_TOKEN_HMAC_SECRET=STRONG_SECRET).validate_password_reset_config()

    def test_secret_bytes_floor(self):
        with pytest.raises(ValueError):
            Settings(APP_ENV="test", RESET_SECRET_BYTES=16)

    def test_production_requires_redis_password(self):
        config = Settings(APP_ENV="production", RESET_TOKEN_HMAC_SECRET=STRONG_SECRET)

        with pytest.raises(ValueError, match="REDIS_PASSWORD"):
            config.validate_required_fields()

    def test_test_environment_logs_email(self):
        assert Settings(APP_ENV="test").EMAIL_TEST_MODE is True
