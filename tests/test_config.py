"""
Tests for settings loading.
"""

import pytest
from pydantic import ValidationError

from finance_service.config import Settings


class TestSettings:
    """Test environment overrides and bounds."""

    def test_environment_overrides(self, test_settings):
        assert test_settings.MONGODB_DATABASE == "finanzas_test"
        assert test_settings.ACCESS_TOKEN_EXPIRE_MINUTES == 30
        assert test_settings.PASSWORD_KDF_ROUNDS == 2
        assert test_settings.MONGODB_CREATE_INDEXES is False
        assert test_settings.jwt_configured

    def test_defaults(self, monkeypatch):
        for key in ("JWT_SECRET_KEY", "MONGODB_DATABASE", "ACCESS_TOKEN_EXPIRE_MINUTES"):
            monkeypatch.delenv(key, raising=False)

        config = Settings(_env_file=None)

        assert config.MONGODB_DATABASE == "finanzas"
        assert config.ACCESS_TOKEN_EXPIRE_MINUTES == 480
        assert config.PASSWORD_SALT_BYTES == 16
        assert not config.jwt_configured

    def test_salt_below_minimum_rejected(self, monkeypatch):
        monkeypatch.setenv("PASSWORD_SALT_BYTES", "8")
        with pytest.raises(ValidationError):
            Settings()

    def test_token_lifetime_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "0")
        with pytest.raises(ValidationError):
            Settings()
