"""
Tests for settings loading.
"""

import pytest
from pydantic import ValidationError

from subscription_service.settings import (
    Environment,
    LogLevel,
    Settings,
    get_settings,
    reset_settings,
)


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.billing.currency == "USD"
        assert settings.billing.trial_months == 1
        assert settings.billing.audit_log_enabled is True
        assert settings.observability.log_level == LogLevel.INFO
        assert settings.database.url.startswith("sqlite+aiosqlite://")

    def test_nested_env_override(self, monkeypatch):
        monkeypatch.setenv("BILLING__TRIAL_MONTHS", "3")
        monkeypatch.setenv("ENVIRONMENT", "PRODUCTION")

        settings = Settings()

        assert settings.billing.trial_months == 3
        assert settings.environment == Environment.PRODUCTION
        assert settings.is_production

    def test_trial_months_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(billing={"trial_months": 0})

    def test_get_settings_is_cached_until_reset(self):
        first = get_settings()
        assert get_settings() is first

        reset_settings()

        assert get_settings() is not first
