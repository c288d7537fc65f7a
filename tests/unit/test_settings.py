"""Tests for PikupSettings."""

import pytest
from pydantic import ValidationError

from pikup.core.config import PikupSettings, get_settings, reset_settings


class TestPikupSettings:
    """Test settings loading and validation."""

    def test_defaults_under_test_environment(self):
        settings = get_settings()
        assert settings.env == "testing"
        assert settings.api_base_url == "https://test-api.pikup.local"
        assert settings.default_currency == "usd"
        assert settings.status_poll_interval_seconds == 15.0
        assert settings.insurance_opt_out_allowed is True

    def test_singleton(self):
        assert get_settings() is get_settings()
        first = get_settings()
        reset_settings()
        assert get_settings() is not first

    def test_url_trailing_slash_stripped(self, monkeypatch):
        monkeypatch.setenv("API_BASE_URL", "https://api.pikup.local/")
        assert PikupSettings().api_base_url == "https://api.pikup.local"

    def test_invalid_url(self, monkeypatch):
        monkeypatch.setenv("API_BASE_URL", "ftp://api.pikup.local")
        with pytest.raises(ValidationError):
            PikupSettings()

    def test_invalid_env(self, monkeypatch):
        monkeypatch.setenv("ENV", "moon")
        with pytest.raises(ValidationError):
            PikupSettings()

    def test_currency_lowercased(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY", "EUR")
        assert PikupSettings().default_currency == "eur"

    def test_poll_interval_bounds(self, monkeypatch):
        monkeypatch.setenv("STATUS_POLL_INTERVAL_SECONDS", "0.5")
        with pytest.raises(ValidationError):
            PikupSettings()

    @pytest.mark.parametrize("env", ["production", "staging"])
    def test_payment_fallback_rejected_outside_development(self, monkeypatch, env):
        monkeypatch.setenv("ENV", env)
        monkeypatch.setenv("ALLOW_DEV_PAYMENT_FALLBACK", "true")
        with pytest.raises(ValidationError):
            PikupSettings()

    def test_payment_fallback_enabled_in_development(self, monkeypatch):
        monkeypatch.setenv("ENV", "development")
        monkeypatch.setenv("ALLOW_DEV_PAYMENT_FALLBACK", "true")
        settings = PikupSettings()
        assert settings.dev_payment_fallback_enabled is True

    def test_payment_fallback_inactive_in_testing(self, monkeypatch):
        monkeypatch.setenv("ALLOW_DEV_PAYMENT_FALLBACK", "true")
        assert PikupSettings().dev_payment_fallback_enabled is False
