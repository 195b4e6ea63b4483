"""Tests for environment-based provider settings."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from ziaprovider.config.settings import Settings, get_settings, parse_bool_flag


class TestParseBoolFlag:
    @pytest.mark.parametrize("value", ["1", "t", "T", "true", "TRUE", " True ", True])
    def test_truthy(self, value):
        assert parse_bool_flag(value, name="ZIA_ACTIVATION") is True

    @pytest.mark.parametrize("value", ["0", "f", "F", "false", "FALSE", "False", "", None, False])
    def test_falsy(self, value):
        assert parse_bool_flag(value, name="ZIA_ACTIVATION") is False

    def test_unparsable_is_false(self):
        assert parse_bool_flag("yes please", name="ZIA_ACTIVATION") is False

    @pytest.mark.parametrize("value", ["tRuE", "yes", "on"])
    def test_unconventional_spellings_are_false(self, value):
        assert parse_bool_flag(value, name="ZIA_ACTIVATION") is False


class TestSettingsFromEnvironment:
    def test_activation_flag(self, monkeypatch):
        monkeypatch.setenv("ZIA_ACTIVATION", "true")
        settings = Settings(_env_file=None)
        assert settings.activation is True

    def test_activation_flag_garbage(self, monkeypatch):
        monkeypatch.setenv("ZIA_ACTIVATION", "maybe")
        assert Settings(_env_file=None).activation is False

    def test_activation_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("ZIA_ACTIVATION", raising=False)
        settings = Settings(_env_file=None)
        assert settings.activation is False
        assert settings.activation_delay_seconds == 2.0

    def test_oneapi_names(self, monkeypatch):
        monkeypatch.setenv("ZSCALER_CLIENT_ID", "cid")
        monkeypatch.setenv("ZSCALER_CLIENT_SECRET", "secret")
        monkeypatch.setenv("ZSCALER_VANITY_DOMAIN", "acme")
        monkeypatch.setenv("ZSCALER_CLOUD", "beta")

        settings = Settings(_env_file=None)

        assert settings.client_id == "cid"
        assert settings.client_secret == "secret"
        assert settings.vanity_domain == "acme"
        assert settings.zscaler_cloud == "beta"

    def test_legacy_names(self, monkeypatch):
        monkeypatch.setenv("ZIA_USERNAME", "admin@example.com")
        monkeypatch.setenv("ZIA_CLOUD", "zscalertwo")
        monkeypatch.setenv("ZSCALER_USE_LEGACY_CLIENT", "t")

        settings = Settings(_env_file=None)

        assert settings.username == "admin@example.com"
        assert settings.cloud == "zscalertwo"
        assert settings.use_legacy_client is True

    def test_negative_delay_rejected(self, monkeypatch):
        monkeypatch.setenv("ZIA_ACTIVATION_DELAY_SECONDS", "-1")
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None)

    def test_get_settings_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
