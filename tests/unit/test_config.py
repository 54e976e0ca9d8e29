"""
Unit tests for business_kb_publisher.config module.

Settings are built with _env_file=None so a local .env cannot change
the values under test.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from business_kb_publisher.config import (
    Settings,
    get_bot_credentials,
    get_cache_dir,
    get_settings,
)


class TestSettingsDefaults:
    """Safety-critical defaults."""

    def test_production_publishing_disallowed_by_default(self):
        """Production writes need an explicit opt-in."""
        field = Settings.model_fields["allow_production"]
        assert field.default is False

    def test_validation_enabled_by_default(self):
        """Entities are validated before any network call."""
        assert Settings.model_fields["validate_entities"].default is True

    def test_dry_run_disabled_by_default(self):
        assert Settings.model_fields["dry_run"].default is False

    def test_default_target_is_sandbox(self):
        assert Settings.model_fields["default_target"].default == "sandbox"

    def test_notability_required_by_default(self):
        assert Settings.model_fields["require_notability"].default is True

    def test_property_types_verified_by_default(self):
        assert Settings.model_fields["verify_property_types"].default is True

    def test_sandbox_endpoint_is_test_wikidata(self):
        field = Settings.model_fields["sandbox_api_url"]
        assert "test.wikidata.org" in field.default


class TestSettingsParsing:
    """Settings validation and normalization."""

    def test_empty_credentials_become_none(self):
        """Blank env values for credentials are treated as unset."""
        settings = Settings(_env_file=None, bot_username="  ", bot_password="")
        assert settings.bot_username is None
        assert settings.bot_password is None

    def test_default_target_is_normalized(self):
        settings = Settings(_env_file=None, default_target="  Production ")
        assert settings.default_target == "production"

    def test_env_aliases(self, monkeypatch):
        """Credentials and flags are read from their documented env names."""
        monkeypatch.setenv("WIKIBASE_BOT_USERNAME", "Someone@bot")
        monkeypatch.setenv("WIKIBASE_BOT_PASSWORD", "pw")
        monkeypatch.setenv("ALLOW_PRODUCTION_PUBLISH", "true")
        monkeypatch.setenv("PUBLISH_TARGET", "production")

        settings = Settings(_env_file=None)

        assert settings.bot_username == "Someone@bot"
        assert settings.bot_password == "pw"
        assert settings.allow_production is True
        assert settings.default_target == "production"

    def test_stale_days_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, qid_cache_stale_days=0)

    def test_cache_dir_is_path(self):
        settings = Settings(_env_file=None, cache_dir="some/dir")
        assert settings.cache_dir == Path("some/dir")


class TestBotCredentials:
    """Tests for get_bot_credentials."""

    def test_returns_credentials(self):
        settings = Settings(_env_file=None, bot_username="User@bot", bot_password="secret")
        assert get_bot_credentials(settings) == ("User@bot", "secret")

    def test_missing_password_raises(self):
        settings = Settings(_env_file=None, bot_username="User@bot", bot_password=None)
        with pytest.raises(ValueError, match="WIKIBASE_BOT_PASSWORD"):
            get_bot_credentials(settings)


def test_get_settings_is_cached():
    """get_settings returns the same instance until the cache is cleared."""
    assert get_settings() is get_settings()


def test_get_cache_dir_returns_path():
    assert isinstance(get_cache_dir(), Path)
