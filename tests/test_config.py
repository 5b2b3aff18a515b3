"""Tests for environment-driven settings."""

import pytest

from consent_relay.config import load_date_settings, load_settings
from consent_relay.errors import ConfigError


class TestLoadSettings:
    def test_reads_required_values(self, relay_env):
        settings = load_settings()

        assert settings.cookiebot_api_key.get_secret_value() == "cb-key"
        assert settings.cookiebot_domain_group_id == "group-123"
        assert settings.cookiebot_domain == "www.example.com"
        assert settings.new_relic_account_id == "4242"
        assert settings.new_relic_ingest_key.get_secret_value() == "nr-key"

    def test_defaults(self, relay_env):
        settings = load_settings()

        assert settings.environment == "prod"
        assert settings.startdate is None
        assert settings.enddate is None
        assert settings.lookback_days == "1"
        assert settings.fetch_attempts == 3
        assert settings.send_attempts == 3
        assert settings.fetch_base_delay_seconds == pytest.approx(1.2)
        assert settings.send_base_delay_seconds == pytest.approx(1.5)
        assert settings.new_relic_insights_host == "insights-collector.eu01.nr-data.net"

    def test_values_are_trimmed(self, relay_env, monkeypatch):
        monkeypatch.setenv("COOKIEBOT_DOMAIN", "  www.example.com \n")
        monkeypatch.setenv("NEW_RELIC_INGEST_KEY", " nr-key ")
        monkeypatch.setenv("ENVIRONMENT", " staging ")

        settings = load_settings()

        assert settings.cookiebot_domain == "www.example.com"
        assert settings.new_relic_ingest_key.get_secret_value() == "nr-key"
        assert settings.environment == "staging"

    def test_missing_required_value_is_named(self, relay_env, monkeypatch):
        monkeypatch.delenv("COOKIEBOT_DOMAIN")

        with pytest.raises(ConfigError, match="Missing required env var: COOKIEBOT_DOMAIN"):
            load_settings()

    def test_blank_required_value_is_rejected(self, relay_env, monkeypatch):
        monkeypatch.setenv("NEW_RELIC_INGEST_KEY", "   ")

        with pytest.raises(ConfigError, match="NEW_RELIC_INGEST_KEY"):
            load_settings()

    def test_blank_environment_falls_back_to_prod(self, relay_env, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "  ")

        assert load_settings().environment == "prod"

    def test_overrides_win_over_environment(self, relay_env, monkeypatch):
        monkeypatch.setenv("LOOKBACK_DAYS", "3")

        settings = load_settings(lookback_days="7", startdate="20240101")

        assert settings.lookback_days == "7"
        assert settings.startdate == "20240101"

    def test_settings_are_immutable(self, relay_env):
        settings = load_settings()

        with pytest.raises(Exception):
            settings.environment = "dev"  # type: ignore[misc]


class TestLoadDateSettings:
    def test_does_not_need_credentials(self, monkeypatch):
        monkeypatch.delenv("COOKIEBOT_API_KEY", raising=False)
        monkeypatch.setenv("STARTDATE", "20240101")
        monkeypatch.setenv("ENDDATE", "20240105")
        monkeypatch.setenv("LOOKBACK_DAYS", "")

        settings = load_date_settings()

        assert settings.startdate == "20240101"
        assert settings.enddate == "20240105"
        assert settings.lookback_days == "1"
