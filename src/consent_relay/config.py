"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from typing import Any

from pydantic import SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from consent_relay.errors import ConfigError

REQUIRED_FIELDS = (
    "cookiebot_api_key",
    "cookiebot_domain_group_id",
    "cookiebot_domain",
    "new_relic_account_id",
    "new_relic_ingest_key",
)


class DateSettings(BaseSettings):
    """Date range settings: YYYYMMDD overrides, or a trailing window ending yesterday."""

    model_config = SettingsConfigDict(
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    startdate: str | None = None
    enddate: str | None = None
    # Kept as raw text; the resolver falls back to 1 on anything unusable.
    lookback_days: str = "1"

    @field_validator("startdate", "enddate", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("lookback_days", mode="before")
    @classmethod
    def _blank_lookback_as_default(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "1"
        return str(value)


class Settings(DateSettings):
    """Relay settings loaded from environment variables."""

    # Cookiebot
    cookiebot_api_key: SecretStr
    cookiebot_domain_group_id: str
    cookiebot_domain: str
    cookiebot_base_url: str = "https://consent.cookiebot.com/api/v1"

    # New Relic
    new_relic_account_id: str
    new_relic_ingest_key: SecretStr
    new_relic_insights_host: str = "insights-collector.eu01.nr-data.net"
    new_relic_event_type: str = "SgtmConsentDaily"

    environment: str = "prod"

    # HTTP
    http_timeout_seconds: float = 20.0
    fetch_attempts: int = 3
    fetch_base_delay_seconds: float = 1.2
    send_attempts: int = 3
    send_base_delay_seconds: float = 1.5

    @field_validator(*REQUIRED_FIELDS, mode="before")
    @classmethod
    def _require_non_blank(cls, value: Any) -> Any:
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        if value is None or not str(value).strip():
            raise ValueError("must not be blank")
        return str(value).strip()

    @field_validator("environment", mode="before")
    @classmethod
    def _blank_environment_as_default(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "prod"
        return value


def _describe_errors(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "?"
        env_name = field.upper()
        if error["type"] == "missing" or field in REQUIRED_FIELDS:
            messages.append(f"Missing required env var: {env_name}")
        else:
            messages.append(f"Invalid env var {env_name}: {error['msg']}")
    return "; ".join(messages)


def load_settings(**overrides: Any) -> Settings:
    """Build the run's settings from the environment.

    Keyword overrides win over environment values and go through the same validation.
    Raises ConfigError naming every missing or blank required variable.
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigError(_describe_errors(exc)) from exc


def load_date_settings(**overrides: Any) -> DateSettings:
    try:
        return DateSettings(**overrides)
    except ValidationError as exc:
        raise ConfigError(_describe_errors(exc)) from exc
