"""Pytest fixtures for consent relay tests."""

import json
from collections.abc import Callable

import httpx
import pytest

from consent_relay.config import Settings, load_settings

REQUIRED_ENV = {
    "COOKIEBOT_API_KEY": "cb-key",
    "COOKIEBOT_DOMAIN_GROUP_ID": "group-123",
    "COOKIEBOT_DOMAIN": "www.example.com",
    "NEW_RELIC_ACCOUNT_ID": "4242",
    "NEW_RELIC_INGEST_KEY": "nr-key",
}

OPTIONAL_ENV = (
    "ENVIRONMENT",
    "STARTDATE",
    "ENDDATE",
    "LOOKBACK_DAYS",
    "COOKIEBOT_BASE_URL",
    "NEW_RELIC_INSIGHTS_HOST",
    "NEW_RELIC_EVENT_TYPE",
    "HTTP_TIMEOUT_SECONDS",
    "FETCH_ATTEMPTS",
    "FETCH_BASE_DELAY_SECONDS",
    "SEND_ATTEMPTS",
    "SEND_BASE_DELAY_SECONDS",
)


@pytest.fixture
def relay_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set the required variables and clear every optional one."""
    for name in OPTIONAL_ENV:
        monkeypatch.delenv(name, raising=False)
    for name, value in REQUIRED_ENV.items():
        monkeypatch.setenv(name, value)
    return dict(REQUIRED_ENV)


@pytest.fixture
def settings(relay_env) -> Settings:
    return load_settings(startdate="20240101", enddate="20240105")


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def hosts(self) -> list[str]:
        return [request.url.host for request in self.requests]


def json_response(status_code: int, payload) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode())


@pytest.fixture
def sleeps() -> list[float]:
    """Collects requested backoff delays instead of sleeping."""
    return []
