"""Exception types raised by the relay."""

from __future__ import annotations


class RelayError(RuntimeError):
    """Base class for relay failures."""


class ConfigError(RelayError):
    """Raised when required settings are missing or date overrides are invalid."""


class RequestTimeoutError(RelayError):
    """Raised when a single HTTP attempt exceeds its timeout."""

    def __init__(self, method: str, url: str):
        super().__init__(f"Request timeout: {method} {url}")
        self.method = method
        self.url = url


class UpstreamHTTPError(RelayError):
    """Raised when Cookiebot or New Relic answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int, body: str):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class InvalidResponseError(RelayError):
    """Raised when a response body cannot be decoded as JSON."""
