"""Single-shot HTTP requests with a timeout."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx
import structlog

from consent_relay.errors import RequestTimeoutError

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True)
class HttpResponse:
    """Status, decoded body, and headers of a completed request."""

    status_code: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def http_request(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    body: bytes | str | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.BaseTransport | None = None,
    log_url: str | None = None,
) -> HttpResponse:
    """Perform one request and return whatever status the server answered with.

    Timeouts raise RequestTimeoutError; other transport failures propagate as
    httpx.RequestError. Nothing is retried here.
    """
    shown_url = log_url or url
    try:
        with httpx.Client(timeout=timeout_seconds, transport=transport) as client:
            response = client.request(method, url, headers=headers, content=body)
    except httpx.TimeoutException as exc:
        logger.warning("Request timed out", method=method, url=shown_url, timeout_seconds=timeout_seconds)
        raise RequestTimeoutError(method, shown_url) from exc
    except httpx.RequestError as exc:
        logger.warning("Request error", method=method, url=shown_url, error=str(exc))
        raise

    return HttpResponse(
        status_code=response.status_code,
        body=response.text,
        headers=dict(response.headers),
    )
