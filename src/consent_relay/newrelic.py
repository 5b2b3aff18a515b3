"""New Relic Events API delivery."""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Sequence

import httpx
import structlog

from consent_relay.config import Settings
from consent_relay.errors import UpstreamHTTPError
from consent_relay.events import ConsentEvent
from consent_relay.http import HttpResponse, http_request
from consent_relay.retry import with_retry

logger = structlog.get_logger()


def build_events_url(settings: Settings) -> str:
    return f"https://{settings.new_relic_insights_host}/v1/accounts/{settings.new_relic_account_id}/events"


def serialize_events(events: Sequence[ConsentEvent]) -> bytes:
    """All events as one compact JSON array, UTF-8 encoded."""
    return json.dumps([event.to_payload() for event in events], separators=(",", ":")).encode("utf-8")


def send_events(
    settings: Settings,
    events: Sequence[ConsentEvent],
    *,
    transport: httpx.BaseTransport | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> HttpResponse:
    """POST the whole batch in one request, retrying on any failure.

    Returns:
        the accepted (2xx) response
    Raises:
        UpstreamHTTPError if the last attempt still got a non-2xx status
    """
    url = build_events_url(settings)
    payload = serialize_events(events)
    headers = {
        "Api-Key": settings.new_relic_ingest_key.get_secret_value(),
        "Content-Type": "application/json",
        "Content-Length": str(len(payload)),
    }

    def _post() -> HttpResponse:
        response = http_request(
            "POST",
            url,
            headers=headers,
            body=payload,
            timeout_seconds=settings.http_timeout_seconds,
            transport=transport,
        )
        if not response.ok:
            raise UpstreamHTTPError(
                f"New Relic ingest failed: {response.status_code} {response.body}",
                status_code=response.status_code,
                body=response.body,
            )
        return response

    logger.info(
        "Sending events",
        count=len(events),
        account_id=settings.new_relic_account_id,
        payload_bytes=len(payload),
    )
    return with_retry(
        _post,
        attempts=settings.send_attempts,
        base_delay_seconds=settings.send_base_delay_seconds,
        sleep=sleep,
        label="newrelic_send",
    )
