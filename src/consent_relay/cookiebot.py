"""Cookiebot consent statistics: URL building, fetching, and row extraction."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from consent_relay.config import Settings
from consent_relay.dates import DateRange
from consent_relay.errors import InvalidResponseError, UpstreamHTTPError
from consent_relay.http import http_request
from consent_relay.retry import with_retry

logger = structlog.get_logger()

RAW_PREVIEW_CHARS = 900

RowExtractor = Callable[[Any], list | None]


def _stats_path(settings: Settings, api_key: str, date_range: DateRange) -> str:
    # Same escaping as JavaScript's encodeURIComponent
    domain = quote(settings.cookiebot_domain, safe="-_.!~*'()")
    return (
        f"{settings.cookiebot_base_url.rstrip('/')}/{api_key}/json"
        f"/domaingroup/{settings.cookiebot_domain_group_id}/domain/{domain}/consent/stats"
        f"?startdate={date_range.startdate}&enddate={date_range.enddate}"
    )


def build_stats_url(settings: Settings, date_range: DateRange) -> str:
    """Consent stats URL for the configured domain group, domain, and range.

    Example:
        https://consent.cookiebot.com/api/v1/KEY/json/domaingroup/GROUP/domain/example.com
        /consent/stats?startdate=20240101&enddate=20240105
    """
    return _stats_path(settings, settings.cookiebot_api_key.get_secret_value(), date_range)


def redacted_stats_url(settings: Settings, date_range: DateRange) -> str:
    return _stats_path(settings, "***", date_range)


def _list_at(*keys: str) -> RowExtractor:
    def extract(raw: Any) -> list | None:
        node = raw
        for key in keys:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        return node if isinstance(node, list) else None

    return extract


def _list_or_single_at(*keys: str) -> RowExtractor:
    def extract(raw: Any) -> list | None:
        node = raw
        for key in keys:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        if isinstance(node, list):
            return node
        if isinstance(node, dict):
            return [node]
        return None

    return extract


def _top_level_list(raw: Any) -> list | None:
    return raw if isinstance(raw, list) else None


# Envelope shapes seen across Cookiebot API vintages, tried in order.
ROW_SHAPES: list[tuple[str, RowExtractor]] = [
    ("list", _top_level_list),
    ("data", _list_at("data")),
    ("stats", _list_at("stats")),
    ("consentstat.consentday", _list_or_single_at("consentstat", "consentday")),
    ("ConsentStat.ConsentDay", _list_or_single_at("ConsentStat", "ConsentDay")),
    ("result.data", _list_at("result", "data")),
    ("result.stats", _list_at("result", "stats")),
    ("payload.data", _list_at("payload", "data")),
    ("payload.stats", _list_at("payload", "stats")),
]


def match_row_shape(raw: Any) -> tuple[str | None, list]:
    """Return (shape name, rows) for the first matching envelope, or (None, [])."""
    if not raw:
        return None, []
    for name, extract in ROW_SHAPES:
        rows = extract(raw)
        if rows is not None:
            return name, rows
    return None, []


def normalize_rows(raw: Any) -> list:
    """Extract consent stat rows from a parsed response; unknown shapes give []."""
    _shape, rows = match_row_shape(raw)
    return rows


def fetch_consent_stats(
    settings: Settings,
    date_range: DateRange,
    *,
    transport: httpx.BaseTransport | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """GET the stats endpoint with retries and return the decoded JSON body.

    Non-2xx statuses and undecodable bodies both fail the attempt and are retried.
    """
    url = build_stats_url(settings, date_range)
    log_url = redacted_stats_url(settings, date_range)

    def _get_json() -> Any:
        response = http_request(
            "GET",
            url,
            timeout_seconds=settings.http_timeout_seconds,
            transport=transport,
            log_url=log_url,
        )
        logger.info("Cookiebot responded", status=response.status_code)
        if not response.ok:
            raise UpstreamHTTPError(
                f"Cookiebot API failed: {response.status_code} {response.body}",
                status_code=response.status_code,
                body=response.body,
            )
        try:
            return json.loads(response.body)
        except json.JSONDecodeError as exc:
            raise InvalidResponseError(f"Cookiebot API returned invalid JSON: {response.body}") from exc

    logger.info(
        "Fetching consent stats",
        startdate=date_range.startdate,
        enddate=date_range.enddate,
        domain=settings.cookiebot_domain,
        mode=date_range.mode,
    )
    data = with_retry(
        _get_json,
        attempts=settings.fetch_attempts,
        base_delay_seconds=settings.fetch_base_delay_seconds,
        sleep=sleep,
        label="cookiebot_fetch",
    )

    root_keys = list(data.keys()) if isinstance(data, dict) else []
    logger.info(
        "Cookiebot payload received",
        root_keys=", ".join(root_keys) or "(none)",
        raw_preview=json.dumps(data)[:RAW_PREVIEW_CHARS],
    )
    return data
