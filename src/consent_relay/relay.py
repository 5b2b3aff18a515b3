"""Relay orchestration: Cookiebot fetch -> event mapping -> New Relic send."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import date

import httpx
import structlog

from consent_relay.config import Settings
from consent_relay.cookiebot import fetch_consent_stats, match_row_shape
from consent_relay.dates import resolve_date_range
from consent_relay.events import EventMeta, map_row_to_event
from consent_relay.newrelic import send_events

logger = structlog.get_logger()


def run_relay(
    settings: Settings,
    *,
    transport: httpx.BaseTransport | None = None,
    sleep: Callable[[float], None] = time.sleep,
    today: date | None = None,
    dry_run: bool = False,
) -> dict:
    """Fetch one date range of consent stats and forward them as custom events.

    Args:
        dry_run: If True, build the events but skip the New Relic request.

    Returns:
        dict with run stats: {startdate, enddate, mode, rows, events_sent, status, dry_run}
    Raises:
        ConfigError, RequestTimeoutError, httpx.RequestError, UpstreamHTTPError,
        InvalidResponseError. Nothing is swallowed here.
    """
    date_range = resolve_date_range(
        settings.startdate,
        settings.enddate,
        settings.lookback_days,
        today=today,
    )
    stats: dict = {
        "startdate": date_range.startdate,
        "enddate": date_range.enddate,
        "mode": date_range.mode,
        "rows": 0,
        "events_sent": 0,
        "status": None,
        "dry_run": dry_run,
    }

    raw = fetch_consent_stats(settings, date_range, transport=transport, sleep=sleep)

    shape, rows = match_row_shape(raw)
    stats["rows"] = len(rows)
    logger.info("Normalized rows", count=len(rows), shape=shape)
    if not rows:
        logger.info("No rows returned, exiting cleanly")
        return stats

    meta = EventMeta(
        environment=settings.environment,
        domain=settings.cookiebot_domain,
        domain_group_id=settings.cookiebot_domain_group_id,
        event_type=settings.new_relic_event_type,
    )
    events = [map_row_to_event(row, meta) for row in rows]

    if dry_run:
        logger.info("Dry run, skipping send", count=len(events))
        stats["events"] = [event.to_payload() for event in events]
        return stats

    response = send_events(settings, events, transport=transport, sleep=sleep)
    stats["events_sent"] = len(events)
    stats["status"] = response.status_code
    logger.info(
        "Events sent",
        count=len(events),
        event_type=settings.new_relic_event_type,
        status=response.status_code,
    )
    return stats
