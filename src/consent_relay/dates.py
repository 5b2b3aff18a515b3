"""Date range resolution for Cookiebot stats queries."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

import structlog

from consent_relay.errors import ConfigError

logger = structlog.get_logger()

_YYYYMMDD = re.compile(r"^\d{8}$")


@dataclass(frozen=True)
class DateRange:
    """Inclusive YYYYMMDD range plus where it came from ("explicit" or "lookback_<n>d")."""

    startdate: str
    enddate: str
    mode: str


def format_yyyymmdd(value: date) -> str:
    return value.strftime("%Y%m%d")


def parse_yyyymmdd(value: str | None) -> date | None:
    """Parse an 8-digit calendar date, returning None for anything else.

    Example:
        Input:  "20240229"
        Output: date(2024, 2, 29)
    """
    if not value:
        return None
    text = str(value).strip()
    if not _YYYYMMDD.match(text):
        return None
    try:
        return datetime.strptime(text, "%Y%m%d").date()
    except ValueError:
        return None


def parse_lookback_days(value: str | int | None) -> int:
    """Whole number of lookback days; unusable values fall back to 1."""
    try:
        days = float(str(value).strip()) if value is not None else 1.0
    except ValueError:
        days = math.nan

    if not math.isfinite(days) or days <= 0 or math.floor(days) < 1:
        logger.warning("Invalid LOOKBACK_DAYS, using 1", value=value)
        return 1
    return math.floor(days)


def resolve_date_range(
    startdate: str | None = None,
    enddate: str | None = None,
    lookback_days: str | int | None = "1",
    *,
    today: date | None = None,
) -> DateRange:
    """Resolve the query range from explicit overrides or a trailing lookback window.

    Both overrides must be set for the explicit path; they are validated and returned
    verbatim. Otherwise the window ends yesterday (UTC) and starts `lookback_days` ago.
    """
    start_text = (startdate or "").strip()
    end_text = (enddate or "").strip()

    if start_text and end_text:
        start = parse_yyyymmdd(start_text)
        end = parse_yyyymmdd(end_text)
        if start is None or end is None:
            raise ConfigError("STARTDATE/ENDDATE must be YYYYMMDD.")
        if start > end:
            raise ConfigError("STARTDATE cannot be after ENDDATE.")
        return DateRange(startdate=start_text, enddate=end_text, mode="explicit")

    if start_text or end_text:
        logger.warning(
            "Only one of STARTDATE/ENDDATE set, using lookback window",
            startdate=start_text or None,
            enddate=end_text or None,
        )

    if today is None:
        today = datetime.now(UTC).date()
    days = parse_lookback_days(lookback_days)
    return DateRange(
        startdate=format_yyyymmdd(today - timedelta(days=days)),
        enddate=format_yyyymmdd(today - timedelta(days=1)),
        mode=f"lookback_{days}d",
    )
