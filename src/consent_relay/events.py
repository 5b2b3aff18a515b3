"""Mapping of raw Cookiebot rows to New Relic consent events."""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Number = int | float

# ASCII-only; int()/float() alone would also take "1_000" and non-Latin digits.
_INTEGER = re.compile(r"[+-]?[0-9]+\Z")
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?\Z")

# Field aliases in priority order; casing varies by payload vintage.
OPT_INS_KEYS = ("optIns", "optins", "OptIns", "OptIn")
OPT_OUTS_KEYS = ("optOuts", "optouts", "OptOuts", "OptOut")
OPT_IN_IMPLIED_KEYS = ("optInImplied", "OptInImplied")
CONSENTS_KEYS = ("consents", "Consents")
NECESSARY_KEYS = ("necessaryConsents", "necessary", "strictOptIns", "OptInStrict")
PREFERENCES_KEYS = ("preferencesConsents", "preferences", "preferencesOptIns", "TypeOptInPref")
STATISTICS_KEYS = ("statisticsConsents", "statistics", "statisticsOptIns", "TypeOptInStat")
MARKETING_KEYS = ("marketingConsents", "marketing", "marketingOptIns", "TypeOptInMark")
DATE_KEYS = ("date", "Date")
COUNTRY_KEYS = ("countryCode", "country")


class ConsentEvent(BaseModel):
    """One day of consent statistics for a domain, shaped for the Events API."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    event_type: str
    source: str = "cookiebot"
    environment: str
    domain: str
    domain_group_id: str
    # Passed through as the row carries them (string or number).
    date: Any = None
    country_code: Any = None
    consents: Number | None = None
    opt_ins: Number | None = None
    opt_outs: Number | None = None
    opt_in_implied: Number | None = None
    necessary_consents: Number | None = None
    preferences_consents: Number | None = None
    statistics_consents: Number | None = None
    marketing_consents: Number | None = None
    pulled_at: str

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


@dataclass(frozen=True)
class EventMeta:
    """Run-level attributes stamped on every event."""

    environment: str
    domain: str
    domain_group_id: str
    event_type: str = "SgtmConsentDaily"


def to_number_or_none(value: Any) -> Number | None:
    """Coerce a loosely typed stat to a finite number.

    Empty strings, non-numeric strings, None, NaN and infinities give None.
    Integral strings become ints ("42" -> 42), others floats ("3.5" -> 3.5).
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if _INTEGER.match(text):
        return int(text)
    if _DECIMAL.match(text):
        number = float(text)
        return number if math.isfinite(number) else None
    return None


def _first_present(row: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def _first_truthy(row: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = row.get(key)
        if value:
            return value
    return None


def _number(row: Mapping[str, Any], keys: tuple[str, ...]) -> Number | None:
    return to_number_or_none(_first_present(row, keys))


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2024-03-10T06:00:00.000Z."""
    now = now or datetime.now(UTC)
    return now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def map_row_to_event(
    row: Any,
    meta: EventMeta,
    *,
    now_fn: Callable[[], datetime] | None = None,
) -> ConsentEvent:
    """Build a ConsentEvent from one raw row without modifying the row."""
    if not isinstance(row, Mapping):
        row = {}

    opt_ins = _number(row, OPT_INS_KEYS)
    opt_outs = _number(row, OPT_OUTS_KEYS)

    consents = _number(row, CONSENTS_KEYS)
    if consents is None:
        consents = opt_ins + opt_outs if opt_ins is not None and opt_outs is not None else opt_ins

    return ConsentEvent(
        event_type=meta.event_type,
        environment=meta.environment,
        domain=meta.domain,
        domain_group_id=meta.domain_group_id,
        date=_first_truthy(row, DATE_KEYS),
        country_code=_first_truthy(row, COUNTRY_KEYS),
        consents=consents,
        opt_ins=opt_ins,
        opt_outs=opt_outs,
        opt_in_implied=_number(row, OPT_IN_IMPLIED_KEYS),
        necessary_consents=_number(row, NECESSARY_KEYS),
        preferences_consents=_number(row, PREFERENCES_KEYS),
        statistics_consents=_number(row, STATISTICS_KEYS),
        marketing_consents=_number(row, MARKETING_KEYS),
        pulled_at=utc_timestamp(now_fn() if now_fn else None),
    )
