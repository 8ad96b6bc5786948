"""Value decoders for iCalendar properties: parameters, text and dates."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from dateutil import parser as date_parser

from ..timezone_utils import resolve_utc_offset

logger = logging.getLogger(__name__)

_DATE_ONLY_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_DATE_TIME_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})(Z)?$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_QUOTED_RE = re.compile(r'^"(.*)"$')

# Legacy exporters attach this to every text property; it carries no information.
_TRIVIAL_PARAMS = ["CHARSET=utf-8"]

ParamValue = Union[bool, int, float, str]


class ICalDateTime(datetime):
    """A datetime decoded from an iCalendar property.

    Floating and date-only values are naive (local time). UTC values and
    values whose TZID resolved against the zone table are aware.

    Attributes:
        tz: TZID parameter the value was declared with, if any
        date_only: True when the value came from a ``VALUE=DATE`` property
    """

    tz: Optional[str] = None
    date_only: bool = False

    @classmethod
    def from_datetime(
        cls, dt: datetime, tz: Optional[str] = None, date_only: bool = False
    ) -> ICalDateTime:
        """Copy ``dt`` into an ICalDateTime carrying the given markers."""
        value = cls(
            dt.year,
            dt.month,
            dt.day,
            dt.hour,
            dt.minute,
            dt.second,
            dt.microsecond,
            tzinfo=dt.tzinfo,
        )
        value.tz = tz
        value.date_only = date_only
        return value


@dataclass
class PropertyValue:
    """Decoded text value paired with the parameters it was declared with."""

    params: dict[str, ParamValue] = field(default_factory=dict)
    val: str = ""

    def __str__(self) -> str:
        return self.val


def unescape_text(text: Optional[str]) -> str:
    """Unescape an RFC 5545 TEXT value.

    The backslash pair is handled last so escaped commas, semicolons and
    newlines are not processed twice.
    """
    text = text or ""
    text = text.replace("\\,", ",")
    text = text.replace("\\;", ";")
    text = re.sub(r"\\[nN]", "\n", text)
    return text.replace("\\\\", "\\")


def parse_value(val: str) -> ParamValue:
    """Type a single parameter value: booleans, numbers, else the raw string."""
    if val == "TRUE":
        return True
    if val == "FALSE":
        return False
    if _NUMBER_RE.match(val):
        try:
            return int(val)
        except ValueError:
            return float(val)
    return val


def parse_params(params: Optional[list[str]]) -> dict[str, ParamValue]:
    """Decode ``KEY=VALUE`` parameter tokens; tokens without ``=`` are ignored."""
    out: dict[str, ParamValue] = {}
    for token in params or []:
        if "=" not in token:
            continue
        key, _, raw = token.partition("=")
        out[key] = parse_value(raw)
    return out


def has_meaningful_params(params: Optional[list[str]]) -> bool:
    """Return True if ``params`` carries anything beyond the legacy charset marker."""
    return bool(params) and params != _TRIVIAL_PARAMS


def get_tzid(params: Optional[list[str]]) -> Optional[str]:
    """Return the TZID parameter with any surrounding quotes removed.

    Exchange exports Windows zone names wrapped in quotes.
    """
    decoded = parse_params(params)
    if "TZID" not in decoded:
        return None
    return _QUOTED_RE.sub(r"\1", str(decoded["TZID"]))


def store_value(name: str, value: Any, record: dict[str, Any]) -> None:
    """Store ``value`` under ``name``, accumulating repeats into a list."""
    current = record.get(name)
    if isinstance(current, list):
        current.append(value)
    elif current is not None:
        record[name] = [current, value]
    else:
        record[name] = value


def decode_date(value: str, params: Optional[list[str]]) -> Union[ICalDateTime, str]:
    """Decode a DATE or DATE-TIME property value.

    Returns an ICalDateTime, or the unescaped text when the value matches
    neither shape.
    """
    tzid = get_tzid(params)

    if params and params[0] == "VALUE=DATE":
        comps = _DATE_ONLY_RE.match(value)
        if comps is not None:
            try:
                day = datetime(int(comps[1]), int(comps[2]), int(comps[3]))
            except ValueError:
                logger.debug("Out of range date value %r", value)
            else:
                return ICalDateTime.from_datetime(day, tz=tzid, date_only=True)

    comps = _DATE_TIME_RE.match(value)
    if comps is None:
        return unescape_text(value)

    year, month, day, hour, minute, second, utc = comps.groups()
    try:
        if utc == "Z":
            dt = datetime(
                int(year), int(month), int(day), int(hour), int(minute), int(second),
                tzinfo=timezone.utc,
            )
        else:
            offset = resolve_utc_offset(tzid) if tzid else None
            if offset:
                iso = f"{year}-{month}-{day}T{hour}:{minute}:{second}{offset}"
                dt = date_parser.isoparse(iso)
            else:
                dt = datetime(
                    int(year), int(month), int(day), int(hour), int(minute), int(second)
                )
    except ValueError:
        logger.debug("Out of range date-time value %r", value)
        return unescape_text(value)

    return ICalDateTime.from_datetime(dt, tz=tzid)


def date_key(value: datetime) -> str:
    """Key a date for exdate/recurrence lookups: the wall-clock date, time dropped."""
    return value.date().isoformat()
