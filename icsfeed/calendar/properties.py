"""Per-property handlers that decode raw values onto component records.

Each handler takes ``(value, params, record)`` where ``params`` is the list of
raw ``KEY=VALUE`` tokens from the property line, and stores its decoded result
on ``record`` in place.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Callable

from .values import (
    PropertyValue,
    date_key,
    decode_date,
    has_meaningful_params,
    parse_params,
    store_value,
    unescape_text,
)

logger = logging.getLogger(__name__)

PropertyHandler = Callable[[str, list[str], dict[str, Any]], None]

_LIST_SEPARATOR_RE = re.compile(r"\s*,\s*")
_VENDOR_EXTENSION_RE = re.compile(r"X-[\w-]+")


def store_text(name: str) -> PropertyHandler:
    """Store unescaped text, wrapped with its parameters when it has any."""

    def handler(value: str, params: list[str], record: dict[str, Any]) -> None:
        data: Any
        if has_meaningful_params(params):
            data = PropertyValue(params=parse_params(params), val=unescape_text(value))
        else:
            data = unescape_text(value)
        store_value(name, data, record)

    return handler


def store_date(name: str) -> PropertyHandler:
    """Store a decoded DATE/DATE-TIME (or its text when it does not decode)."""

    def handler(value: str, params: list[str], record: dict[str, Any]) -> None:
        store_value(name, decode_date(value, params), record)

    return handler


def store_geo(name: str) -> PropertyHandler:
    def handler(value: str, params: list[str], record: dict[str, Any]) -> None:
        parts = value.split(";")
        record[name] = {
            "lat": _to_number(parts[0]),
            "lon": _to_number(parts[1] if len(parts) > 1 else ""),
        }

    return handler


def store_categories(name: str) -> PropertyHandler:
    """Split a comma list; repeated CATEGORIES lines extend one flat list."""

    def handler(value: str, params: list[str], record: dict[str, Any]) -> None:
        categories = _LIST_SEPARATOR_RE.split(value) if value else []
        current = record.get(name)
        if current is None:
            record[name] = categories
        elif categories:
            if not isinstance(current, list):
                current = [current]
            record[name] = current + categories

    return handler


def store_exdate(name: str) -> PropertyHandler:
    """Index excluded dates by date-only ISO string.

    The time of day is dropped on purpose: floating times, DST shifts and
    exporters that write an EXDATE time different from the rule's start
    would otherwise never match an occurrence.
    """

    def handler(value: str, params: list[str], record: dict[str, Any]) -> None:
        exdates = record.get(name)
        if not isinstance(exdates, dict):
            exdates = {}
            record[name] = exdates

        for entry in _LIST_SEPARATOR_RE.split(value) if value else []:
            decoded = decode_date(entry, params)
            if not isinstance(decoded, datetime):
                logger.warning("Skipping EXDATE entry that is not a date: %r", decoded)
                continue
            exdates[date_key(decoded)] = decoded

    return handler


def store_freebusy(name: str) -> PropertyHandler:
    """Append one busy-period record per FREEBUSY line."""

    def handler(value: str, params: list[str], record: dict[str, Any]) -> None:
        period: dict[str, Any] = {"type": parse_params(params).get("FBTYPE", "BUSY")}
        periods = record.get(name)
        if not isinstance(periods, list):
            periods = []
            record[name] = periods
        periods.append(period)

        period["val"] = unescape_text(value)
        for field_name, part in zip(("start", "end"), value.split("/")):
            store_value(field_name, decode_date(part, params), period)

    return handler


def _to_number(raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        return float("nan")


PROPERTY_HANDLERS: dict[str, PropertyHandler] = {
    "SUMMARY": store_text("summary"),
    "DESCRIPTION": store_text("description"),
    "URL": store_text("url"),
    "UID": store_text("uid"),
    "LOCATION": store_text("location"),
    "TRANSP": store_text("transp"),
    "PERCENT-COMPLETE": store_text("percent-complete"),
    "X-MICROSOFT-CDO-BUSYSTATUS": store_text("x-microsoft-cdo-busystatus"),
    "DTSTART": store_date("start"),
    "DTEND": store_date("end"),
    "DTSTAMP": store_date("dtstamp"),
    "CREATED": store_date("created"),
    "LAST-MODIFIED": store_date("lastmodified"),
    "COMPLETED": store_date("completed"),
    "RECURRENCE-ID": store_date("recurrenceid"),
    "EXDATE": store_exdate("exdate"),
    "GEO": store_geo("geo"),
    "CATEGORIES": store_categories("categories"),
    "FREEBUSY": store_freebusy("freebusy"),
}


def handle_property(
    name: str,
    value: str,
    params: list[str],
    record: dict[str, Any],
    in_component: bool,
) -> None:
    """Dispatch one property line onto ``record``.

    Args:
        name: Property name exactly as written (dispatch is case-sensitive)
        value: Raw value text
        params: Raw parameter tokens
        record: Component record under construction
        in_component: Whether any BEGIN is currently open
    """
    handler = PROPERTY_HANDLERS.get(name)
    if handler is not None:
        handler(value, params, record)
        return

    if in_component and _VENDOR_EXTENSION_RE.match(name):
        store_text(name[2:])(value, params, record)
        return

    store_text(name.lower())(value, params, record)
