"""Tolerant iCalendar parsing for icsfeed."""

from .parser import ICSParser, parse_ics
from .values import ICalDateTime, PropertyValue, date_key

__all__ = ["ICSParser", "ICalDateTime", "PropertyValue", "date_key", "parse_ics"]
