"""Time zone lookup and clock utilities for icsfeed."""

from __future__ import annotations

import datetime
import logging
import os
import re
from typing import Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

TEST_TIME_ENV = "ICSFEED_TEST_TIME"

_OFFSET_RE = re.compile(r"[-+]\d{2}:\d{2}")

# Windows zone names as written by Exchange/Outlook in TZID parameters.
# The standard-time offset is read out of ``text``; entries without one
# (plain UTC) fall back to floating time.
WINDOWS_ZONES: tuple[dict[str, str], ...] = (
    {"value": "Dateline Standard Time", "abbr": "DST", "text": "(UTC-12:00) International Date Line West"},
    {"value": "UTC-11", "abbr": "U", "text": "(UTC-11:00) Coordinated Universal Time-11"},
    {"value": "Hawaiian Standard Time", "abbr": "HST", "text": "(UTC-10:00) Hawaii"},
    {"value": "Alaskan Standard Time", "abbr": "AKDT", "text": "(UTC-09:00) Alaska"},
    {"value": "Pacific Standard Time (Mexico)", "abbr": "PDT", "text": "(UTC-08:00) Baja California"},
    {"value": "Pacific Standard Time", "abbr": "PST", "text": "(UTC-08:00) Pacific Time (US & Canada)"},
    {"value": "US Mountain Standard Time", "abbr": "UMST", "text": "(UTC-07:00) Arizona"},
    {"value": "Mountain Standard Time (Mexico)", "abbr": "MDT", "text": "(UTC-07:00) Chihuahua, La Paz, Mazatlan"},
    {"value": "Mountain Standard Time", "abbr": "MDT", "text": "(UTC-07:00) Mountain Time (US & Canada)"},
    {"value": "Central America Standard Time", "abbr": "CAST", "text": "(UTC-06:00) Central America"},
    {"value": "Central Standard Time", "abbr": "CDT", "text": "(UTC-06:00) Central Time (US & Canada)"},
    {"value": "Central Standard Time (Mexico)", "abbr": "CDT", "text": "(UTC-06:00) Guadalajara, Mexico City, Monterrey"},
    {"value": "Canada Central Standard Time", "abbr": "CCST", "text": "(UTC-06:00) Saskatchewan"},
    {"value": "SA Pacific Standard Time", "abbr": "SPST", "text": "(UTC-05:00) Bogota, Lima, Quito"},
    {"value": "Eastern Standard Time", "abbr": "EST", "text": "(UTC-05:00) Eastern Time (US & Canada)"},
    {"value": "US Eastern Standard Time", "abbr": "UEDT", "text": "(UTC-05:00) Indiana (East)"},
    {"value": "Venezuela Standard Time", "abbr": "VST", "text": "(UTC-04:30) Caracas"},
    {"value": "Paraguay Standard Time", "abbr": "PYT", "text": "(UTC-04:00) Asuncion"},
    {"value": "Atlantic Standard Time", "abbr": "ADT", "text": "(UTC-04:00) Atlantic Time (Canada)"},
    {"value": "SA Western Standard Time", "abbr": "SWST", "text": "(UTC-04:00) Georgetown, La Paz, Manaus, San Juan"},
    {"value": "Newfoundland Standard Time", "abbr": "NDT", "text": "(UTC-03:30) Newfoundland"},
    {"value": "E. South America Standard Time", "abbr": "ESAST", "text": "(UTC-03:00) Brasilia"},
    {"value": "Argentina Standard Time", "abbr": "AST", "text": "(UTC-03:00) Buenos Aires"},
    {"value": "Greenland Standard Time", "abbr": "GDT", "text": "(UTC-03:00) Greenland"},
    {"value": "UTC-02", "abbr": "U", "text": "(UTC-02:00) Coordinated Universal Time-02"},
    {"value": "Azores Standard Time", "abbr": "ADT", "text": "(UTC-01:00) Azores"},
    {"value": "Cape Verde Standard Time", "abbr": "CVST", "text": "(UTC-01:00) Cape Verde Is."},
    {"value": "UTC", "abbr": "UTC", "text": "(UTC) Coordinated Universal Time"},
    {"value": "GMT Standard Time", "abbr": "GMT", "text": "(UTC+00:00) Edinburgh, London"},
    {"value": "Greenwich Standard Time", "abbr": "GST", "text": "(UTC+00:00) Monrovia, Reykjavik"},
    {"value": "W. Europe Standard Time", "abbr": "WEDT", "text": "(UTC+01:00) Amsterdam, Berlin, Bern, Rome, Stockholm, Vienna"},
    {"value": "Central Europe Standard Time", "abbr": "CEDT", "text": "(UTC+01:00) Belgrade, Bratislava, Budapest, Ljubljana, Prague"},
    {"value": "Romance Standard Time", "abbr": "RDT", "text": "(UTC+01:00) Brussels, Copenhagen, Madrid, Paris"},
    {"value": "Central European Standard Time", "abbr": "CEDT", "text": "(UTC+01:00) Sarajevo, Skopje, Warsaw, Zagreb"},
    {"value": "W. Central Africa Standard Time", "abbr": "WCAST", "text": "(UTC+01:00) West Central Africa"},
    {"value": "GTB Standard Time", "abbr": "GDT", "text": "(UTC+02:00) Athens, Bucharest"},
    {"value": "Middle East Standard Time", "abbr": "MEDT", "text": "(UTC+02:00) Beirut"},
    {"value": "Egypt Standard Time", "abbr": "EST", "text": "(UTC+02:00) Cairo"},
    {"value": "South Africa Standard Time", "abbr": "SAST", "text": "(UTC+02:00) Harare, Pretoria"},
    {"value": "FLE Standard Time", "abbr": "FDT", "text": "(UTC+02:00) Helsinki, Kyiv, Riga, Sofia, Tallinn, Vilnius"},
    {"value": "Israel Standard Time", "abbr": "JDT", "text": "(UTC+02:00) Jerusalem"},
    {"value": "Turkey Standard Time", "abbr": "TDT", "text": "(UTC+03:00) Istanbul"},
    {"value": "Arab Standard Time", "abbr": "AST", "text": "(UTC+03:00) Kuwait, Riyadh"},
    {"value": "Russian Standard Time", "abbr": "MSK", "text": "(UTC+03:00) Moscow, St. Petersburg, Volgograd"},
    {"value": "E. Africa Standard Time", "abbr": "EAST", "text": "(UTC+03:00) Nairobi"},
    {"value": "Iran Standard Time", "abbr": "IDT", "text": "(UTC+03:30) Tehran"},
    {"value": "Arabian Standard Time", "abbr": "AST", "text": "(UTC+04:00) Abu Dhabi, Muscat"},
    {"value": "Afghanistan Standard Time", "abbr": "AST", "text": "(UTC+04:30) Kabul"},
    {"value": "Pakistan Standard Time", "abbr": "PKT", "text": "(UTC+05:00) Islamabad, Karachi"},
    {"value": "India Standard Time", "abbr": "IST", "text": "(UTC+05:30) Chennai, Kolkata, Mumbai, New Delhi"},
    {"value": "Nepal Standard Time", "abbr": "NST", "text": "(UTC+05:45) Kathmandu"},
    {"value": "Bangladesh Standard Time", "abbr": "BST", "text": "(UTC+06:00) Dhaka"},
    {"value": "Myanmar Standard Time", "abbr": "MST", "text": "(UTC+06:30) Yangon (Rangoon)"},
    {"value": "SE Asia Standard Time", "abbr": "SAST", "text": "(UTC+07:00) Bangkok, Hanoi, Jakarta"},
    {"value": "China Standard Time", "abbr": "CST", "text": "(UTC+08:00) Beijing, Chongqing, Hong Kong, Urumqi"},
    {"value": "Singapore Standard Time", "abbr": "MPST", "text": "(UTC+08:00) Kuala Lumpur, Singapore"},
    {"value": "W. Australia Standard Time", "abbr": "WAST", "text": "(UTC+08:00) Perth"},
    {"value": "Taipei Standard Time", "abbr": "TST", "text": "(UTC+08:00) Taipei"},
    {"value": "Tokyo Standard Time", "abbr": "TST", "text": "(UTC+09:00) Osaka, Sapporo, Tokyo"},
    {"value": "Korea Standard Time", "abbr": "KST", "text": "(UTC+09:00) Seoul"},
    {"value": "Cen. Australia Standard Time", "abbr": "CAST", "text": "(UTC+09:30) Adelaide"},
    {"value": "AUS Central Standard Time", "abbr": "ACST", "text": "(UTC+09:30) Darwin"},
    {"value": "E. Australia Standard Time", "abbr": "EAST", "text": "(UTC+10:00) Brisbane"},
    {"value": "AUS Eastern Standard Time", "abbr": "AEST", "text": "(UTC+10:00) Canberra, Melbourne, Sydney"},
    {"value": "Tasmania Standard Time", "abbr": "TST", "text": "(UTC+10:00) Hobart"},
    {"value": "Central Pacific Standard Time", "abbr": "CPST", "text": "(UTC+11:00) Solomon Is., New Caledonia"},
    {"value": "New Zealand Standard Time", "abbr": "NZST", "text": "(UTC+12:00) Auckland, Wellington"},
    {"value": "Fiji Standard Time", "abbr": "FJT", "text": "(UTC+12:00) Fiji"},
    {"value": "Tonga Standard Time", "abbr": "TOT", "text": "(UTC+13:00) Nuku'alofa"},
    {"value": "Samoa Standard Time", "abbr": "SST", "text": "(UTC+13:00) Samoa"},
)

_ZONES_BY_VALUE = {zone["value"]: zone for zone in WINDOWS_ZONES}


def resolve_utc_offset(tzid: Optional[str]) -> Optional[str]:
    """Look a TZID up in the static zone table.

    Args:
        tzid: Zone name from a TZID parameter, quotes already removed

    Returns:
        Offset string such as ``"-08:00"``, or None when the zone is unknown
        or its entry carries no offset
    """
    if not tzid:
        return None
    zone = _ZONES_BY_VALUE.get(tzid)
    if zone is None:
        logger.debug("TZID %r not in zone table; treating value as floating", tzid)
        return None
    match = _OFFSET_RE.search(zone["text"])
    return match.group(0) if match else None


class TimeProvider:
    """Provides current time with test time override support."""

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via the ICSFEED_TEST_TIME environment
        variable (ISO 8601, e.g. "2024-07-04T08:20:00-07:00"). A naive value
        is taken to be UTC.
        """
        test_time = os.environ.get(TEST_TIME_ENV)
        if test_time:
            try:
                dt = date_parser.isoparse(test_time)
                if dt.tzinfo is not None:
                    return dt.astimezone(datetime.timezone.utc)
                return dt.replace(tzinfo=datetime.timezone.utc)
            except ValueError as e:
                logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV, test_time, e)

        return datetime.datetime.now(datetime.timezone.utc)


_time_provider = TimeProvider()


def now_utc() -> datetime.datetime:
    """Get current UTC time (convenience function)."""
    return _time_provider.now_utc()
