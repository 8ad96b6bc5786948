"""Select and order parsed calendar events for display."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Callable

from .models import CachedEvent
from .timezone_utils import TimeProvider

logger = logging.getLogger(__name__)

DEFAULT_HOURS_SPREAD = 36

EventRecord = dict[Any, Any]
EventCheck = Callable[[EventRecord], bool]


def to_instant(dt: datetime.datetime) -> datetime.datetime:
    """Convert to an aware UTC datetime; naive values are read as local time."""
    return dt.astimezone(datetime.timezone.utc)


def is_all_day_event(record: EventRecord) -> bool:
    if record.get("MICROSOFT-CDO-ALLDAYEVENT") == "TRUE":
        return True
    return bool(getattr(record.get("start"), "date_only", False))


def is_not_all_day_event(record: EventRecord) -> bool:
    return not is_all_day_event(record)


def is_time_within_hours(
    dt: datetime.datetime, hours: float, now: datetime.datetime
) -> bool:
    """Check that ``dt`` falls inside a window of ``hours`` centred on ``now``."""
    spread = datetime.timedelta(hours=hours) / 2
    try:
        event_time = to_instant(dt)
    except (OverflowError, ValueError):
        logger.debug("Start %r cannot be placed on the UTC timeline; outside window", dt)
        return False
    now = to_instant(now)
    return now - spread <= event_time <= now + spread


class EventFilter:
    """Filters a parsed calendar graph down to the events worth showing."""

    def __init__(
        self,
        time_provider: TimeProvider | None = None,
        hours_spread: float = DEFAULT_HOURS_SPREAD,
    ):
        """Initialize event filter.

        Args:
            time_provider: Clock used for the display window
            hours_spread: Width of the display window in hours, centred on now
        """
        self.time_provider = time_provider or TimeProvider()
        self.hours_spread = hours_spread

    def set_hours_spread(self, hours: float) -> None:
        self.hours_spread = hours

    def is_event_within_hours(self, record: EventRecord) -> bool:
        return is_time_within_hours(
            record["start"], self.hours_spread, self.time_provider.now_utc()
        )

    def filter_events(self, graph: dict[Any, Any], *checks: EventCheck) -> list[EventRecord]:
        """Collect VEVENT records that pass every check.

        A record carrying overrides contributes its override records instead
        of itself: without rule expansion only the overrides have concrete
        occurrence dates.
        """
        selected: list[EventRecord] = []

        for record in graph.values():
            if not isinstance(record, dict) or record.get("type") != "VEVENT":
                continue

            recurrences = record.get("recurrences")
            if isinstance(recurrences, dict):
                selected.extend(self.filter_events(recurrences, *checks))
                continue

            if not isinstance(record.get("start"), datetime.datetime):
                logger.debug("Skipping event without a usable start: %r", record.get("uid"))
                continue

            if all(check(record) for check in checks):
                selected.append(record)

        return selected

    def select_display_events(self, graph: dict[Any, Any]) -> list[CachedEvent]:
        """Return timed events inside the display window, ordered by start."""
        records = self.filter_events(graph, is_not_all_day_event, self.is_event_within_hours)
        records.sort(key=lambda record: to_instant(record["start"]))
        return [
            CachedEvent(
                uid=record.get("uid"),
                summary=record.get("summary"),
                start=record["start"],
                end=record.get("end"),
                busy_status=record.get("x-microsoft-cdo-busystatus"),
            )
            for record in records
        ]
