"""Unit tests for icsfeed.event_filter."""

from datetime import datetime, timedelta, timezone

import pytest

from icsfeed.calendar import ICalDateTime, parse_ics
from icsfeed.event_filter import (
    EventFilter,
    is_all_day_event,
    is_not_all_day_event,
    is_time_within_hours,
)
from icsfeed.models import CachedEvent

pytestmark = pytest.mark.unit

NOON = datetime(2024, 7, 4, 12, 0, tzinfo=timezone.utc)


def _event(uid, start, **fields):
    return {"type": "VEVENT", "params": {}, "uid": uid, "start": start, **fields}


class TestPredicates:
    def test_window_is_centred_on_now(self):
        assert is_time_within_hours(NOON + timedelta(hours=18), 36, NOON) is True
        assert is_time_within_hours(NOON - timedelta(hours=18), 36, NOON) is True
        assert is_time_within_hours(NOON + timedelta(hours=18, seconds=1), 36, NOON) is False
        assert is_time_within_hours(NOON - timedelta(hours=19), 36, NOON) is False

    def test_window_compares_instants(self):
        pacific = timezone(timedelta(hours=-8))
        # 20:00 UTC expressed in Pacific wall time
        start = datetime(2024, 7, 4, 12, 0, tzinfo=pacific)

        assert is_time_within_hours(start, 15, NOON) is False
        assert is_time_within_hours(start, 17, NOON) is True

    def test_out_of_range_instant_is_outside_window(self):
        tonga = timezone(timedelta(hours=13))
        dateline = timezone(timedelta(hours=-12))

        assert is_time_within_hours(datetime(1, 1, 1, tzinfo=tonga), 36, NOON) is False
        assert is_time_within_hours(datetime(9999, 12, 31, 23, 59, 59, tzinfo=dateline), 36, NOON) is False

    def test_all_day_by_microsoft_flag(self):
        record = _event("a", NOON, **{"MICROSOFT-CDO-ALLDAYEVENT": "TRUE"})

        assert is_all_day_event(record) is True
        assert is_not_all_day_event(record) is False

    def test_all_day_by_date_only_start(self):
        start = ICalDateTime.from_datetime(datetime(2024, 7, 4), date_only=True)

        assert is_all_day_event(_event("a", start)) is True

    def test_timed_event_is_not_all_day(self):
        assert is_all_day_event(_event("a", NOON)) is False
        assert is_all_day_event(_event("b", NOON, **{"MICROSOFT-CDO-ALLDAYEVENT": "FALSE"})) is False


class TestFilterEvents:
    @pytest.fixture
    def event_filter(self, time_provider):
        return EventFilter(time_provider=time_provider, hours_spread=36)

    def test_only_vevents_are_considered(self, event_filter):
        graph = {
            "event": _event("event", NOON),
            "todo": {"type": "VTODO", "uid": "todo", "start": NOON},
            0: {"type": "VTIMEZONE", "tzid": "Europe/Berlin"},
        }

        assert [r["uid"] for r in event_filter.filter_events(graph)] == ["event"]

    def test_events_without_datetime_start_are_skipped(self, event_filter):
        graph = {
            "text-start": _event("text-start", "sometime"),
            "list-start": _event("list-start", [NOON, NOON]),
            "no-start": {"type": "VEVENT", "uid": "no-start"},
            "ok": _event("ok", NOON),
        }

        assert [r["uid"] for r in event_filter.filter_events(graph)] == ["ok"]

    def test_every_check_must_pass(self, event_filter):
        graph = {"a": _event("a", NOON), "b": _event("b", NOON)}

        selected = event_filter.filter_events(
            graph, lambda r: True, lambda r: r["uid"] == "b"
        )

        assert [r["uid"] for r in selected] == ["b"]

    def test_overrides_replace_their_master(self, event_filter):
        override = _event("series", NOON + timedelta(hours=1), summary="Moved")
        graph = {
            "series": _event(
                "series",
                NOON - timedelta(days=30),
                summary="Series",
                rrule="FREQ=DAILY",
                recurrences={"2024-07-04": override},
            )
        }

        assert event_filter.filter_events(graph) == [override]

    def test_set_hours_spread(self, event_filter):
        record = _event("a", NOON + timedelta(hours=10))
        assert event_filter.is_event_within_hours(record) is True

        event_filter.set_hours_spread(12)

        assert event_filter.is_event_within_hours(record) is False


class TestSelectDisplayEvents:
    @pytest.fixture
    def event_filter(self, time_provider):
        return EventFilter(time_provider=time_provider, hours_spread=36)

    @pytest.mark.smoke
    def test_selects_window_and_sorts(self, event_filter):
        graph = {
            "late": _event("late", NOON + timedelta(hours=5), summary="Late"),
            "early": _event("early", NOON - timedelta(hours=3), summary="Early"),
            "far": _event("far", NOON + timedelta(days=3), summary="Far"),
            "allday": _event(
                "allday",
                ICalDateTime.from_datetime(datetime(2024, 7, 4), date_only=True),
                summary="Holiday",
            ),
        }

        events = event_filter.select_display_events(graph)

        assert [event.uid for event in events] == ["early", "late"]
        assert all(isinstance(event, CachedEvent) for event in events)

    def test_display_event_fields(self, event_filter):
        end = NOON + timedelta(hours=1)
        graph = {
            "meeting": _event(
                "meeting",
                NOON,
                end=end,
                summary="Planning",
                **{"x-microsoft-cdo-busystatus": "BUSY"},
            )
        }

        (event,) = event_filter.select_display_events(graph)

        assert event == CachedEvent(
            uid="meeting", summary="Planning", start=NOON, end=end, busy_status="BUSY"
        )

    def test_sentinel_dates_do_not_hide_other_events(self, event_filter):
        content = "\r\n".join(
            [
                "BEGIN:VCALENDAR",
                "BEGIN:VEVENT",
                "UID:forever",
                "DTSTART;TZID=Dateline Standard Time:99991231T235959",
                "SUMMARY:Open-ended",
                "END:VEVENT",
                "BEGIN:VEVENT",
                "UID:since-always",
                "DTSTART;TZID=Tonga Standard Time:00010101T000000",
                "SUMMARY:Backfilled",
                "END:VEVENT",
                "BEGIN:VEVENT",
                "UID:standup",
                "DTSTART:20240704T130000Z",
                "SUMMARY:Standup",
                "END:VEVENT",
                "END:VCALENDAR",
                "",
            ]
        )

        events = event_filter.select_display_events(parse_ics(content))

        assert [event.uid for event in events] == ["standup"]

    def test_mixed_offsets_sort_by_instant(self, event_filter):
        pacific = timezone(timedelta(hours=-8))
        graph = {
            # 13:00 UTC
            "utc": _event("utc", NOON + timedelta(hours=1)),
            # 12:30 UTC
            "pacific": _event("pacific", datetime(2024, 7, 4, 4, 30, tzinfo=pacific)),
        }

        events = event_filter.select_display_events(graph)

        assert [event.uid for event in events] == ["pacific", "utc"]

    @pytest.mark.smoke
    def test_parsed_outlook_calendar(self, event_filter):
        content = "\r\n".join(
            [
                "BEGIN:VCALENDAR",
                "PRODID:-//Microsoft Corporation//Outlook 16.0 MIMEDIR//EN",
                "VERSION:2.0",
                "BEGIN:VTIMEZONE",
                "TZID:Pacific Standard Time",
                "END:VTIMEZONE",
                "BEGIN:VEVENT",
                "UID:weekly-sync",
                'DTSTART;TZID="Pacific Standard Time":20240627T090000',
                'DTEND;TZID="Pacific Standard Time":20240627T093000',
                "RRULE:FREQ=WEEKLY;BYDAY=TH",
                "SUMMARY:Weekly sync",
                "X-MICROSOFT-CDO-BUSYSTATUS:BUSY",
                "END:VEVENT",
                "BEGIN:VEVENT",
                "UID:weekly-sync",
                'RECURRENCE-ID;TZID="Pacific Standard Time":20240704T090000',
                'DTSTART;TZID="Pacific Standard Time":20240704T070000',
                'DTEND;TZID="Pacific Standard Time":20240704T073000',
                "SUMMARY:Weekly sync (early)",
                "X-MICROSOFT-CDO-BUSYSTATUS:TENTATIVE",
                "END:VEVENT",
                "BEGIN:VEVENT",
                "UID:holiday",
                "DTSTART;VALUE=DATE:20240704",
                "DTEND;VALUE=DATE:20240705",
                "SUMMARY:Independence Day",
                "X-MICROSOFT-CDO-ALLDAYEVENT:TRUE",
                "END:VEVENT",
                "BEGIN:VEVENT",
                "UID:lunch",
                "DTSTART:20240704T190000Z",
                "DTEND:20240704T200000Z",
                "SUMMARY:Lunch\\, outside",
                "X-MICROSOFT-CDO-BUSYSTATUS:OOF",
                "END:VEVENT",
                "END:VCALENDAR",
                "",
            ]
        )

        events = event_filter.select_display_events(parse_ics(content))

        assert [(event.uid, event.summary, event.busy_status) for event in events] == [
            ("weekly-sync", "Weekly sync (early)", "TENTATIVE"),
            ("lunch", "Lunch, outside", "OOF"),
        ]
        assert events[0].start.astimezone(timezone.utc) == datetime(
            2024, 7, 4, 15, 0, tzinfo=timezone.utc
        )
