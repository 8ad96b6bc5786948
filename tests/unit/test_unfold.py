"""Unit tests for icsfeed.calendar.unfold."""

import pytest

from icsfeed.calendar import parse_ics
from icsfeed.calendar.unfold import (
    detect_line_break,
    split_physical_lines,
    split_property_line,
    unfold_lines,
)

pytestmark = pytest.mark.unit


class TestDetectLineBreak:
    def test_detect_when_crlf_then_returns_crlf(self):
        assert detect_line_break("BEGIN:VCALENDAR\r\nEND:VCALENDAR") == "\r\n"

    def test_detect_when_lf_then_returns_lf(self):
        assert detect_line_break("BEGIN:VCALENDAR\nEND:VCALENDAR") == "\n"

    def test_detect_when_bare_cr_then_returns_cr(self):
        assert detect_line_break("BEGIN:VCALENDAR\rEND:VCALENDAR") == "\r"

    def test_detect_when_no_break_then_defaults_to_lf(self):
        assert detect_line_break("SUMMARY:one line") == "\n"

    def test_detect_ignores_break_in_first_position(self):
        assert detect_line_break("\nSUMMARY:x") == "\n"


class TestSplitPhysicalLines:
    def test_split_bare_cr(self):
        assert split_physical_lines("A:1\rB:2\rC:3") == ["A:1", "B:2", "C:3"]

    def test_split_crlf_tolerates_stray_lf(self):
        assert split_physical_lines("A:1\r\nB:2\nC:3") == ["A:1", "B:2", "C:3"]


class TestUnfoldLines:
    def test_unfold_joins_space_and_tab_continuations(self):
        lines = ["DESCRIPTION:Hel", " lo", "\t World", "SUMMARY:x"]

        assert list(unfold_lines(lines)) == ["DESCRIPTION:Hello World", "SUMMARY:x"]

    def test_unfold_keeps_empty_lines_as_their_own_lines(self):
        assert list(unfold_lines(["A:1", "", "B:2"])) == ["A:1", "", "B:2"]

    def test_unfold_leading_continuation_stands_alone(self):
        assert list(unfold_lines([" orphan", "A:1"])) == [" orphan", "A:1"]

    def test_folded_event_parses_like_unfolded_event(self):
        """Folding across several physical lines decodes to the same record."""
        unfolded = (
            "BEGIN:VCALENDAR\r\n"
            "BEGIN:VEVENT\r\n"
            "UID:fold-1\r\n"
            "DESCRIPTION:A long description that an exporter wrapped\\, twice.\r\n"
            "END:VEVENT\r\n"
            "END:VCALENDAR\r\n"
        )
        folded = (
            "BEGIN:VCALENDAR\r\n"
            "BEGIN:VEVENT\r\n"
            "UID:fold-1\r\n"
            "DESCRIPTION:A long descrip\r\n"
            " tion that an export\r\n"
            " er wrapped\\, twice.\r\n"
            "END:VEVENT\r\n"
            "END:VCALENDAR\r\n"
        )

        assert parse_ics(folded) == parse_ics(unfolded)
        assert parse_ics(folded)["fold-1"]["description"] == (
            "A long description that an exporter wrapped, twice."
        )


class TestSplitPropertyLine:
    def test_split_name_params_and_value(self):
        assert split_property_line("DTSTART;TZID=Europe/Paris:20240704T120000") == (
            "DTSTART",
            ["TZID=Europe/Paris"],
            "20240704T120000",
        )

    def test_colon_inside_quoted_param_is_not_structural(self):
        line = 'DTSTART;TZID="(UTC-05:00) Eastern Time":20240704T120000'

        assert split_property_line(line) == (
            "DTSTART",
            ['TZID="(UTC-05:00) Eastern Time"'],
            "20240704T120000",
        )

    def test_colons_in_value_are_preserved(self):
        assert split_property_line("URL:https://example.com:8443/a?b=c") == (
            "URL",
            [],
            "https://example.com:8443/a?b=c",
        )

    def test_line_without_colon_returns_none(self):
        assert split_property_line("this is not a property") is None

    def test_empty_value_is_kept(self):
        assert split_property_line("DESCRIPTION:") == ("DESCRIPTION", [], "")
