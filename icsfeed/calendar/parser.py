"""Tolerant iCalendar parser: raw text in, nested component graph out."""

import logging
from typing import Any

from .builder import BOOKKEEPING_KEYS, ComponentTreeBuilder
from .unfold import split_physical_lines, split_property_line, unfold_lines

logger = logging.getLogger(__name__)


class ICSParser:
    """Parses iCalendar text into a dict graph keyed by UID.

    Malformed input never raises: lines without a structural colon are
    dropped, undecodable dates stay text and unclosed components are left
    out of the result.
    """

    def __init__(self) -> None:
        self.last_line_count = 0
        self.last_dropped_count = 0

    def parse(self, content: str) -> dict[Any, Any]:
        """Parse ``content`` and return the calendar graph.

        Args:
            content: Complete calendar text, any line-break convention

        Returns:
            Mapping from UID (or an int fallback key) to component records
        """
        builder = ComponentTreeBuilder()
        graph = None
        line_count = 0
        dropped = 0

        for line in unfold_lines(split_physical_lines(content or "")):
            line_count += 1
            split = split_property_line(line)
            if split is None:
                dropped += 1
                continue

            name, params, value = split
            if name == "BEGIN":
                builder.begin(value, params)
            elif name == "END":
                graph = builder.end(value)
                if graph is not None:
                    break
            else:
                builder.add_property(name, value, params)

        if graph is None:
            graph = builder.root()

        for key in BOOKKEEPING_KEYS:
            graph.pop(key, None)

        self.last_line_count = line_count
        self.last_dropped_count = dropped
        logger.debug(
            "Parsed %d logical lines (%d dropped) into %d top-level components",
            line_count,
            dropped,
            len(graph),
        )
        return graph


def parse_ics(content: str) -> dict[Any, Any]:
    """Parse iCalendar text with a fresh ICSParser."""
    return ICSParser().parse(content)
