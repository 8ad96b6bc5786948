"""Line splitting and unfolding for iCalendar text (RFC 5545 section 3.1)."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import Optional

_CRLF_SPLIT_RE = re.compile(r"\r?\n")


def detect_line_break(text: str) -> str:
    """Detect the line-break convention from the first embedded break."""
    index_of_lf = text.find("\n", 1)  # a break in position 0 says nothing about CR

    if index_of_lf == -1:
        if "\r" in text:
            return "\r"
        return "\n"

    if text[index_of_lf - 1] == "\r":
        return "\r\n"

    return "\n"


def split_physical_lines(text: str) -> list[str]:
    """Split ``text`` into physical lines using its detected convention."""
    line_break = detect_line_break(text)
    if line_break == "\r\n":
        return _CRLF_SPLIT_RE.split(text)
    return text.split(line_break)


def unfold_lines(lines: Iterable[str]) -> Iterator[str]:
    """Join continuation lines (leading space or tab) onto the line before them."""
    current: Optional[str] = None
    for line in lines:
        if current is not None and line[:1] in (" ", "\t"):
            current += line[1:]
            continue
        if current is not None:
            yield current
        current = line
    if current is not None:
        yield current


def _split_outside_quotes(text: str, separator: str, maxsplit: int = -1) -> list[str]:
    parts: list[str] = []
    start = 0
    in_quotes = False
    for index, char in enumerate(text):
        if char == '"':
            in_quotes = not in_quotes
        elif char == separator and not in_quotes:
            parts.append(text[start:index])
            start = index + 1
            if maxsplit > 0 and len(parts) == maxsplit:
                break
    parts.append(text[start:])
    return parts


def split_property_line(line: str) -> Optional[tuple[str, list[str], str]]:
    """Split a logical line into ``(name, raw_params, value)``.

    Only the first colon outside a quoted parameter value is structural;
    colons in the value are kept. Returns None for lines without one.
    """
    head_and_value = _split_outside_quotes(line, ":", maxsplit=1)
    if len(head_and_value) < 2:
        return None

    head, value = head_and_value
    name, *params = _split_outside_quotes(head, ";")
    return name, params, value
