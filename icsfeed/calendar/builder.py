"""BEGIN/END state machine that assembles component records into a graph."""

from __future__ import annotations

import itertools
import logging
from datetime import datetime
from typing import Any, Optional, Union

from .properties import handle_property
from .values import PropertyValue, date_key, parse_params

logger = logging.getLogger(__name__)

CALENDAR_COMPONENT = "VCALENDAR"
# Keys every record carries besides its properties
BOOKKEEPING_KEYS = ("type", "params")

Record = dict[Any, Any]
RecordKey = Union[str, int]


def _uid_key(uid: Any) -> str:
    """Reduce a stored UID field to a hashable graph key."""
    if isinstance(uid, list):
        uid = uid[0] if uid else ""
    if isinstance(uid, PropertyValue):
        return uid.val
    return str(uid)


class ComponentTreeBuilder:
    """Tracks nested components on an explicit stack while lines are fed in.

    The builder owns the current record (``context``) and the stack of open
    parents. Records never point at their parent; closing a component pops
    the parent off the stack and files the child under it.
    """

    def __init__(self) -> None:
        self.stack: list[Record] = []
        self.context: Record = {}
        # UID-less records get int keys, which cannot collide with str UIDs
        self._fallback_keys = itertools.count()
        self._calendar_frame: Optional[Record] = None
        self._reserved_keys: dict[tuple[int, str], int] = {}

    def begin(self, component: str, params: list[str]) -> None:
        self.stack.append(self.context)
        self.context = {"type": component, "params": parse_params(params)}
        if component == CALENDAR_COMPONENT and self._calendar_frame is None:
            self._calendar_frame = self.context

    def add_property(self, name: str, value: str, params: list[str]) -> None:
        handle_property(name, value, params, self.context, in_component=bool(self.stack))

    def end(self, component: str) -> Optional[Record]:
        """Close the current component.

        Returns:
            The finished calendar graph when ``component`` is the calendar
            itself, otherwise None.
        """
        if component == CALENDAR_COMPONENT:
            return self._finish_calendar()

        if not self.stack:
            logger.debug("Ignoring END:%s with no open component", component)
            return None

        parent = self.stack.pop()
        self._file_child(parent, self.context)
        self.context = parent
        return None

    def root(self) -> Record:
        """Return the outermost frame, leaving any still-open component out."""
        return self.stack[0] if self.stack else self.context

    def _finish_calendar(self) -> Record:
        # Match the calendar frame by identity, not by its "type" field
        dropped = []
        while self.stack and self.context is not self._calendar_frame:
            dropped.append(self.context.get("type"))
            self.context = self.stack.pop()
        if dropped:
            logger.debug("Dropping unclosed components before END:VCALENDAR: %s", dropped)

        for key in [k for k, v in self.context.items() if isinstance(v, str)]:
            del self.context[key]
        return self.context

    def _file_child(self, parent: Record, child: Record) -> None:
        if "uid" not in child:
            parent[next(self._fallback_keys)] = child
            return

        uid = self._record_key(parent, _uid_key(child["uid"]))
        stored = parent.get(uid)

        if not isinstance(stored, dict):
            parent[uid] = child
            stored = child
        elif "recurrenceid" not in child:
            # Same UID without a RECURRENCE-ID: take the newer fields and keep
            # whatever the newer record does not mention.
            for key, value in child.items():
                stored[key] = value

        if "recurrenceid" in child:
            self._add_recurrence(stored, child)

        # An override that arrived before its RRULE master left its
        # recurrenceid on the master record.
        if "rrule" in stored and "recurrenceid" in stored:
            del stored["recurrenceid"]

    def _record_key(self, parent: Record, uid: str) -> RecordKey:
        """Map a UID that collides with a bookkeeping key to a stable int key."""
        if uid not in BOOKKEEPING_KEYS:
            return uid
        slot = (id(parent), uid)
        if slot not in self._reserved_keys:
            logger.debug("UID %r clashes with a record field; filing it under an int key", uid)
            self._reserved_keys[slot] = next(self._fallback_keys)
        return self._reserved_keys[slot]

    def _add_recurrence(self, stored: Record, child: Record) -> None:
        recurrence_id = child["recurrenceid"]
        if not isinstance(recurrence_id, datetime):
            logger.warning("Skipping override with undecodable RECURRENCE-ID: %r", recurrence_id)
            return

        # Copy so a later merge into the master does not also rewrite the override
        override = {key: value for key, value in child.items() if key != "recurrences"}
        recurrences = stored.setdefault("recurrences", {})
        recurrences[date_key(recurrence_id)] = override
