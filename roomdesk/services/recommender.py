"""Rule-based room recommendation from a free-text criterion.

Used when the LLM advisor gives no usable answer. Criteria are matched
case-insensitively against an ordered rule table; English and German terms
are both understood.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import NamedTuple

from roomdesk.domain.models import Room

EQUIPMENT_TERMS = ("beamer", "projector", "projektor", "screen", "leinwand")
SMALL_TERMS = ("small", "klein")
LARGE_TERMS = ("large", "groß", "gross")
MEETING_TERMS = ("meeting", "conference", "konferenz", "besprechung")
MEETING_ROOM_TERMS = ("meeting", "conference", "konferenz")
PRESENTATION_TERMS = ("presentation", "präsentation", "praesentation")
PRESENTATION_ROOM_TERMS = ("presentation", "präsentation")

SMALL_ROOM_MAX_CAPACITY = 10
LARGE_ROOM_MIN_CAPACITY = 20

_PEOPLE_DE = r"(?:leute|personen|menschen|teilnehmer)"
_PEOPLE_EN = r"(?:people|persons|attendees)"

_HEADCOUNT_PATTERNS = [
    re.compile(rf"für\s+(\d+)\s+{_PEOPLE_DE}"),
    re.compile(rf"for\s+(\d+)\s+{_PEOPLE_EN}"),
    re.compile(rf"(\d+)\s+(?:{_PEOPLE_DE}|{_PEOPLE_EN})"),
    re.compile(r"(\d+)er\s+gruppe"),
    re.compile(r"gruppe\s+von\s+(\d+)"),
    re.compile(r"group\s+of\s+(\d+)"),
]


def _mentions(text: str, terms: tuple[str, ...]) -> bool:
    return any(term in text for term in terms)


def _room_mentions(room: Room, terms: tuple[str, ...], *, name: bool = True) -> bool:
    if name and _mentions(room.name.lower(), terms):
        return True
    return room.description is not None and _mentions(room.description.lower(), terms)


def _smallest(rooms: list[Room]) -> Room | None:
    return min(rooms, key=lambda r: r.capacity, default=None)


def _largest(rooms: list[Room]) -> Room | None:
    return max(rooms, key=lambda r: r.capacity, default=None)


_INTEGER = re.compile(r"\s*[+-]?[0-9]+\s*")


def _parse_int(text: str) -> int | None:
    """Parse a plain ASCII integer; digit separators and other scripts are not numbers."""
    if not _INTEGER.fullmatch(text):
        return None
    return int(text)


def extract_headcount(text: str) -> int | None:
    """Return the first headcount found in *text*, e.g. ``"group of 8"`` -> 8.

    Patterns are tried in a fixed order and the first one that matches wins,
    so with several numbers in the text the result depends on that order.
    """
    lowered = text.lower()
    for pattern in _HEADCOUNT_PATTERNS:
        match = pattern.search(lowered)
        if match:
            return int(match.group(1))
    return None


# ---------------------------------------------------------------------------
# Rule handlers – each returns None when it has nothing to offer
# ---------------------------------------------------------------------------


def _equipment_room(rooms: list[Room], criteria: str) -> Room | None:
    equipped = [r for r in rooms if _room_mentions(r, EQUIPMENT_TERMS, name=False)]
    if not equipped:
        return None
    headcount = extract_headcount(criteria)
    if headcount is not None:
        big_enough = [r for r in equipped if r.capacity >= headcount]
        return _smallest(big_enough) or equipped[0]
    return equipped[0]


def _small_room(rooms: list[Room], criteria: str) -> Room | None:
    small = [r for r in rooms if r.capacity <= SMALL_ROOM_MAX_CAPACITY]
    return _smallest(small) or _smallest(rooms)


def _large_room(rooms: list[Room], criteria: str) -> Room | None:
    large = [r for r in rooms if r.capacity >= LARGE_ROOM_MIN_CAPACITY]
    return _largest(large) or _largest(rooms)


def _meeting_room(rooms: list[Room], criteria: str) -> Room | None:
    return next(
        (r for r in rooms if _room_mentions(r, MEETING_ROOM_TERMS)), rooms[0]
    )


def _presentation_room(rooms: list[Room], criteria: str) -> Room | None:
    for room in rooms:
        if _mentions(room.name.lower(), PRESENTATION_ROOM_TERMS):
            return room
        if _room_mentions(room, EQUIPMENT_TERMS, name=False):
            return room
    return _largest(rooms)


def _room_for_capacity(rooms: list[Room], criteria: str) -> Room | None:
    wanted = _parse_int(criteria)
    big_enough = [r for r in rooms if r.capacity >= wanted]
    return _smallest(big_enough) or min(rooms, key=lambda r: abs(r.capacity - wanted))


class Rule(NamedTuple):
    name: str
    matches: Callable[[str], bool]
    select: Callable[[list[Room], str], Room | None]


RULES: list[Rule] = [
    Rule("equipment", lambda c: _mentions(c, EQUIPMENT_TERMS), _equipment_room),
    Rule("small", lambda c: _mentions(c, SMALL_TERMS), _small_room),
    Rule("large", lambda c: _mentions(c, LARGE_TERMS), _large_room),
    Rule("meeting", lambda c: _mentions(c, MEETING_TERMS), _meeting_room),
    Rule("presentation", lambda c: _mentions(c, PRESENTATION_TERMS), _presentation_room),
    Rule("capacity", lambda c: _parse_int(c) is not None, _room_for_capacity),
]


def recommend_by_criteria(available_rooms: list[Room], criteria: str) -> Room:
    """Pick one room from *available_rooms* for the given criterion.

    Rules in :data:`RULES` are tried in order; the first rule that matches
    the criterion and yields a room wins. Without any match the first room
    is returned. Raises ``ValueError`` if *available_rooms* is empty.
    """
    if not available_rooms:
        raise ValueError("No available rooms to recommend from")

    lowered = criteria.lower().strip()
    for rule in RULES:
        if not rule.matches(lowered):
            continue
        room = rule.select(available_rooms, lowered)
        if room is not None:
            return room
    return available_rooms[0]
