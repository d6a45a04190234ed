"""Room availability queries and the alternative-room search.

The search runs in two phases that are kept as separate functions:

1. :func:`find_exact_alternatives` offers other rooms free at exactly the
   requested window.
2. :func:`find_nearby_alternatives` runs only when phase 1 found nothing and
   offers other rooms at a same-length window shifted by one of the
   configured offsets, within business hours.

Both walk the candidates in capacity-similarity order (see
:func:`rank_by_capacity`) and stop early once a shared cancellation event is
set, returning whatever was collected so far.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta

from roomdesk.config import SearchSettings
from roomdesk.domain.models import AlternativeRoom, Reservation, Room
from roomdesk.repos.memory import ReservationRepository, RoomRepository
from roomdesk.services.overlap import find_conflicts

logger = logging.getLogger(__name__)

AvailabilityCheck = Callable[[str, datetime, datetime], bool]


def _validate_window(start: datetime, end: datetime) -> None:
    if end <= start:
        raise ValueError("end_time must be after start_time")


def _cancelled(cancel: threading.Event | None) -> bool:
    return cancel is not None and cancel.is_set()


def rank_by_capacity(requested: Room, candidates: list[Room]) -> list[Room]:
    """Order *candidates* by how close their capacity is to *requested*.

    ``sorted`` is stable, so rooms at the same distance keep their input order.
    """
    return sorted(candidates, key=lambda r: abs(r.capacity - requested.capacity))


def within_business_hours(
    start: datetime, end: datetime, settings: SearchSettings
) -> bool:
    """Return True when ``[start, end)`` fits inside one business day."""
    if start.hour < settings.business_open_hour:
        return False
    if end.hour > settings.business_close_hour:
        return False
    if end.hour == settings.business_close_hour and end.minute > 0:
        return False
    # windows crossing midnight are rejected (business hours decision in DESIGN.md)
    return end.date() == start.date()


def nearby_windows(
    start: datetime, end: datetime, settings: SearchSettings
) -> Iterator[tuple[datetime, datetime]]:
    """Yield the shifted windows worth probing, in configured offset order.

    Each window keeps the requested duration. Offsets beyond
    ``max_shift_minutes`` and windows outside business hours are skipped.
    """
    duration = end - start
    max_shift = timedelta(minutes=settings.max_shift_minutes)
    for offset in settings.offsets_minutes:
        shift = timedelta(minutes=offset)
        if abs(shift) > max_shift:
            continue
        candidate_start = start + shift
        candidate_end = candidate_start + duration
        if not within_business_hours(candidate_start, candidate_end, settings):
            continue
        yield candidate_start, candidate_end


def _to_alternative(
    room: Room, start: datetime, end: datetime, is_exact_match: bool
) -> AlternativeRoom:
    return AlternativeRoom(
        room_id=room.id,
        room_name=room.name,
        capacity=room.capacity,
        description=room.description,
        available_start_time=start,
        available_end_time=end,
        is_exact_match=is_exact_match,
    )


def find_exact_alternatives(
    candidates: list[Room],
    start: datetime,
    end: datetime,
    is_available: AvailabilityCheck,
    limit: int = 5,
    cancel: threading.Event | None = None,
) -> list[AlternativeRoom]:
    """Return up to *limit* candidates that are free for exactly ``[start, end)``."""
    found: list[AlternativeRoom] = []
    for room in candidates:
        if _cancelled(cancel):
            logger.debug("Exact-time search cancelled after %d matches", len(found))
            break
        if is_available(room.id, start, end):
            found.append(_to_alternative(room, start, end, is_exact_match=True))
            if len(found) >= limit:
                break
    return found


def find_nearby_alternatives(
    candidates: list[Room],
    start: datetime,
    end: datetime,
    is_available: AvailabilityCheck,
    settings: SearchSettings,
    cancel: threading.Event | None = None,
) -> list[AlternativeRoom]:
    """Return at most one shifted window per candidate room.

    For every room the first free window from :func:`nearby_windows` wins.
    The search stops once ``settings.max_results`` rooms have been found.
    """
    windows = list(nearby_windows(start, end, settings))
    found: list[AlternativeRoom] = []
    for room in candidates:
        if len(found) >= settings.max_results:
            break
        if _cancelled(cancel):
            logger.debug("Nearby-time search cancelled after %d matches", len(found))
            break
        for window_start, window_end in windows:
            if is_available(room.id, window_start, window_end):
                found.append(
                    _to_alternative(room, window_start, window_end, is_exact_match=False)
                )
                break
    return found


class ReservationService:
    """Availability queries over the room and reservation repositories.

    The service holds no state of its own; every call reads the current
    contents of the repositories.
    """

    def __init__(
        self,
        room_repo: RoomRepository,
        reservation_repo: ReservationRepository,
        settings: SearchSettings | None = None,
    ) -> None:
        self.room_repo = room_repo
        self.reservation_repo = reservation_repo
        self.settings = settings or SearchSettings()

    def get_conflicts(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> list[Reservation]:
        _validate_window(start, end)
        return find_conflicts(
            start, end, self.reservation_repo.list_for_room(room_id), exclude_id
        )

    def has_conflict(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> bool:
        return bool(self.get_conflicts(room_id, start, end, exclude_id))

    def is_available(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> bool:
        return not self.has_conflict(room_id, start, end, exclude_id)

    def find_alternatives(
        self,
        requested_room_id: str,
        start: datetime,
        end: datetime,
        cancel: threading.Event | None = None,
    ) -> list[AlternativeRoom]:
        """Suggest up to ``max_results`` other rooms for a booked-out request.

        Exact-time matches always win; nearby windows are only searched when
        no other room is free at the requested time. An unknown requested room
        yields an empty list.
        """
        _validate_window(start, end)
        requested = self.room_repo.get(requested_room_id)
        if requested is None:
            logger.info("Room %s not found, no alternatives offered", requested_room_id)
            return []

        candidates = rank_by_capacity(
            requested, self.room_repo.list_except(requested_room_id)
        )

        exact = find_exact_alternatives(
            candidates,
            start,
            end,
            self.is_available,
            limit=self.settings.max_results,
            cancel=cancel,
        )
        if exact or _cancelled(cancel):
            logger.info(
                "Found %d exact-time alternatives for room %s",
                len(exact),
                requested_room_id,
            )
            return exact

        nearby = find_nearby_alternatives(
            candidates, start, end, self.is_available, self.settings, cancel
        )
        logger.info(
            "Found %d nearby-time alternatives for room %s",
            len(nearby),
            requested_room_id,
        )
        return nearby
