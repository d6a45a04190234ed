"""Create, reschedule and cancel reservations.

Every write re-runs the conflict check and persists while holding a lock for
the affected room, so two concurrent requests for the same room and window
can not both pass the check.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone

from roomdesk.domain.bus import EventBus
from roomdesk.domain.errors import NotFoundError, ReservationConflictError
from roomdesk.domain.events import (
    ConflictDetected,
    ReservationCancelled,
    ReservationCreated,
    ReservationRescheduled,
)
from roomdesk.domain.models import Reservation, ReservationStatus
from roomdesk.repos.memory import ReservationRepository, RoomRepository
from roomdesk.services.availability import ReservationService

logger = logging.getLogger(__name__)


class ReservationCommands:
    def __init__(
        self,
        room_repo: RoomRepository,
        reservation_repo: ReservationRepository,
        service: ReservationService,
        bus: EventBus,
    ) -> None:
        self.room_repo = room_repo
        self.reservation_repo = reservation_repo
        self.service = service
        self.bus = bus
        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _room_lock(self, room_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[room_id]

    def _get(self, reservation_id: str) -> Reservation:
        reservation = self.reservation_repo.get(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return reservation

    def _report_conflict(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        conflicts: list[Reservation],
        reservation_id: str | None = None,
    ) -> None:
        self.bus.publish(
            ConflictDetected(
                room_id=room_id,
                start_time=start,
                end_time=end,
                conflicting_reservation_ids=[c.id for c in conflicts],
                reservation_id=reservation_id,
            )
        )

    def create(
        self,
        room_id: str,
        user_id: str,
        title: str,
        start: datetime,
        end: datetime,
        now: datetime,
        description: str | None = None,
    ) -> Reservation:
        """Book *room_id* for ``[start, end)``.

        Raises ``ValueError`` for an empty or past window, ``NotFoundError``
        for an unknown room and ``ReservationConflictError`` (with suggested
        alternatives) when the room is taken.
        """
        if end <= start:
            raise ValueError("end_time must be after start_time")
        if start < now:
            raise ValueError("Cannot create a reservation in the past")
        if self.room_repo.get(room_id) is None:
            raise NotFoundError("Room not found")

        with self._room_lock(room_id):
            conflicts = self.service.get_conflicts(room_id, start, end)
            if not conflicts:
                reservation = Reservation(
                    room_id=room_id,
                    user_id=user_id,
                    title=title,
                    description=description,
                    start_time=start,
                    end_time=end,
                )
                self.reservation_repo.add(reservation)

        if conflicts:
            self._report_conflict(room_id, start, end, conflicts)
            alternatives = self.service.find_alternatives(room_id, start, end)
            raise ReservationConflictError(conflicts, alternatives)

        logger.info("Reservation %s created on room %s", reservation.id, room_id)
        self.bus.publish(ReservationCreated(reservation_id=reservation.id))
        return reservation

    def update(
        self,
        reservation_id: str,
        now: datetime,
        title: str | None = None,
        description: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Reservation:
        """Change title, description and/or the window of a reservation.

        A new window is checked against every other confirmed reservation on
        the room; the reservation never conflicts with itself.
        """
        reservation = self._get(reservation_id)
        rescheduled = start is not None or end is not None

        with self._room_lock(reservation.room_id):
            # status is read under the lock so a concurrent cancel is seen
            if reservation.status == ReservationStatus.CANCELLED:
                raise ValueError("Cannot update a cancelled reservation")
            previous_start, previous_end = reservation.start_time, reservation.end_time

            if rescheduled:
                new_start = start if start is not None else reservation.start_time
                new_end = end if end is not None else reservation.end_time
                if new_end <= new_start:
                    raise ValueError("end_time must be after start_time")
                if new_start < now:
                    raise ValueError("Cannot reschedule a reservation to the past")

                conflicts = self.service.get_conflicts(
                    reservation.room_id, new_start, new_end, exclude_id=reservation.id
                )
                if conflicts:
                    self._report_conflict(
                        reservation.room_id, new_start, new_end, conflicts, reservation.id
                    )
                    raise ReservationConflictError(conflicts)

                reservation.start_time = new_start
                reservation.end_time = new_end

            if title is not None and title.strip():
                reservation.title = title
            if description is not None:
                reservation.description = description
            if rescheduled or title is not None or description is not None:
                reservation.updated_at = datetime.now(timezone.utc)

        if rescheduled:
            logger.info("Reservation %s rescheduled", reservation.id)
            self.bus.publish(
                ReservationRescheduled(
                    reservation_id=reservation.id,
                    previous_start_time=previous_start,
                    previous_end_time=previous_end,
                )
            )
        return reservation

    def cancel(self, reservation_id: str) -> Reservation:
        """Soft-delete a reservation; it stays stored but no longer conflicts."""
        reservation = self._get(reservation_id)
        with self._room_lock(reservation.room_id):
            if reservation.status == ReservationStatus.CANCELLED:
                raise ValueError("Reservation is already cancelled")
            reservation.status = ReservationStatus.CANCELLED
            reservation.updated_at = datetime.now(timezone.utc)

        logger.info("Reservation %s cancelled", reservation.id)
        self.bus.publish(ReservationCancelled(reservation_id=reservation.id))
        return reservation
