"""Exceptions raised by the reservation command flow."""

from __future__ import annotations

from roomdesk.domain.models import AlternativeRoom, Reservation


class NotFoundError(LookupError):
    """Raised when a room or reservation id does not resolve."""


class ReservationConflictError(Exception):
    """The requested window overlaps confirmed reservations on the room."""

    def __init__(
        self,
        conflicts: list[Reservation],
        alternatives: list[AlternativeRoom] | None = None,
    ) -> None:
        super().__init__("Room is already booked for the selected time slot")
        self.conflicts = conflicts
        self.alternatives = alternatives or []
