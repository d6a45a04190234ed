"""Interval overlap checks between reservations."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from roomdesk.domain.models import Reservation, ReservationStatus


def overlaps(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Return True when ``[a_start, a_end)`` and ``[b_start, b_end)`` intersect.

    Intervals are half-open: one ending exactly when the other starts is NOT
    an overlap.
    """
    return a_start < b_end and b_start < a_end


def find_conflicts(
    new_start: datetime,
    new_end: datetime,
    reservations: Iterable[Reservation],
    exclude_id: str | None = None,
) -> list[Reservation]:
    """Return confirmed reservations that overlap the given time range.

    Cancelled reservations never conflict. ``exclude_id`` hides one
    reservation, which lets an update be checked against everything but
    itself. The result is ordered by start time.
    """
    conflicts = [
        reservation
        for reservation in reservations
        if reservation.status == ReservationStatus.CONFIRMED
        and (exclude_id is None or reservation.id != exclude_id)
        and overlaps(new_start, new_end, reservation.start_time, reservation.end_time)
    ]
    return sorted(conflicts, key=lambda r: r.start_time)
