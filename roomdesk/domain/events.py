"""Domain events emitted by the reservation command flow."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ReservationCreated(BaseModel):
    """Fired when a new Reservation is persisted."""

    reservation_id: str


class ReservationRescheduled(BaseModel):
    """Fired when a reservation's time window changes."""

    reservation_id: str
    previous_start_time: datetime
    previous_end_time: datetime


class ReservationCancelled(BaseModel):
    """Fired when a reservation is soft-deleted."""

    reservation_id: str


class ConflictDetected(BaseModel):
    """Fired when a create or update was rejected for overlapping a room.

    ``reservation_id`` is set only for updates; a rejected create has no
    reservation yet.
    """

    room_id: str
    start_time: datetime
    end_time: datetime
    conflicting_reservation_ids: list[str]
    reservation_id: str | None = None
