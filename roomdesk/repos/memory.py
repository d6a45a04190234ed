"""In-memory repositories for rooms, reservations and the audit timeline."""

from __future__ import annotations

from datetime import datetime

from roomdesk.domain.models import (
    Reservation,
    ReservationStatus,
    Room,
    TimelineEntry,
)


class RoomRepository:
    """Dict-backed store for Room instances, keyed by id.

    Iteration follows insertion order, which the alternative search relies on
    to break capacity ties.
    """

    def __init__(self) -> None:
        self._store: dict[str, Room] = {}

    def add(self, room: Room) -> None:
        self._store[room.id] = room

    def get(self, room_id: str) -> Room | None:
        return self._store.get(room_id)

    def list_all(self) -> list[Room]:
        return list(self._store.values())

    def list_except(self, room_id: str) -> list[Room]:
        return [r for r in self._store.values() if r.id != room_id]


class ReservationRepository:
    """Dict-backed store for Reservation instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Reservation] = {}

    def add(self, reservation: Reservation) -> None:
        self._store[reservation.id] = reservation

    def get(self, reservation_id: str) -> Reservation | None:
        return self._store.get(reservation_id)

    def list_all(self) -> list[Reservation]:
        return sorted(self._store.values(), key=lambda r: r.start_time)

    def list_confirmed(
        self,
        room_id: str | None = None,
        user_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[Reservation]:
        """Return confirmed reservations ordered by start, narrowed by any filter given.

        ``start_date`` keeps reservations ending at or after it, ``end_date``
        keeps those starting at or before it.
        """
        return [
            r
            for r in self.list_all()
            if r.status == ReservationStatus.CONFIRMED
            and (room_id is None or r.room_id == room_id)
            and (user_id is None or r.user_id == user_id)
            and (start_date is None or r.end_time >= start_date)
            and (end_date is None or r.start_time <= end_date)
        ]

    def list_for_room(self, room_id: str) -> list[Reservation]:
        """Return the confirmed reservations held on *room_id*."""
        return [
            r
            for r in self._store.values()
            if r.room_id == room_id and r.status == ReservationStatus.CONFIRMED
        ]


class TimelineRepository:
    """List-backed store for TimelineEntry instances."""

    def __init__(self) -> None:
        self._entries: list[TimelineEntry] = []

    def add(self, entry: TimelineEntry) -> None:
        self._entries.append(entry)

    def list_for_reservation(self, reservation_id: str) -> list[TimelineEntry]:
        return sorted(
            [e for e in self._entries if e.reservation_id == reservation_id],
            key=lambda e: e.timestamp,
        )


# ---------------------------------------------------------------------------
# Seed data – the default room inventory
# ---------------------------------------------------------------------------


def _seed_rooms(repo: RoomRepository) -> None:
    repo.add(
        Room(
            name="Conference Room A",
            description="Large conference room with video conferencing equipment",
            capacity=20,
        )
    )
    repo.add(
        Room(
            name="Meeting Room 1",
            description="Small meeting room for team discussions",
            capacity=6,
        )
    )
    repo.add(
        Room(
            name="Board Room",
            description="Executive board room with projector and premium amenities",
            capacity=12,
        )
    )
    repo.add(
        Room(
            name="Training Room",
            description="Large room equipped for training sessions",
            capacity=30,
            is_available=False,
        )
    )
    repo.add(
        Room(
            name="Huddle Space",
            description="Quick meeting space for informal discussions",
            capacity=4,
        )
    )


def create_room_repository(seed: bool = True) -> RoomRepository:
    """Return a RoomRepository, optionally pre-loaded with the default rooms."""
    repo = RoomRepository()
    if seed:
        _seed_rooms(repo)
    return repo
