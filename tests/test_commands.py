"""Tests for creating, rescheduling and cancelling reservations."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from roomdesk.domain.bus import EventBus
from roomdesk.domain.errors import NotFoundError, ReservationConflictError
from roomdesk.domain.handlers import HandlerRegistry
from roomdesk.domain.models import ReservationStatus, Room, TimelineEntryType
from roomdesk.repos.memory import (
    ReservationRepository,
    RoomRepository,
    TimelineRepository,
)
from roomdesk.services.availability import ReservationService
from roomdesk.services.commands import ReservationCommands

_NOW = datetime(2026, 6, 1, 6, 0, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 6, 2, hour, minute, tzinfo=timezone.utc)


@pytest.fixture()
def env():
    """Fresh bus, repos and commands for each test."""
    bus = EventBus()
    room_repo = RoomRepository()
    reservation_repo = ReservationRepository()
    timeline_repo = TimelineRepository()
    service = ReservationService(room_repo, reservation_repo)
    HandlerRegistry(bus=bus, reservation_repo=reservation_repo, timeline_repo=timeline_repo)

    class Env:
        pass

    e = Env()
    e.bus = bus
    e.room_repo = room_repo
    e.reservation_repo = reservation_repo
    e.timeline_repo = timeline_repo
    e.commands = ReservationCommands(room_repo, reservation_repo, service, bus)
    e.room_a = Room(name="A", capacity=10)
    e.room_b = Room(name="B", capacity=12)
    room_repo.add(e.room_a)
    room_repo.add(e.room_b)
    return e


def _create(env, room: Room, start: datetime, end: datetime, title: str = "Sync"):
    return env.commands.create(
        room_id=room.id, user_id="user-1", title=title, start=start, end=end, now=_NOW
    )


def _timeline_types(env, reservation_id: str) -> list[TimelineEntryType]:
    return [e.type for e in env.timeline_repo.list_for_reservation(reservation_id)]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def test_create_stores_confirmed_reservation(env):
    reservation = _create(env, env.room_a, _at(9), _at(10))

    stored = env.reservation_repo.get(reservation.id)
    assert stored is not None
    assert stored.status == ReservationStatus.CONFIRMED
    assert _timeline_types(env, reservation.id) == [TimelineEntryType.CREATED]


def test_create_back_to_back_is_allowed(env):
    _create(env, env.room_a, _at(10), _at(11))
    second = _create(env, env.room_a, _at(11), _at(12))
    assert env.reservation_repo.get(second.id) is not None


def test_create_conflict_carries_alternatives(env):
    existing = _create(env, env.room_a, _at(9), _at(10))

    with pytest.raises(ReservationConflictError) as excinfo:
        _create(env, env.room_a, _at(9, 30), _at(10, 30))

    assert [c.id for c in excinfo.value.conflicts] == [existing.id]
    alternatives = excinfo.value.alternatives
    assert [a.room_id for a in alternatives] == [env.room_b.id]
    assert alternatives[0].is_exact_match is True
    assert len(env.reservation_repo.list_all()) == 1


def test_create_rejects_invalid_window(env):
    with pytest.raises(ValueError, match="end_time must be after start_time"):
        _create(env, env.room_a, _at(10), _at(9))


def test_create_rejects_past_start(env):
    with pytest.raises(ValueError, match="past"):
        _create(env, env.room_a, _NOW - timedelta(hours=1), _NOW)


def test_create_unknown_room(env):
    ghost = Room(name="Ghost", capacity=3)
    with pytest.raises(NotFoundError):
        _create(env, ghost, _at(9), _at(10))


def test_concurrent_creates_on_same_slot_book_once(env):
    results: list[str] = []
    barrier = threading.Barrier(8)

    def attempt():
        barrier.wait()
        try:
            _create(env, env.room_a, _at(14), _at(15))
            results.append("ok")
        except ReservationConflictError:
            results.append("conflict")

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("conflict") == 7


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


def test_update_own_window_does_not_conflict_with_itself(env):
    reservation = _create(env, env.room_a, _at(9), _at(10))

    updated = env.commands.update(reservation.id, now=_NOW, start=_at(9, 30), end=_at(10, 30))

    assert updated.start_time == _at(9, 30)
    assert updated.end_time == _at(10, 30)
    assert updated.updated_at is not None
    entries = env.timeline_repo.list_for_reservation(reservation.id)
    assert entries[-1].type == TimelineEntryType.RESCHEDULED
    assert entries[-1].payload["previous_start_time"] == _at(9).isoformat()


def test_update_conflicting_with_other_reservation(env):
    first = _create(env, env.room_a, _at(9), _at(10))
    second = _create(env, env.room_a, _at(11), _at(12))

    with pytest.raises(ReservationConflictError) as excinfo:
        env.commands.update(second.id, now=_NOW, start=_at(9, 30))

    assert [c.id for c in excinfo.value.conflicts] == [first.id]
    assert excinfo.value.alternatives == []
    assert second.start_time == _at(11)
    assert TimelineEntryType.CONFLICT_DETECTED in _timeline_types(env, second.id)


def test_update_only_title_keeps_window(env):
    reservation = _create(env, env.room_a, _at(9), _at(10))

    updated = env.commands.update(reservation.id, now=_NOW, title="Retro", description="Q2")

    assert updated.title == "Retro"
    assert updated.description == "Q2"
    assert updated.start_time == _at(9)
    assert _timeline_types(env, reservation.id) == [TimelineEntryType.CREATED]


def test_update_partial_window_validated(env):
    reservation = _create(env, env.room_a, _at(9), _at(10))
    with pytest.raises(ValueError, match="end_time must be after start_time"):
        env.commands.update(reservation.id, now=_NOW, start=_at(10))


def test_update_cancelled_reservation_rejected(env):
    reservation = _create(env, env.room_a, _at(9), _at(10))
    env.commands.cancel(reservation.id)
    with pytest.raises(ValueError, match="cancelled"):
        env.commands.update(reservation.id, now=_NOW, title="Nope")


def test_update_sees_cancel_that_wins_the_room_lock(env, monkeypatch):
    reservation = _create(env, env.room_a, _at(9), _at(10))
    room_lock = env.commands._room_lock
    cancelled = []

    def cancel_first(room_id):
        if not cancelled:
            cancelled.append(True)
            env.commands.cancel(reservation.id)
        return room_lock(room_id)

    monkeypatch.setattr(env.commands, "_room_lock", cancel_first)

    with pytest.raises(ValueError, match="cancelled"):
        env.commands.update(reservation.id, now=_NOW, start=_at(11), end=_at(12))

    assert reservation.status == ReservationStatus.CANCELLED
    assert reservation.start_time == _at(9)
    assert _timeline_types(env, reservation.id) == [
        TimelineEntryType.CREATED,
        TimelineEntryType.CANCELLED,
    ]


def test_update_unknown_reservation(env):
    with pytest.raises(NotFoundError):
        env.commands.update("missing", now=_NOW, title="Nope")


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


def test_cancel_frees_the_slot(env):
    reservation = _create(env, env.room_a, _at(9), _at(10))

    env.commands.cancel(reservation.id)

    assert env.reservation_repo.get(reservation.id).status == ReservationStatus.CANCELLED
    replacement = _create(env, env.room_a, _at(9), _at(10))
    assert replacement.id != reservation.id
    assert _timeline_types(env, reservation.id) == [
        TimelineEntryType.CREATED,
        TimelineEntryType.CANCELLED,
    ]


def test_cancel_twice_rejected(env):
    reservation = _create(env, env.room_a, _at(9), _at(10))
    env.commands.cancel(reservation.id)
    with pytest.raises(ValueError, match="already cancelled"):
        env.commands.cancel(reservation.id)


def test_cancel_unknown_reservation(env):
    with pytest.raises(NotFoundError):
        env.commands.cancel("missing")
