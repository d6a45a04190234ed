"""FastAPI application: entry point for the room reservation service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from openai import OpenAIError

from roomdesk.config import Settings
from roomdesk.domain.bus import EventBus
from roomdesk.domain.errors import NotFoundError, ReservationConflictError
from roomdesk.domain.handlers import HandlerRegistry
from roomdesk.domain.models import (
    CheckAvailabilityRequest,
    CheckAvailabilityResponse,
    ConflictingReservation,
    CreateReservationRequest,
    RecommendedRoomRequest,
    RecommendedRoomResponse,
    Reservation,
    ReservationConflictResponse,
    Room,
    TimelineEntry,
    UpdateReservationRequest,
)
from roomdesk.repos.memory import (
    ReservationRepository,
    TimelineRepository,
    create_room_repository,
)
from roomdesk.services.advisor import recommend_with_llm
from roomdesk.services.availability import ReservationService
from roomdesk.services.commands import ReservationCommands
from roomdesk.services.parser import parse_day
from roomdesk.services.recommender import recommend_by_criteria

settings = Settings.from_env()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Room Reservation Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
room_repo = create_room_repository(seed=settings.seed_rooms)
reservation_repo = ReservationRepository()
timeline_repo = TimelineRepository()

reservation_service = ReservationService(room_repo, reservation_repo, settings.search)
commands = ReservationCommands(room_repo, reservation_repo, reservation_service, event_bus)

handler_registry = HandlerRegistry(
    bus=event_bus,
    reservation_repo=reservation_repo,
    timeline_repo=timeline_repo,
)


def _as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; aware ones keep their offset."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _conflict_response(exc: ReservationConflictError) -> JSONResponse:
    body = ReservationConflictResponse(message=str(exc), alternatives=exc.alternatives)
    return JSONResponse(status_code=409, content=body.model_dump(mode="json"))


# ── Rooms ─────────────────────────────────────────────────────────────


@app.get("/rooms", response_model=list[Room])
def list_rooms() -> list[Room]:
    return room_repo.list_all()


@app.get("/rooms/{room_id}", response_model=Room)
def get_room(room_id: str) -> Room:
    room = room_repo.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


@app.post("/rooms/recommended", response_model=RecommendedRoomResponse)
def recommend_room(payload: RecommendedRoomRequest) -> RecommendedRoomResponse:
    """Recommend one room that is free for the whole requested day.

    The LLM advisor is asked first; when it is not configured, fails, or names
    a room that is not free, the rule-based recommender decides.
    """
    now = datetime.now(timezone.utc)
    try:
        day_start, day_end = parse_day(payload.day, now)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    available = [
        room
        for room in room_repo.list_all()
        if room.is_available
        and reservation_service.is_available(room.id, day_start, day_end)
    ]
    if not available:
        raise HTTPException(
            status_code=404, detail="No available rooms found for the requested day"
        )

    llm_text: str | None = None
    recommended: Room | None = None
    try:
        llm_room_id, llm_text = recommend_with_llm(
            available, payload.criteria, settings.openai_api_key, settings.openai_model
        )
    except OpenAIError as exc:
        logger.warning("LLM advisor failed, falling back to rules: %s", exc)
        llm_room_id = None

    if llm_room_id is not None:
        recommended = next((r for r in available if r.id == llm_room_id), None)
    if recommended is None:
        recommended = recommend_by_criteria(available, payload.criteria)

    return RecommendedRoomResponse(
        room_id=recommended.id,
        room_name=recommended.name,
        capacity=recommended.capacity,
        description=recommended.description,
        llm_recommendation=llm_text,
    )


# ── Reservations ──────────────────────────────────────────────────────


@app.post("/reservations/check-availability", response_model=CheckAvailabilityResponse)
def check_availability(payload: CheckAvailabilityRequest) -> CheckAvailabilityResponse:
    start, end = _as_utc(payload.start_time), _as_utc(payload.end_time)
    if end <= start:
        raise HTTPException(status_code=400, detail="End time must be after start time")

    conflicts = reservation_service.get_conflicts(payload.room_id, start, end)
    if not conflicts:
        return CheckAvailabilityResponse(
            is_available=True,
            message="Room is available for the selected time slot",
        )
    return CheckAvailabilityResponse(
        is_available=False,
        message="Room is not available for the selected time slot",
        conflicts=[
            ConflictingReservation(
                id=c.id, title=c.title, start_time=c.start_time, end_time=c.end_time
            )
            for c in conflicts
        ],
    )


@app.post("/reservations", response_model=Reservation, status_code=201)
def create_reservation(payload: CreateReservationRequest):
    """Book a room; a clash answers 409 with alternative rooms or windows."""
    try:
        return commands.create(
            room_id=payload.room_id,
            user_id=payload.user_id,
            title=payload.title,
            description=payload.description,
            start=_as_utc(payload.start_time),
            end=_as_utc(payload.end_time),
            now=datetime.now(timezone.utc),
        )
    except ReservationConflictError as exc:
        return _conflict_response(exc)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.get("/reservations", response_model=list[Reservation])
def list_reservations(
    room_id: str | None = None,
    user_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> list[Reservation]:
    """List confirmed reservations, optionally for one room, user or date range."""
    return reservation_repo.list_confirmed(
        room_id=room_id,
        user_id=user_id,
        start_date=_as_utc(start_date) if start_date else None,
        end_date=_as_utc(end_date) if end_date else None,
    )


@app.get("/reservations/{reservation_id}", response_model=Reservation)
def get_reservation(reservation_id: str) -> Reservation:
    reservation = reservation_repo.get(reservation_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation


@app.get("/reservations/{reservation_id}/timeline", response_model=list[TimelineEntry])
def get_reservation_timeline(reservation_id: str) -> list[TimelineEntry]:
    if reservation_repo.get(reservation_id) is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return timeline_repo.list_for_reservation(reservation_id)


@app.put("/reservations/{reservation_id}", response_model=Reservation)
def update_reservation(reservation_id: str, payload: UpdateReservationRequest):
    try:
        return commands.update(
            reservation_id,
            now=datetime.now(timezone.utc),
            title=payload.title,
            description=payload.description,
            start=_as_utc(payload.start_time) if payload.start_time else None,
            end=_as_utc(payload.end_time) if payload.end_time else None,
        )
    except ReservationConflictError as exc:
        return _conflict_response(exc)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.delete("/reservations/{reservation_id}")
def cancel_reservation(reservation_id: str) -> dict:
    """Cancel (soft-delete) a reservation."""
    try:
        commands.cancel(reservation_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"message": "Reservation cancelled successfully"}
