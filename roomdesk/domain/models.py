"""Domain models for the room reservation system."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class ReservationStatus(StrEnum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class TimelineEntryType(StrEnum):
    CREATED = "created"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"
    CONFLICT_DETECTED = "conflict_detected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Room(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    capacity: int = Field(gt=0)
    description: str | None = None
    is_available: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime | None = None


class Reservation(BaseModel):
    id: str = Field(default_factory=_new_id)
    room_id: str
    user_id: str
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    status: ReservationStatus = ReservationStatus.CONFIRMED
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _end_after_start(self) -> Reservation:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AlternativeRoom(BaseModel):
    """A room (and window) offered in place of a booked-out request."""

    room_id: str
    room_name: str
    capacity: int
    description: str | None = None
    available_start_time: datetime
    available_end_time: datetime
    is_exact_match: bool


class TimelineEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    reservation_id: str
    timestamp: datetime = Field(default_factory=_utcnow)
    type: TimelineEntryType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class CheckAvailabilityRequest(BaseModel):
    room_id: str
    start_time: datetime
    end_time: datetime


class ConflictingReservation(BaseModel):
    id: str
    title: str
    start_time: datetime
    end_time: datetime


class CheckAvailabilityResponse(BaseModel):
    is_available: bool
    message: str
    conflicts: list[ConflictingReservation] | None = None


class CreateReservationRequest(BaseModel):
    room_id: str
    user_id: str
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    start_time: datetime
    end_time: datetime


class UpdateReservationRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    start_time: datetime | None = None
    end_time: datetime | None = None


class ReservationConflictResponse(BaseModel):
    message: str
    alternatives: list[AlternativeRoom] = Field(default_factory=list)


class RecommendedRoomRequest(BaseModel):
    criteria: str = ""
    day: str | None = None


class RecommendedRoomResponse(BaseModel):
    room_id: str
    room_name: str
    capacity: int
    description: str | None = None
    llm_recommendation: str | None = None
