"""Domain event handlers that keep the audit timeline of every reservation."""

from __future__ import annotations

import logging

from roomdesk.domain.bus import EventBus
from roomdesk.domain.events import (
    ConflictDetected,
    ReservationCancelled,
    ReservationCreated,
    ReservationRescheduled,
)
from roomdesk.domain.models import TimelineEntry, TimelineEntryType
from roomdesk.repos.memory import ReservationRepository, TimelineRepository

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the repositories."""

    def __init__(
        self,
        bus: EventBus,
        reservation_repo: ReservationRepository,
        timeline_repo: TimelineRepository,
    ) -> None:
        self.bus = bus
        self.reservation_repo = reservation_repo
        self.timeline_repo = timeline_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(ReservationCreated, self.on_reservation_created)
        self.bus.subscribe(ReservationRescheduled, self.on_reservation_rescheduled)
        self.bus.subscribe(ReservationCancelled, self.on_reservation_cancelled)
        self.bus.subscribe(ConflictDetected, self.on_conflict_detected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_reservation_created(self, event: ReservationCreated) -> None:
        stored = self.reservation_repo.get(event.reservation_id)
        if stored is None:
            return

        self.timeline_repo.add(
            TimelineEntry(
                reservation_id=stored.id,
                type=TimelineEntryType.CREATED,
                payload={
                    "room_id": stored.room_id,
                    "start_time": stored.start_time.isoformat(),
                    "end_time": stored.end_time.isoformat(),
                },
            )
        )

    def on_reservation_rescheduled(self, event: ReservationRescheduled) -> None:
        stored = self.reservation_repo.get(event.reservation_id)
        if stored is None:
            return

        self.timeline_repo.add(
            TimelineEntry(
                reservation_id=stored.id,
                type=TimelineEntryType.RESCHEDULED,
                payload={
                    "previous_start_time": event.previous_start_time.isoformat(),
                    "previous_end_time": event.previous_end_time.isoformat(),
                    "start_time": stored.start_time.isoformat(),
                    "end_time": stored.end_time.isoformat(),
                },
            )
        )

    def on_reservation_cancelled(self, event: ReservationCancelled) -> None:
        if self.reservation_repo.get(event.reservation_id) is None:
            return

        self.timeline_repo.add(
            TimelineEntry(
                reservation_id=event.reservation_id,
                type=TimelineEntryType.CANCELLED,
            )
        )

    def on_conflict_detected(self, event: ConflictDetected) -> None:
        logger.info(
            "Room %s is booked between %s and %s (conflicts: %s)",
            event.room_id,
            event.start_time.isoformat(),
            event.end_time.isoformat(),
            ", ".join(event.conflicting_reservation_ids),
        )
        if event.reservation_id is None:
            return

        self.timeline_repo.add(
            TimelineEntry(
                reservation_id=event.reservation_id,
                type=TimelineEntryType.CONFLICT_DETECTED,
                payload={
                    "conflicting_reservation_ids": event.conflicting_reservation_ids,
                    "start_time": event.start_time.isoformat(),
                    "end_time": event.end_time.isoformat(),
                },
            )
        )
