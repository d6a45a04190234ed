"""Simple synchronous in-process event bus."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

from pydantic import BaseModel


class EventBus:
    """Publish/subscribe bus for reservation domain events.

    Handlers run synchronously, in registration order, on the publishing
    thread.
    """

    def __init__(self) -> None:
        self._subscribers: dict[type[BaseModel], list[Callable[[Any], None]]] = (
            defaultdict(list)
        )

    def subscribe(self, event_type: type[BaseModel], handler: Callable[[Any], None]) -> None:
        self._subscribers[event_type].append(handler)

    def publish(self, event: BaseModel) -> None:
        for handler in self._subscribers.get(type(event), []):
            handler(event)
