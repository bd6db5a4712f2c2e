"""In-process publication of reservation lifecycle events.

Subscribers are fire-and-forget: a failing handler is logged and never affects
the operation that emitted the event or the other subscribers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

RESERVATION_CREATED = "reservation.created"
RESERVATION_CONFIRMED = "reservation.confirmed"
RESERVATION_CHECKED_IN = "reservation.checked_in"
RESERVATION_CHECKED_OUT = "reservation.checked_out"
RESERVATION_CANCELLED = "reservation.cancelled"
RESERVATION_NO_SHOW = "reservation.no_show"


@dataclass(frozen=True)
class ReservationEvent:
    name: str
    reservation_id: int
    court_id: int
    user_id: int
    status: str
    occurred_at: datetime
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_reservation(cls, name: str, reservation, occurred_at: datetime, **data: Any) -> "ReservationEvent":
        return cls(
            name=name,
            reservation_id=reservation.id_reservation,
            court_id=reservation.id_court,
            user_id=reservation.id_user,
            status=reservation.status,
            occurred_at=occurred_at,
            data=data,
        )

    def as_payload(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "reservation_id": self.reservation_id,
            "court_id": self.court_id,
            "user_id": self.user_id,
            "status": self.status,
            "occurred_at": self.occurred_at.isoformat(),
            "data": {key: _jsonable(value) for key, value in self.data.items()},
        }


EventHandler = Callable[[ReservationEvent], None]


class LifecycleEventPublisher:

    def __init__(self) -> None:
        self._handlers: List[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def publish(self, event: ReservationEvent) -> None:
        logger.debug("Publishing %s for reservation %s", event.name, event.reservation_id)
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Lifecycle event handler %r failed for %s (reservation %s)",
                    handler,
                    event.name,
                    event.reservation_id,
                )


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


__all__ = [
    "EventHandler",
    "LifecycleEventPublisher",
    "RESERVATION_CANCELLED",
    "RESERVATION_CHECKED_IN",
    "RESERVATION_CHECKED_OUT",
    "RESERVATION_CONFIRMED",
    "RESERVATION_CREATED",
    "RESERVATION_NO_SHOW",
    "ReservationEvent",
]
