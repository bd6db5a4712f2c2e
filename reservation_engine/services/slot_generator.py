"""Split a court's opening hours into fixed-length candidate slots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import List, Optional

from reservation_engine.core.exceptions import ValidationError
from reservation_engine.services.time_model import format_minutes, to_minutes

DEFAULT_SLOT_MINUTES = 30


@dataclass(frozen=True)
class OperatingWindow:
    """Opening hours for one weekday."""

    is_open: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None

    @classmethod
    def from_hours(cls, hours) -> Optional["OperatingWindow"]:
        if hours is None:
            return None
        return cls(
            is_open=bool(hours.is_open),
            open_time=hours.open_time,
            close_time=hours.close_time,
        )

    @property
    def is_bookable(self) -> bool:
        return (
            self.is_open
            and self.open_time is not None
            and self.close_time is not None
            and self.open_time < self.close_time
        )


@dataclass(frozen=True)
class Slot:
    start: str
    end: str


def generate_slots(
    window: Optional[OperatingWindow],
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[Slot]:
    if slot_minutes <= 0:
        raise ValidationError("Slot length must be a positive number of minutes")

    if window is None or not window.is_bookable:
        return []

    open_minutes = to_minutes(window.open_time)
    close_minutes = to_minutes(window.close_time)

    slots: List[Slot] = []
    current = open_minutes
    # A trailing partial slot is dropped.
    while current + slot_minutes <= close_minutes:
        slots.append(Slot(format_minutes(current), format_minutes(current + slot_minutes)))
        current += slot_minutes
    return slots


__all__ = ["DEFAULT_SLOT_MINUTES", "OperatingWindow", "Slot", "generate_slots"]
