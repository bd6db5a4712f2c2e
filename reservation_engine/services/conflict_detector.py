"""Find every reason a court window cannot be booked.

The detector never stops at the first problem: callers get the complete list
of violations so they can explain all of them at once. ``load_day`` reads the
court's state for one date; ``evaluate`` is a pure function over that snapshot
and is reused for every candidate slot of the day.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Collection, Dict, List, Optional

from sqlalchemy.orm import Session

from reservation_engine.models.court import Court
from reservation_engine.models.reservation import Reservation
from reservation_engine.models.schedule_block import ScheduleBlock
from reservation_engine.repository import reservation_repository, schedule_block_repository
from reservation_engine.services.pricing_engine import SpecialRate
from reservation_engine.services.slot_generator import OperatingWindow
from reservation_engine.services.time_model import (
    TimeLike,
    duration_minutes,
    ensure_window,
    format_minutes,
    overlaps,
    to_minutes,
)


class ViolationKind(str, enum.Enum):
    OPERATING_HOURS = "operating_hours"
    ADVANCE_BOOKING = "advance_booking"
    DURATION = "duration"
    RESERVATION = "reservation"
    MAINTENANCE = "maintenance"


ALL_CHECKS = frozenset(ViolationKind)
# Duration limits apply to whole bookings, not to the 30-minute display slots.
SLOT_CHECKS = ALL_CHECKS - {ViolationKind.DURATION}
RESERVATION_ONLY = frozenset({ViolationKind.RESERVATION})


@dataclass(frozen=True)
class Violation:
    kind: ViolationKind
    message: str
    reservation_id: Optional[int] = None
    block_id: Optional[int] = None
    block_type: Optional[str] = None
    block_reason: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.reservation_id is not None:
            payload["reservation_id"] = self.reservation_id
        if self.block_id is not None:
            payload["block_id"] = self.block_id
            payload["block_type"] = self.block_type
            payload["block_reason"] = self.block_reason
        return payload


@dataclass
class DaySchedule:
    """Everything the detector needs to know about one court on one date."""

    court: Court
    target_date: date
    hours: Optional[OperatingWindow]
    reservations: List[Reservation] = field(default_factory=list)
    blocks: List[ScheduleBlock] = field(default_factory=list)
    special_rates: List[SpecialRate] = field(default_factory=list)


def evaluate(
    day: DaySchedule,
    start_time: TimeLike,
    end_time: TimeLike,
    *,
    today: date,
    checks: Collection[ViolationKind] = ALL_CHECKS,
) -> List[Violation]:
    start_value, end_value = ensure_window(start_time, end_time)
    start_minutes = to_minutes(start_value)
    end_minutes = to_minutes(end_value)
    court = day.court
    violations: List[Violation] = []

    if ViolationKind.OPERATING_HOURS in checks:
        hours = day.hours
        if hours is None or not hours.is_bookable:
            violations.append(
                Violation(ViolationKind.OPERATING_HOURS, "Court is closed on this day")
            )
        elif start_minutes < to_minutes(hours.open_time) or end_minutes > to_minutes(
            hours.close_time
        ):
            violations.append(
                Violation(
                    ViolationKind.OPERATING_HOURS,
                    "Booking time is outside operating hours "
                    f"({format_minutes(to_minutes(hours.open_time))} - "
                    f"{format_minutes(to_minutes(hours.close_time))})",
                )
            )

    if ViolationKind.ADVANCE_BOOKING in checks:
        days_ahead = (day.target_date - today).days
        if days_ahead < 0:
            violations.append(
                Violation(ViolationKind.ADVANCE_BOOKING, "Cannot book a date in the past")
            )
        elif days_ahead > court.advance_booking_days:
            violations.append(
                Violation(
                    ViolationKind.ADVANCE_BOOKING,
                    f"Cannot book more than {court.advance_booking_days} days in advance",
                )
            )

    if ViolationKind.DURATION in checks:
        duration = duration_minutes(start_value, end_value)
        if duration < court.min_duration_minutes:
            violations.append(
                Violation(
                    ViolationKind.DURATION,
                    f"Minimum booking duration is {court.min_duration_minutes} minutes",
                )
            )
        if duration > court.max_duration_minutes:
            violations.append(
                Violation(
                    ViolationKind.DURATION,
                    f"Maximum booking duration is {court.max_duration_minutes} minutes",
                )
            )

    if ViolationKind.RESERVATION in checks:
        for reservation in day.reservations:
            if not reservation.is_active:
                continue
            if overlaps(start_value, end_value, reservation.start_time, reservation.end_time):
                violations.append(
                    Violation(
                        ViolationKind.RESERVATION,
                        "Court already reserved "
                        f"{format_minutes(to_minutes(reservation.start_time))}-"
                        f"{format_minutes(to_minutes(reservation.end_time))}",
                        reservation_id=reservation.id_reservation,
                    )
                )

    if ViolationKind.MAINTENANCE in checks:
        for block in day.blocks:
            if not block.is_blocked:
                continue
            if overlaps(start_value, end_value, block.start_time, block.end_time):
                violations.append(
                    Violation(
                        ViolationKind.MAINTENANCE,
                        f"Court blocked for {block.label} "
                        f"{format_minutes(to_minutes(block.start_time))}-"
                        f"{format_minutes(to_minutes(block.end_time))}",
                        block_id=block.id_block,
                        block_type=block.block_type,
                        block_reason=block.reason,
                    )
                )

    return violations


class ConflictDetector:

    def __init__(self, db: Session, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.db = db
        self._clock = clock or datetime.now

    def today(self) -> date:
        return self._clock().date()

    def load_day(self, court: Court, target_date: date) -> DaySchedule:
        reservations = reservation_repository.list_active_reservations(
            self.db,
            court_id=court.id_court,
            target_date=target_date,
        )
        blocks = schedule_block_repository.list_blocks(
            self.db,
            court_id=court.id_court,
            target_date=target_date,
        )
        return DaySchedule(
            court=court,
            target_date=target_date,
            hours=OperatingWindow.from_hours(court.hours_for(target_date.weekday())),
            reservations=reservations,
            blocks=[block for block in blocks if block.is_blocked],
            special_rates=[
                SpecialRate(
                    start_time=block.start_time,
                    end_time=block.end_time,
                    rate=block.special_rate,
                    priority=block.id_block,
                )
                for block in blocks
                if not block.is_blocked and block.special_rate is not None
            ],
        )

    def detect(
        self,
        court: Court,
        target_date: date,
        start_time: TimeLike,
        end_time: TimeLike,
        *,
        checks: Collection[ViolationKind] = ALL_CHECKS,
    ) -> List[Violation]:
        day = self.load_day(court, target_date)
        return evaluate(day, start_time, end_time, today=self.today(), checks=checks)


__all__ = [
    "ALL_CHECKS",
    "RESERVATION_ONLY",
    "SLOT_CHECKS",
    "ConflictDetector",
    "DaySchedule",
    "Violation",
    "ViolationKind",
    "evaluate",
]
