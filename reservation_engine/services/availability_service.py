"""Read path: which slots of a court are open on a date, and at what price.

Results are point-in-time snapshots. Reservation creation re-validates
everything inside its own transaction, so a stale answer here can at worst
lead to a ``ConflictError`` on booking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from reservation_engine.core.config import settings
from reservation_engine.core.exceptions import NotFoundError, ValidationError
from reservation_engine.models.court import Court
from reservation_engine.repository import court_repository
from reservation_engine.services.conflict_detector import (
    ALL_CHECKS,
    SLOT_CHECKS,
    ConflictDetector,
    DaySchedule,
    Violation,
    evaluate,
)
from reservation_engine.services.pricing_engine import PriceBreakdown, PricingEngine
from reservation_engine.services.slot_generator import generate_slots
from reservation_engine.services.time_model import TimeLike, ensure_window


@dataclass(frozen=True)
class SlotAvailability:
    start_time: str
    end_time: str
    available: bool
    price: Optional[Decimal] = None
    blocked_reason: Optional[str] = None
    violation_kind: Optional[str] = None
    reservation_id: Optional[int] = None
    block_type: Optional[str] = None


@dataclass(frozen=True)
class AvailabilityVerdict:
    available: bool
    price: Optional[PriceBreakdown] = None
    violations: List[Violation] = field(default_factory=list)


class AvailabilityService:

    def __init__(
        self,
        db: Session,
        *,
        pricing_engine: Optional[PricingEngine] = None,
        clock: Optional[Callable[[], datetime]] = None,
        slot_minutes: Optional[int] = None,
    ) -> None:
        self.db = db
        self.pricing_engine = pricing_engine or PricingEngine()
        self.detector = ConflictDetector(db, clock=clock)
        self.slot_minutes = slot_minutes or settings.SLOT_MINUTES

    def get_court(self, court_id: int) -> Court:
        court = court_repository.get_court(self.db, court_id)
        if court is None:
            raise NotFoundError("Court", court_id)
        return court

    def get_available_slots(self, court_id: int, target_date: date) -> List[SlotAvailability]:
        court = self.get_court(court_id)
        day = self.detector.load_day(court, target_date)
        return self._slots_for_day(day)

    def check_availability(
        self,
        court_id: int,
        target_date: date,
        start_time: TimeLike,
        end_time: TimeLike,
    ) -> AvailabilityVerdict:
        start_value, end_value = ensure_window(start_time, end_time)
        court = self.get_court(court_id)
        day = self.detector.load_day(court, target_date)

        violations = evaluate(
            day,
            start_value,
            end_value,
            today=self.detector.today(),
            checks=ALL_CHECKS,
        )
        if violations:
            return AvailabilityVerdict(available=False, violations=violations)

        price = self.pricing_engine.calculate_price(
            court,
            target_date,
            start_value,
            end_value,
            special_rates=day.special_rates,
        )
        return AvailabilityVerdict(available=True, price=price)

    def get_court_calendar(
        self,
        court_id: int,
        start_date: date,
        end_date: date,
    ) -> Dict[date, List[SlotAvailability]]:
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")

        span = (end_date - start_date).days + 1
        if span > settings.MAX_CALENDAR_DAYS:
            raise ValidationError(
                f"Calendar range cannot exceed {settings.MAX_CALENDAR_DAYS} days",
                field="end_date",
            )

        court = self.get_court(court_id)
        calendar: Dict[date, List[SlotAvailability]] = {}
        for offset in range(span):
            current = start_date + timedelta(days=offset)
            calendar[current] = self._slots_for_day(self.detector.load_day(court, current))
        return calendar

    def _slots_for_day(self, day: DaySchedule) -> List[SlotAvailability]:
        today = self.detector.today()
        results: List[SlotAvailability] = []

        for slot in generate_slots(day.hours, self.slot_minutes):
            violations = evaluate(day, slot.start, slot.end, today=today, checks=SLOT_CHECKS)
            if violations:
                first = violations[0]
                results.append(
                    SlotAvailability(
                        start_time=slot.start,
                        end_time=slot.end,
                        available=False,
                        blocked_reason=first.message,
                        violation_kind=first.kind.value,
                        reservation_id=first.reservation_id,
                        block_type=first.block_type,
                    )
                )
                continue

            price = self.pricing_engine.calculate_price(
                day.court,
                day.target_date,
                slot.start,
                slot.end,
                special_rates=day.special_rates,
            )
            results.append(
                SlotAvailability(
                    start_time=slot.start,
                    end_time=slot.end,
                    available=True,
                    price=price.total_amount,
                )
            )

        return results


__all__ = ["AvailabilityService", "AvailabilityVerdict", "SlotAvailability"]
