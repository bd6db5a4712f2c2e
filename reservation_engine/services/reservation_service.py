import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Collection, List, Optional

from sqlalchemy.orm import Session

from reservation_engine.core.config import settings
from reservation_engine.core.database import unit_of_work
from reservation_engine.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    OutOfWindowError,
    ValidationError,
)
from reservation_engine.models.court import Court
from reservation_engine.models.reservation import Reservation, ReservationStatus
from reservation_engine.repository import court_repository, reservation_repository
from reservation_engine.services.conflict_detector import ConflictDetector, evaluate
from reservation_engine.services.events import (
    RESERVATION_CANCELLED,
    RESERVATION_CHECKED_IN,
    RESERVATION_CHECKED_OUT,
    RESERVATION_CONFIRMED,
    RESERVATION_CREATED,
    RESERVATION_NO_SHOW,
    LifecycleEventPublisher,
    ReservationEvent,
)
from reservation_engine.services.pricing_engine import PricingEngine
from reservation_engine.services.refund_policy import RefundPolicy, policy_from_name
from reservation_engine.services.time_model import TimeLike, as_naive, combine, ensure_window

logger = logging.getLogger(__name__)

_PENDING = ReservationStatus.PENDING.value
_CONFIRMED = ReservationStatus.CONFIRMED.value
_CHECKED_IN = ReservationStatus.CHECKED_IN.value
_COMPLETED = ReservationStatus.COMPLETED.value
_CANCELLED = ReservationStatus.CANCELLED.value
_NO_SHOW = ReservationStatus.NO_SHOW.value

_SECONDS_PER_HOUR = Decimal(3600)
_MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ReservationPage:
    items: List[Reservation]
    total: int
    pages: int
    current_page: int


class ReservationService:
    """Creates reservations and drives them through their lifecycle.

    ``pending -> confirmed -> checked_in -> completed``, with
    ``pending|confirmed -> cancelled`` and ``confirmed -> no_show``. Cancelled,
    completed and no-show reservations accept no further transition.
    """

    def __init__(
        self,
        db: Session,
        *,
        pricing_engine: Optional[PricingEngine] = None,
        refund_policy: Optional[RefundPolicy] = None,
        events: Optional[LifecycleEventPublisher] = None,
        clock: Optional[Callable[[], datetime]] = None,
        check_in_early_minutes: Optional[int] = None,
        check_in_late_minutes: Optional[int] = None,
    ) -> None:
        self.db = db
        self.pricing_engine = pricing_engine or PricingEngine()
        self.refund_policy = refund_policy or policy_from_name(settings.REFUND_POLICY)
        self.events = events or LifecycleEventPublisher()
        self._clock = clock or datetime.now
        self.detector = ConflictDetector(db, clock=self._clock)
        self.check_in_early = timedelta(
            minutes=settings.CHECK_IN_EARLY_MINUTES
            if check_in_early_minutes is None
            else check_in_early_minutes
        )
        self.check_in_late = timedelta(
            minutes=settings.CHECK_IN_LATE_MINUTES
            if check_in_late_minutes is None
            else check_in_late_minutes
        )

    # ------------------------------------------------------------------ reads

    def _get_court(self, court_id: int) -> Court:
        court = court_repository.get_court(self.db, court_id)
        if court is None:
            raise NotFoundError("Court", court_id)
        return court

    def get_reservation(self, reservation_id: int) -> Reservation:
        reservation = reservation_repository.get_reservation(self.db, reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    def list_user_reservations(
        self,
        user_id: int,
        *,
        page: int = 1,
        limit: int = 10,
        status_filter: Optional[str] = None,
    ) -> ReservationPage:
        if page < 1:
            raise ValidationError("page must be at least 1", field="page")
        if not 1 <= limit <= _MAX_PAGE_SIZE:
            raise ValidationError(
                f"limit must be between 1 and {_MAX_PAGE_SIZE}", field="limit"
            )

        total = reservation_repository.count_reservations(
            self.db, user_id=user_id, status_filter=status_filter
        )
        items = reservation_repository.list_reservations(
            self.db,
            user_id=user_id,
            status_filter=status_filter,
            sort_desc=True,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return ReservationPage(
            items=items,
            total=total,
            pages=math.ceil(total / limit) if total else 0,
            current_page=page,
        )

    def list_court_reservations(
        self,
        court_id: int,
        *,
        target_date: Optional[date] = None,
        status_filter: Optional[str] = None,
    ) -> List[Reservation]:
        self._get_court(court_id)
        return reservation_repository.list_reservations(
            self.db,
            court_id=court_id,
            status_filter=status_filter,
            start_date=target_date,
            end_date=target_date,
        )

    # ----------------------------------------------------------------- create

    def create_reservation(
        self,
        *,
        court_id: int,
        user_id: int,
        target_date: date,
        start_time: TimeLike,
        end_time: TimeLike,
        notes: Optional[str] = None,
    ) -> Reservation:
        start_value, end_value = ensure_window(start_time, end_time)
        court = self._get_court(court_id)

        with unit_of_work(self.db, conflict_message="Booking conflicts detected"):
            # Serialises writers for this court and date.
            ledger = reservation_repository.lock_court_day(
                self.db, court_id=court.id_court, target_date=target_date
            )
            day = self.detector.load_day(court, target_date)
            violations = evaluate(
                day, start_value, end_value, today=self.detector.today()
            )
            if violations:
                logger.info(
                    "Rejected reservation on court %s %s %s-%s: %s",
                    court.id_court,
                    target_date,
                    start_value,
                    end_value,
                    ", ".join(violation.kind.value for violation in violations),
                )
                raise ConflictError(
                    "Booking conflicts detected: "
                    + ", ".join(violation.message for violation in violations),
                    violations,
                )

            price = self.pricing_engine.calculate_price(
                court,
                target_date,
                start_value,
                end_value,
                special_rates=day.special_rates,
            )
            reservation = reservation_repository.add_reservation(
                self.db,
                {
                    "id_court": court.id_court,
                    "id_user": user_id,
                    "reservation_date": target_date,
                    "start_time": start_value,
                    "end_time": end_value,
                    "duration_minutes": price.duration_minutes,
                    "base_rate": price.base_rate,
                    "peak_multiplier": price.peak_multiplier,
                    "weekend_multiplier": price.weekend_multiplier,
                    "subtotal": price.subtotal,
                    "tax_amount": price.tax_amount,
                    "service_fee": price.service_fee,
                    "total_amount": price.total_amount,
                    "status": _PENDING,
                    "notes": notes,
                    "refund_processed": False,
                },
            )
            reservation_repository.touch_court_day(self.db, ledger)

        self.db.refresh(reservation)
        logger.info(
            "Created reservation %s on court %s %s %s-%s total=%s",
            reservation.id_reservation,
            reservation.id_court,
            reservation.reservation_date,
            reservation.start_time,
            reservation.end_time,
            reservation.total_amount,
        )
        self._publish(RESERVATION_CREATED, reservation, self._now())
        return reservation

    # ------------------------------------------------------------ transitions

    def confirm_payment(self, reservation_id: int, payment_reference: str) -> Reservation:
        if not payment_reference or not payment_reference.strip():
            raise ValidationError("payment_reference is required", field="payment_reference")

        reservation = self.get_reservation(reservation_id)
        self._ensure_status(reservation, "confirm payment for", (_PENDING,))

        reservation.status = _CONFIRMED
        reservation.payment_reference = payment_reference.strip()
        reservation = self._save_transition(reservation, "confirm payment for")

        logger.info("Confirmed reservation %s (payment %s)", reservation_id, reservation.payment_reference)
        self._publish(
            RESERVATION_CONFIRMED,
            reservation,
            self._now(),
            payment_reference=reservation.payment_reference,
        )
        return reservation

    def check_in(
        self,
        reservation_id: int,
        *,
        now: Optional[datetime] = None,
        checked_in_by: Optional[int] = None,
    ) -> Reservation:
        reservation = self.get_reservation(reservation_id)
        self._ensure_status(reservation, "check in", (_CONFIRMED,))

        current = self._resolve_now(now)
        start_at = combine(reservation.reservation_date, reservation.start_time)
        opens_at = start_at - self.check_in_early
        closes_at = start_at + self.check_in_late
        if current < opens_at or current > closes_at:
            raise OutOfWindowError(
                f"Check-in is only allowed between {opens_at:%H:%M} and {closes_at:%H:%M}",
                opens_at=opens_at,
                closes_at=closes_at,
            )

        late = current > start_at
        reservation.status = _CHECKED_IN
        reservation.checked_in_at = current
        reservation.checked_in_by = checked_in_by
        reservation.late_arrival = late
        reservation.minutes_late = _whole_minutes(current - start_at) if late else None
        reservation = self._save_transition(reservation, "check in")

        logger.info(
            "Checked in reservation %s (late=%s, minutes_late=%s)",
            reservation_id,
            late,
            reservation.minutes_late,
        )
        self._publish(
            RESERVATION_CHECKED_IN,
            reservation,
            current,
            late_arrival=late,
            minutes_late=reservation.minutes_late,
        )
        return reservation

    def check_out(
        self,
        reservation_id: int,
        *,
        now: Optional[datetime] = None,
        checked_out_by: Optional[int] = None,
    ) -> Reservation:
        reservation = self.get_reservation(reservation_id)
        self._ensure_status(reservation, "check out", (_CHECKED_IN,))

        current = self._resolve_now(now)
        end_at = combine(reservation.reservation_date, reservation.end_time)
        early = current < end_at

        reservation.status = _COMPLETED
        reservation.checked_out_at = current
        reservation.checked_out_by = checked_out_by
        reservation.early_departure = early
        reservation.minutes_early = _whole_minutes(end_at - current) if early else None
        reservation = self._save_transition(reservation, "check out")

        logger.info("Checked out reservation %s (early=%s)", reservation_id, early)
        self._publish(RESERVATION_CHECKED_OUT, reservation, current, early_departure=early)
        return reservation

    def cancel_reservation(
        self,
        reservation_id: int,
        *,
        now: Optional[datetime] = None,
        reason: Optional[str] = None,
        cancelled_by: Optional[int] = None,
    ) -> Reservation:
        reservation = self.get_reservation(reservation_id)
        self._ensure_status(reservation, "cancel", (_PENDING, _CONFIRMED))

        current = self._resolve_now(now)
        hours_until_start = self.hours_until_start(reservation, current)
        refund_amount = self.refund_policy.refund_amount(reservation.total_amount, hours_until_start)

        reservation.status = _CANCELLED
        reservation.cancelled_at = current
        reservation.cancelled_by = cancelled_by
        reservation.cancellation_reason = reason
        reservation.refund_amount = refund_amount
        reservation.refund_processed = False
        reservation = self._save_transition(reservation, "cancel")

        logger.info(
            "Cancelled reservation %s %.2fh before start; refund %s of %s (%s policy)",
            reservation_id,
            hours_until_start,
            refund_amount,
            reservation.total_amount,
            self.refund_policy.name,
        )
        self._publish(
            RESERVATION_CANCELLED,
            reservation,
            current,
            refund_amount=refund_amount,
            reason=reason,
        )
        return reservation

    def mark_no_show(self, reservation_id: int, *, now: Optional[datetime] = None) -> Reservation:
        reservation = self.get_reservation(reservation_id)
        self._ensure_status(reservation, "mark as no-show", (_CONFIRMED,))

        current = self._resolve_now(now)
        start_at = combine(reservation.reservation_date, reservation.start_time)
        window_closes_at = start_at + self.check_in_late
        if current <= window_closes_at:
            raise OutOfWindowError(
                f"A no-show can only be recorded after {window_closes_at:%H:%M}",
                opens_at=window_closes_at,
            )

        reservation.status = _NO_SHOW
        reservation = self._save_transition(reservation, "mark as no-show")

        logger.info("Marked reservation %s as no-show", reservation_id)
        self._publish(RESERVATION_NO_SHOW, reservation, current)
        return reservation

    def mark_refund_processed(
        self, reservation_id: int, *, now: Optional[datetime] = None
    ) -> Reservation:
        """Record that the payment collaborator executed the computed refund."""

        reservation = self.get_reservation(reservation_id)
        self._ensure_status(reservation, "process the refund of", (_CANCELLED,))

        if reservation.refund_processed or not reservation.refund_amount:
            raise ValidationError(
                "Reservation has no pending refund", field="refund_amount"
            )

        reservation.refund_processed = True
        reservation.refund_processed_at = self._resolve_now(now)
        reservation = self._save_transition(reservation, "process the refund of")

        logger.info(
            "Refund of %s processed for reservation %s",
            reservation.refund_amount,
            reservation_id,
        )
        return reservation

    # ---------------------------------------------------------------- helpers

    @staticmethod
    def hours_until_start(reservation: Reservation, now: datetime) -> Decimal:
        start_at = combine(reservation.reservation_date, reservation.start_time)
        seconds = Decimal(str((start_at - as_naive(now)).total_seconds()))
        return seconds / _SECONDS_PER_HOUR

    @staticmethod
    def _ensure_status(
        reservation: Reservation, operation: str, allowed: Collection[str]
    ) -> None:
        if reservation.status not in allowed:
            logger.info(
                "Refused to %s reservation %s in status %s",
                operation,
                reservation.id_reservation,
                reservation.status,
            )
            raise InvalidStateError(operation, reservation.status)

    def _save_transition(self, reservation: Reservation, operation: str) -> Reservation:
        reservation_id = reservation.id_reservation

        def changed_concurrently() -> InvalidStateError:
            current = reservation_repository.get_reservation(self.db, reservation_id)
            status = current.status if current is not None else "deleted"
            logger.info(
                "Lost the race to %s reservation %s; it is now %s",
                operation,
                reservation_id,
                status,
            )
            return InvalidStateError(operation, status, concurrent=True)

        return reservation_repository.save_reservation(
            self.db, reservation, on_stale=changed_concurrently
        )

    def _now(self) -> datetime:
        return as_naive(self._clock())

    def _resolve_now(self, now: Optional[datetime]) -> datetime:
        return as_naive(now) if now is not None else self._now()

    def _publish(self, name: str, reservation: Reservation, occurred_at: datetime, **data) -> None:
        self.events.publish(
            ReservationEvent.from_reservation(name, reservation, occurred_at, **data)
        )


def _whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


__all__ = ["ReservationPage", "ReservationService"]
