import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from reservation_engine.core.database import unit_of_work
from reservation_engine.core.exceptions import ConflictError, NotFoundError, ValidationError
from reservation_engine.models.court import Court
from reservation_engine.models.schedule_block import BlockType, ScheduleBlock
from reservation_engine.repository import (
    court_repository,
    reservation_repository,
    schedule_block_repository,
)
from reservation_engine.services.conflict_detector import (
    RESERVATION_ONLY,
    ConflictDetector,
    evaluate,
)
from reservation_engine.services.pricing_engine import quantize_money
from reservation_engine.services.time_model import TimeLike, ensure_window

logger = logging.getLogger(__name__)


class ScheduleBlockService:
    """Maintenance blocks and special-rate windows for courts."""

    def __init__(self, db: Session, *, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.db = db
        self.detector = ConflictDetector(db, clock=clock)

    def _get_court(self, court_id: int) -> Court:
        court = court_repository.get_court(self.db, court_id)
        if court is None:
            raise NotFoundError("Court", court_id)
        return court

    def list_blocks(
        self,
        court_id: int,
        target_date: date,
        *,
        blocked_only: bool = False,
    ) -> List[ScheduleBlock]:
        self._get_court(court_id)
        return schedule_block_repository.list_blocks(
            self.db,
            court_id=court_id,
            target_date=target_date,
            is_blocked=True if blocked_only else None,
        )

    def create_block(
        self,
        *,
        court_id: int,
        target_date: date,
        start_time: TimeLike,
        end_time: TimeLike,
        block_type: Optional[str] = BlockType.MAINTENANCE.value,
        reason: Optional[str] = None,
    ) -> ScheduleBlock:
        """Block a window, refusing to cover any pending or confirmed reservation."""

        start_value, end_value = ensure_window(start_time, end_time)
        normalized_type = _normalize_block_type(block_type)
        court = self._get_court(court_id)

        with unit_of_work(self.db, conflict_message="Block overlaps an active reservation"):
            ledger = reservation_repository.lock_court_day(
                self.db, court_id=court.id_court, target_date=target_date
            )
            day = self.detector.load_day(court, target_date)
            violations = evaluate(
                day,
                start_value,
                end_value,
                today=self.detector.today(),
                checks=RESERVATION_ONLY,
            )
            if violations:
                logger.info(
                    "Rejected block on court %s %s %s-%s: overlaps reservations %s",
                    court.id_court,
                    target_date,
                    start_value,
                    end_value,
                    [violation.reservation_id for violation in violations],
                )
                raise ConflictError(
                    "Cannot block a window that overlaps active reservations",
                    violations,
                )

            block = schedule_block_repository.add_block(
                self.db,
                {
                    "id_court": court.id_court,
                    "block_date": target_date,
                    "start_time": start_value,
                    "end_time": end_value,
                    "is_blocked": True,
                    "block_type": normalized_type,
                    "reason": reason,
                },
            )
            reservation_repository.touch_court_day(self.db, ledger)

        self.db.refresh(block)
        logger.info(
            "Created %s block %s on court %s %s %s-%s",
            block.block_type,
            block.id_block,
            block.id_court,
            block.block_date,
            block.start_time,
            block.end_time,
        )
        return block

    def create_special_rate(
        self,
        *,
        court_id: int,
        target_date: date,
        start_time: TimeLike,
        end_time: TimeLike,
        rate,
        reason: Optional[str] = None,
    ) -> ScheduleBlock:
        start_value, end_value = ensure_window(start_time, end_time)
        special_rate = _parse_rate(rate)
        court = self._get_court(court_id)

        with unit_of_work(self.db):
            block = schedule_block_repository.add_block(
                self.db,
                {
                    "id_court": court.id_court,
                    "block_date": target_date,
                    "start_time": start_value,
                    "end_time": end_value,
                    "is_blocked": False,
                    "reason": reason,
                    "special_rate": special_rate,
                },
            )

        self.db.refresh(block)
        logger.info(
            "Created special rate %s on court %s %s %s-%s",
            block.special_rate,
            block.id_court,
            block.block_date,
            block.start_time,
            block.end_time,
        )
        return block

    def remove_block(self, block_id: int) -> None:
        block = schedule_block_repository.get_block(self.db, block_id)
        if block is None:
            raise NotFoundError("Schedule block", block_id)

        schedule_block_repository.delete_block(self.db, block)
        logger.info("Removed schedule block %s", block_id)


def _normalize_block_type(block_type: Optional[str]) -> str:
    if block_type is None:
        return BlockType.MAINTENANCE.value
    value = block_type.value if isinstance(block_type, BlockType) else str(block_type).strip().lower()
    try:
        return BlockType(value).value
    except ValueError as exc:
        allowed = ", ".join(member.value for member in BlockType)
        raise ValidationError(
            f"Unknown block type '{block_type}' (expected one of: {allowed})",
            field="block_type",
        ) from exc


def _parse_rate(rate) -> Decimal:
    try:
        value = Decimal(str(rate))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid special rate '{rate}'", field="rate") from exc
    if not value.is_finite() or value < 0:
        raise ValidationError("Special rate must be zero or positive", field="rate")
    return quantize_money(value)


__all__ = ["ScheduleBlockService"]
