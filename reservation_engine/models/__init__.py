"""SQLAlchemy models for the reservation engine."""
from reservation_engine.models.court import Court, CourtOperatingHours
from reservation_engine.models.reservation import (
    ACTIVE_STATUSES,
    CourtDayLedger,
    Reservation,
    ReservationStatus,
)
from reservation_engine.models.schedule_block import BlockType, ScheduleBlock

__all__ = [
    "ACTIVE_STATUSES",
    "BlockType",
    "Court",
    "CourtDayLedger",
    "CourtOperatingHours",
    "Reservation",
    "ReservationStatus",
    "ScheduleBlock",
]
