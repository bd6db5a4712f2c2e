"""Domain services of the reservation engine."""

from reservation_engine.services.availability_service import (
    AvailabilityService,
    AvailabilityVerdict,
    SlotAvailability,
)
from reservation_engine.services.conflict_detector import ConflictDetector, Violation, ViolationKind
from reservation_engine.services.events import LifecycleEventPublisher, ReservationEvent
from reservation_engine.services.notification_client import NotificationClient
from reservation_engine.services.pricing_engine import PriceBreakdown, PricingConfig, PricingEngine
from reservation_engine.services.refund_policy import RefundPolicy, policy_from_name
from reservation_engine.services.reservation_service import ReservationPage, ReservationService
from reservation_engine.services.schedule_block_service import ScheduleBlockService

__all__ = [
    "AvailabilityService",
    "AvailabilityVerdict",
    "ConflictDetector",
    "LifecycleEventPublisher",
    "NotificationClient",
    "PriceBreakdown",
    "PricingConfig",
    "PricingEngine",
    "RefundPolicy",
    "ReservationEvent",
    "ReservationPage",
    "ReservationService",
    "ScheduleBlockService",
    "SlotAvailability",
    "Violation",
    "ViolationKind",
    "policy_from_name",
]
