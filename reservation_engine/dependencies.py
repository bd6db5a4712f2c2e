"""Shared dependencies for the reservation engine API."""

from datetime import datetime
from functools import lru_cache
from typing import Callable, Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from reservation_engine.core.config import settings
from reservation_engine.core.database import SessionLocal
from reservation_engine.services.availability_service import AvailabilityService
from reservation_engine.services.events import LifecycleEventPublisher
from reservation_engine.services.notification_client import NotificationClient
from reservation_engine.services.pricing_engine import PricingConfig, PricingEngine
from reservation_engine.services.refund_policy import RefundPolicy, policy_from_name
from reservation_engine.services.reservation_service import ReservationService
from reservation_engine.services.schedule_block_service import ScheduleBlockService


def get_db() -> Generator:
    """Provide a transactional scope around a series of operations."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock() -> Callable[[], datetime]:
    return datetime.now


@lru_cache()
def get_pricing_engine() -> PricingEngine:
    return PricingEngine(PricingConfig.from_settings())


@lru_cache()
def get_refund_policy() -> RefundPolicy:
    return policy_from_name(settings.REFUND_POLICY)


@lru_cache()
def get_event_publisher() -> LifecycleEventPublisher:
    publisher = LifecycleEventPublisher()
    client = NotificationClient()
    if client.is_configured:
        publisher.subscribe(client)
    return publisher


def get_availability_service(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AvailabilityService:
    return AvailabilityService(db, pricing_engine=get_pricing_engine(), clock=clock)


def get_reservation_service(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ReservationService:
    return ReservationService(
        db,
        pricing_engine=get_pricing_engine(),
        refund_policy=get_refund_policy(),
        events=get_event_publisher(),
        clock=clock,
    )


def get_schedule_block_service(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ScheduleBlockService:
    return ScheduleBlockService(db, clock=clock)
