import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ["NOTIFICATION_SERVICE_URL"] = ""
os.environ["TAX_RATE"] = "0.16"
os.environ["SERVICE_FEE_ENABLED"] = "false"
os.environ["REFUND_POLICY"] = "standard"

from datetime import date, datetime, time
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reservation_engine import models  # noqa: F401
from reservation_engine.core.database import Base
from reservation_engine.repository.court_repository import create_court
from reservation_engine.services.events import LifecycleEventPublisher
from reservation_engine.services.pricing_engine import PricingConfig, PricingEngine
from reservation_engine.services.refund_policy import STANDARD_REFUND_POLICY
from reservation_engine.services.reservation_service import ReservationService

# Monday. Bookings default to the following Tuesday; 2026-03-14 is a Saturday.
NOW = datetime(2026, 3, 9, 9, 0)
BOOKING_DATE = date(2026, 3, 10)
SATURDAY = date(2026, 3, 14)


def seed_court(db, **overrides):
    court_data = {
        "id_facility": 1,
        "name": "Cancha 1",
        "base_rate": Decimal("350.00"),
        "peak_rate": Decimal("450.00"),
        "weekend_rate": None,
        "min_duration_minutes": 60,
        "max_duration_minutes": 180,
        "advance_booking_days": 14,
        "cancellation_deadline_hours": 24,
    }
    court_data.update(overrides)
    hours = [
        {"day_of_week": day, "is_open": True, "open_time": time(6, 0), "close_time": time(22, 0)}
        for day in range(7)
    ]
    return create_court(db, court_data, hours)


def make_engine(url="sqlite://", **connect_args):
    options = {"connect_args": {"check_same_thread": False, **connect_args}}
    if url == "sqlite://":
        options["poolclass"] = StaticPool
    engine = create_engine(url, **options)
    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def engine():
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def court(db):
    return seed_court(db)


@pytest.fixture
def pricing_engine():
    return PricingEngine(PricingConfig())


@pytest.fixture
def published():
    return []


@pytest.fixture
def publisher(published):
    publisher = LifecycleEventPublisher()
    publisher.subscribe(published.append)
    return publisher


@pytest.fixture
def reservation_service(db, clock, pricing_engine, publisher):
    return ReservationService(
        db,
        pricing_engine=pricing_engine,
        refund_policy=STANDARD_REFUND_POLICY,
        events=publisher,
        clock=clock,
    )


@pytest.fixture
def book(reservation_service, court):
    """Create a reservation on the seeded court."""

    def _book(start="18:00", end="19:30", *, target_date=BOOKING_DATE, user_id=7, confirm=False):
        reservation = reservation_service.create_reservation(
            court_id=court.id_court,
            user_id=user_id,
            target_date=target_date,
            start_time=start,
            end_time=end,
        )
        if confirm:
            reservation = reservation_service.confirm_payment(
                reservation.id_reservation, f"PAY-{reservation.id_reservation}"
            )
        return reservation

    return _book


@pytest.fixture
def file_engine(tmp_path):
    """SQLite on disk, so each session gets its own connection and locks."""

    engine = make_engine(f"sqlite:///{tmp_path / 'reservations.db'}", timeout=30)
    yield engine
    engine.dispose()
