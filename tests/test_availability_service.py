from datetime import date, timedelta
from decimal import Decimal

import pytest

from conftest import BOOKING_DATE, NOW, SATURDAY

from reservation_engine.core.exceptions import NotFoundError, ValidationError
from reservation_engine.services.availability_service import AvailabilityService
from reservation_engine.services.conflict_detector import ViolationKind
from reservation_engine.services.schedule_block_service import ScheduleBlockService


@pytest.fixture
def availability(db, clock, pricing_engine):
    return AvailabilityService(db, pricing_engine=pricing_engine, clock=clock)


def slot_map(slots):
    return {slot.start_time: slot for slot in slots}


def test_open_day_lists_every_slot_as_available(availability, court):
    slots = availability.get_available_slots(court.id_court, BOOKING_DATE)

    assert len(slots) == 32
    assert all(slot.available for slot in slots)
    assert slots[0].start_time == "06:00"
    assert slots[-1].end_time == "22:00"
    by_start = slot_map(slots)
    # Half an hour in the morning peak: 225.00 + 16% tax.
    assert by_start["06:00"].price == Decimal("261.00")
    assert by_start["10:00"].price == Decimal("203.00")


def test_reserved_and_blocked_slots_explain_themselves(availability, db, clock, court, book):
    existing = book("18:00", "19:30")
    ScheduleBlockService(db, clock=clock).create_block(
        court_id=court.id_court,
        target_date=BOOKING_DATE,
        start_time="08:00",
        end_time="09:00",
        block_type="private_event",
        reason="School tournament",
    )

    by_start = slot_map(availability.get_available_slots(court.id_court, BOOKING_DATE))

    for start in ("18:00", "18:30", "19:00"):
        slot = by_start[start]
        assert not slot.available
        assert slot.price is None
        assert slot.violation_kind == "reservation"
        assert slot.reservation_id == existing.id_reservation
    assert by_start["19:30"].available
    assert by_start["17:30"].available

    blocked = by_start["08:00"]
    assert not blocked.available
    assert blocked.violation_kind == "maintenance"
    assert blocked.block_type == "private_event"
    assert "School tournament" in blocked.blocked_reason


def test_closed_day_has_no_slots(availability, db, court):
    court.operating_hours[1].is_open = False
    db.commit()

    assert availability.get_available_slots(court.id_court, BOOKING_DATE) == []


def test_past_and_far_dates_are_unavailable(availability, court):
    yesterday = NOW.date() - timedelta(days=1)
    slots = availability.get_available_slots(court.id_court, yesterday)

    assert len(slots) == 32
    assert not any(slot.available for slot in slots)
    assert {slot.violation_kind for slot in slots} == {"advance_booking"}


def test_special_rate_is_reflected_in_slot_prices(availability, db, clock, court):
    ScheduleBlockService(db, clock=clock).create_special_rate(
        court_id=court.id_court,
        target_date=SATURDAY,
        start_time="10:00",
        end_time="11:00",
        rate="100",
    )

    by_start = slot_map(availability.get_available_slots(court.id_court, SATURDAY))

    assert by_start["10:00"].price == Decimal("58.00")
    assert by_start["10:30"].price == Decimal("58.00")
    # Saturday without a weekend rate falls back to the peak rate.
    assert by_start["11:00"].price == Decimal("261.00")


def test_check_availability_reports_all_violations(availability, court, book):
    existing = book("18:00", "19:30")

    verdict = availability.check_availability(court.id_court, BOOKING_DATE, "18:30", "19:00")

    assert not verdict.available
    assert verdict.price is None
    assert [violation.kind for violation in verdict.violations] == [
        ViolationKind.DURATION,
        ViolationKind.RESERVATION,
    ]
    assert verdict.violations[1].reservation_id == existing.id_reservation


def test_check_availability_prices_a_free_window(availability, court):
    verdict = availability.check_availability(court.id_court, BOOKING_DATE, "18:00", "19:30")

    assert verdict.available
    assert verdict.violations == []
    assert verdict.price.subtotal == Decimal("675.00")
    assert verdict.price.tax_amount == Decimal("108.00")
    assert verdict.price.total_amount == Decimal("783.00")


def test_unknown_court(availability):
    with pytest.raises(NotFoundError):
        availability.get_available_slots(999, BOOKING_DATE)


def test_court_calendar(availability, court, book):
    book("18:00", "19:30")

    calendar = availability.get_court_calendar(
        court.id_court, BOOKING_DATE, BOOKING_DATE + timedelta(days=2)
    )

    assert list(calendar) == [BOOKING_DATE + timedelta(days=offset) for offset in range(3)]
    assert sum(not slot.available for slot in calendar[BOOKING_DATE]) == 3
    assert all(slot.available for slot in calendar[BOOKING_DATE + timedelta(days=1)])


@pytest.mark.parametrize(
    "start, end",
    [
        (date(2026, 3, 12), date(2026, 3, 10)),
        (date(2026, 3, 10), date(2026, 4, 30)),
    ],
)
def test_court_calendar_range_is_validated(availability, court, start, end):
    with pytest.raises(ValidationError):
        availability.get_court_calendar(court.id_court, start, end)
