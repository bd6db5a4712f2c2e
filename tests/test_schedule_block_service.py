from decimal import Decimal

import pytest

from conftest import BOOKING_DATE

from reservation_engine.core.exceptions import ConflictError, NotFoundError, ValidationError
from reservation_engine.services.schedule_block_service import ScheduleBlockService


@pytest.fixture
def blocks(db, clock):
    return ScheduleBlockService(db, clock=clock)


def create_block(blocks, court, start, end, **kwargs):
    return blocks.create_block(
        court_id=court.id_court,
        target_date=BOOKING_DATE,
        start_time=start,
        end_time=end,
        **kwargs,
    )


def test_create_block(blocks, court):
    block = create_block(blocks, court, "08:00", "10:00", block_type="weather", reason="Flooded")

    assert block.is_blocked is True
    assert block.block_type == "weather"
    assert block.reason == "Flooded"
    assert block.special_rate is None
    assert [item.id_block for item in blocks.list_blocks(court.id_court, BOOKING_DATE)] == [
        block.id_block
    ]


def test_block_over_a_confirmed_reservation_is_rejected(blocks, court, book):
    existing = book("18:00", "19:30", confirm=True)

    with pytest.raises(ConflictError) as excinfo:
        create_block(blocks, court, "18:30", "19:00", reason="Net repair")

    assert excinfo.value.kinds == ["reservation"]
    assert excinfo.value.violations[0].reservation_id == existing.id_reservation
    assert blocks.list_blocks(court.id_court, BOOKING_DATE) == []


def test_block_next_to_a_reservation_is_allowed(blocks, court, book):
    book("18:00", "19:30")
    block = create_block(blocks, court, "19:30", "21:00")
    assert block.block_type == "maintenance"


def test_block_over_a_cancelled_reservation_is_allowed(blocks, court, book, reservation_service):
    existing = book("18:00", "19:30")
    reservation_service.cancel_reservation(existing.id_reservation)

    assert create_block(blocks, court, "18:00", "19:30").is_blocked


def test_blocks_may_overlap_each_other(blocks, court):
    create_block(blocks, court, "08:00", "10:00")
    create_block(blocks, court, "09:00", "11:00", block_type="staff_unavailable")

    assert len(blocks.list_blocks(court.id_court, BOOKING_DATE)) == 2


def test_invalid_block_requests(blocks, court):
    with pytest.raises(ValidationError) as excinfo:
        create_block(blocks, court, "08:00", "10:00", block_type="party")
    assert excinfo.value.field == "block_type"
    with pytest.raises(ValidationError):
        create_block(blocks, court, "10:00", "08:00")
    with pytest.raises(NotFoundError):
        blocks.create_block(
            court_id=999, target_date=BOOKING_DATE, start_time="08:00", end_time="09:00"
        )


def test_remove_block(blocks, court):
    block = create_block(blocks, court, "08:00", "10:00")

    blocks.remove_block(block.id_block)

    assert blocks.list_blocks(court.id_court, BOOKING_DATE) == []
    with pytest.raises(NotFoundError):
        blocks.remove_block(block.id_block)


def test_special_rates(blocks, court):
    special = blocks.create_special_rate(
        court_id=court.id_court,
        target_date=BOOKING_DATE,
        start_time="12:00",
        end_time="14:00",
        rate=Decimal("199.999"),
        reason="Lunch promo",
    )
    blocked = create_block(blocks, court, "08:00", "09:00")

    assert special.is_blocked is False
    assert special.special_rate == Decimal("200.00")
    assert blocks.list_blocks(court.id_court, BOOKING_DATE, blocked_only=True) == [blocked]
    assert len(blocks.list_blocks(court.id_court, BOOKING_DATE)) == 2


@pytest.mark.parametrize("rate", ["-1", "abc", "NaN"])
def test_special_rate_must_be_a_non_negative_number(blocks, court, rate):
    with pytest.raises(ValidationError):
        blocks.create_special_rate(
            court_id=court.id_court,
            target_date=BOOKING_DATE,
            start_time="12:00",
            end_time="14:00",
            rate=rate,
        )


def test_special_rate_prices_new_reservations(blocks, court, book):
    blocks.create_special_rate(
        court_id=court.id_court,
        target_date=BOOKING_DATE,
        start_time="18:00",
        end_time="20:00",
        rate="100",
    )

    reservation = book("18:00", "19:00")

    assert reservation.base_rate == Decimal("100.00")
    assert reservation.peak_multiplier == Decimal("1.0000")
    assert reservation.total_amount == Decimal("116.00")
