"""Read-only court endpoints: details, slots, availability and calendars."""

from datetime import date, time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from reservation_engine.dependencies import (
    get_availability_service,
    get_reservation_service,
    get_schedule_block_service,
)
from reservation_engine.schemas.availability import (
    AvailabilityResponse,
    CourtCalendarResponse,
    CourtSlotsResponse,
    PriceBreakdownResponse,
    SlotResponse,
    ViolationResponse,
)
from reservation_engine.schemas.court import CourtResponse
from reservation_engine.schemas.reservation import ReservationResponse
from reservation_engine.schemas.schedule_block import ScheduleBlockResponse
from reservation_engine.services.availability_service import AvailabilityService, SlotAvailability
from reservation_engine.services.reservation_service import ReservationService
from reservation_engine.services.schedule_block_service import ScheduleBlockService

router = APIRouter(prefix="/courts", tags=["courts"])


def _slot_responses(slots: List[SlotAvailability]) -> List[SlotResponse]:
    return [SlotResponse.model_validate(slot) for slot in slots]


@router.get("/{court_id}", response_model=CourtResponse)
def get_court(
    court_id: int,
    service: AvailabilityService = Depends(get_availability_service),
) -> CourtResponse:
    """Retrieve a court with its weekly operating hours."""

    return service.get_court(court_id)


@router.get("/{court_id}/slots", response_model=CourtSlotsResponse)
def get_available_slots(
    court_id: int,
    target_date: date = Query(..., alias="date", description="Date to list slots for"),
    service: AvailabilityService = Depends(get_availability_service),
) -> CourtSlotsResponse:
    """List every 30-minute slot of the day with its availability and price."""

    slots = service.get_available_slots(court_id, target_date)
    return CourtSlotsResponse(
        court_id=court_id,
        target_date=target_date,
        slots=_slot_responses(slots),
    )


@router.get("/{court_id}/availability", response_model=AvailabilityResponse)
def check_availability(
    court_id: int,
    target_date: date = Query(..., alias="date"),
    start_time: time = Query(..., description="Window start, HH:MM"),
    end_time: time = Query(..., description="Window end, HH:MM"),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Check an arbitrary window and price it when it is free."""

    verdict = service.check_availability(court_id, target_date, start_time, end_time)
    return AvailabilityResponse(
        court_id=court_id,
        target_date=target_date,
        start_time=start_time.strftime("%H:%M"),
        end_time=end_time.strftime("%H:%M"),
        available=verdict.available,
        price=PriceBreakdownResponse(**verdict.price.as_dict()) if verdict.price else None,
        violations=[ViolationResponse(**violation.as_dict()) for violation in verdict.violations],
    )


@router.get("/{court_id}/calendar", response_model=CourtCalendarResponse)
def get_court_calendar(
    court_id: int,
    start_date: date = Query(...),
    end_date: date = Query(...),
    service: AvailabilityService = Depends(get_availability_service),
) -> CourtCalendarResponse:
    """Slots for every date of an inclusive range."""

    calendar = service.get_court_calendar(court_id, start_date, end_date)
    return CourtCalendarResponse(
        court_id=court_id,
        start_date=start_date,
        end_date=end_date,
        days=[
            CourtSlotsResponse(
                court_id=court_id,
                target_date=day,
                slots=_slot_responses(slots),
            )
            for day, slots in calendar.items()
        ],
    )


@router.get("/{court_id}/reservations", response_model=List[ReservationResponse])
def list_court_reservations(
    court_id: int,
    target_date: Optional[date] = Query(None, alias="date", description="Restrict to one date"),
    status: Optional[str] = Query(None, description="Filter reservations by status"),
    service: ReservationService = Depends(get_reservation_service),
) -> List[ReservationResponse]:
    return service.list_court_reservations(
        court_id, target_date=target_date, status_filter=status
    )


@router.get("/{court_id}/blocks", response_model=List[ScheduleBlockResponse])
def list_blocks(
    court_id: int,
    target_date: date = Query(..., alias="date"),
    blocked_only: bool = Query(False, description="Hide special-rate windows"),
    service: ScheduleBlockService = Depends(get_schedule_block_service),
) -> List[ScheduleBlockResponse]:
    return service.list_blocks(court_id, target_date, blocked_only=blocked_only)
