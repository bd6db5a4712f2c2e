"""API routes for maintenance blocks and special-rate windows."""

from fastapi import APIRouter, Depends, status

from reservation_engine.dependencies import get_schedule_block_service
from reservation_engine.schemas.schedule_block import (
    ScheduleBlockCreate,
    ScheduleBlockResponse,
    SpecialRateCreate,
)
from reservation_engine.services.schedule_block_service import ScheduleBlockService

router = APIRouter(tags=["schedule-blocks"])


@router.post("/blocks", response_model=ScheduleBlockResponse, status_code=status.HTTP_201_CREATED)
def create_block(
    payload: ScheduleBlockCreate,
    service: ScheduleBlockService = Depends(get_schedule_block_service),
) -> ScheduleBlockResponse:
    """Block a court window. Responds 409 if it covers an active reservation."""

    return service.create_block(
        court_id=payload.id_court,
        target_date=payload.block_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        block_type=payload.block_type.value,
        reason=payload.reason,
    )


@router.post(
    "/special-rates",
    response_model=ScheduleBlockResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_special_rate(
    payload: SpecialRateCreate,
    service: ScheduleBlockService = Depends(get_schedule_block_service),
) -> ScheduleBlockResponse:
    """Override the hourly rate of a court window."""

    return service.create_special_rate(
        court_id=payload.id_court,
        target_date=payload.block_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        rate=payload.rate,
        reason=payload.reason,
    )


@router.delete("/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_block(
    block_id: int,
    service: ScheduleBlockService = Depends(get_schedule_block_service),
) -> None:
    service.remove_block(block_id)
