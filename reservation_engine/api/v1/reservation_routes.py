"""API routes for creating reservations and driving their lifecycle."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from reservation_engine.dependencies import get_reservation_service
from reservation_engine.schemas.reservation import (
    CancellationRequest,
    CheckInRequest,
    CheckOutRequest,
    PaymentConfirmation,
    ReservationCreate,
    ReservationPageResponse,
    ReservationResponse,
    TimestampRequest,
)
from reservation_engine.services.reservation_service import ReservationService

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post("/", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreate,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    """Book a window. Responds 409 with every violation when it is not free."""

    return service.create_reservation(
        court_id=payload.id_court,
        user_id=payload.id_user,
        target_date=payload.reservation_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        notes=payload.notes,
    )


@router.get("/users/{user_id}", response_model=ReservationPageResponse)
def list_user_reservations(
    user_id: int,
    *,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None, description="Filter reservations by status"),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationPageResponse:
    """Reservations of a user, newest first."""

    page_result = service.list_user_reservations(
        user_id, page=page, limit=limit, status_filter=status
    )
    return ReservationPageResponse.model_validate(page_result)


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    return service.get_reservation(reservation_id)


@router.post("/{reservation_id}/confirm", response_model=ReservationResponse)
def confirm_payment(
    reservation_id: int,
    payload: PaymentConfirmation,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    """Mark a pending reservation as paid."""

    return service.confirm_payment(reservation_id, payload.payment_reference)


@router.post("/{reservation_id}/check-in", response_model=ReservationResponse)
def check_in(
    reservation_id: int,
    payload: Optional[CheckInRequest] = None,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    payload = payload or CheckInRequest()
    return service.check_in(
        reservation_id, now=payload.now, checked_in_by=payload.checked_in_by
    )


@router.post("/{reservation_id}/check-out", response_model=ReservationResponse)
def check_out(
    reservation_id: int,
    payload: Optional[CheckOutRequest] = None,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    payload = payload or CheckOutRequest()
    return service.check_out(
        reservation_id, now=payload.now, checked_out_by=payload.checked_out_by
    )


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: int,
    payload: Optional[CancellationRequest] = None,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    """Cancel a pending or confirmed reservation and compute its refund."""

    payload = payload or CancellationRequest()
    return service.cancel_reservation(
        reservation_id,
        now=payload.now,
        reason=payload.reason,
        cancelled_by=payload.cancelled_by,
    )


@router.post("/{reservation_id}/no-show", response_model=ReservationResponse)
def mark_no_show(
    reservation_id: int,
    payload: Optional[TimestampRequest] = None,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    payload = payload or TimestampRequest()
    return service.mark_no_show(reservation_id, now=payload.now)


@router.post("/{reservation_id}/refund-processed", response_model=ReservationResponse)
def mark_refund_processed(
    reservation_id: int,
    payload: Optional[TimestampRequest] = None,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    """Called back once the payment collaborator has executed the refund."""

    payload = payload or TimestampRequest()
    return service.mark_refund_processed(reservation_id, now=payload.now)


__all__ = ["router"]
