"""Pydantic schemas for reservation resources."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from reservation_engine.schemas.court import CourtSummary


class ReservationCreate(BaseModel):
    """Schema used when requesting a new reservation."""

    id_court: int = Field(..., gt=0)
    id_user: int = Field(..., gt=0)
    reservation_date: date
    start_time: time
    end_time: time
    notes: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def _validate_window(self) -> "ReservationCreate":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be earlier than end_time")
        return self


class PaymentConfirmation(BaseModel):
    payment_reference: str = Field(..., min_length=1, max_length=100)


class CheckInRequest(BaseModel):
    now: Optional[datetime] = None
    checked_in_by: Optional[int] = Field(None, gt=0)


class CheckOutRequest(BaseModel):
    now: Optional[datetime] = None
    checked_out_by: Optional[int] = Field(None, gt=0)


class CancellationRequest(BaseModel):
    now: Optional[datetime] = None
    reason: Optional[str] = Field(None, max_length=500)
    cancelled_by: Optional[int] = Field(None, gt=0)


class TimestampRequest(BaseModel):
    """Body for transitions that only depend on the current time."""

    now: Optional[datetime] = None


class ReservationResponse(BaseModel):
    """Reservation data returned to API clients."""

    model_config = ConfigDict(from_attributes=True)

    id_reservation: int
    id_court: int
    id_user: int
    reservation_date: date
    start_time: time
    end_time: time
    duration_minutes: int

    base_rate: Decimal
    peak_multiplier: Decimal
    weekend_multiplier: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    service_fee: Decimal
    total_amount: Decimal

    status: str
    notes: Optional[str] = None
    payment_reference: Optional[str] = None

    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[int] = None
    late_arrival: Optional[bool] = None
    minutes_late: Optional[int] = None

    checked_out_at: Optional[datetime] = None
    checked_out_by: Optional[int] = None
    early_departure: Optional[bool] = None
    minutes_early: Optional[int] = None

    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    refund_processed: bool = False
    refund_processed_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    court: Optional[CourtSummary] = None


class ReservationPageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    items: list[ReservationResponse] = Field(default_factory=list)
    total: int
    pages: int
    current_page: int
