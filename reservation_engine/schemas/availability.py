"""Schemas returned by the availability endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ViolationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: str
    message: str
    reservation_id: Optional[int] = None
    block_id: Optional[int] = None
    block_type: Optional[str] = None
    block_reason: Optional[str] = None


class PriceBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    base_rate: Decimal
    duration_minutes: int
    duration_hours: Decimal
    peak_multiplier: Decimal
    weekend_multiplier: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    service_fee: Decimal
    total_amount: Decimal
    special_rate_applied: bool = False


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start_time: str
    end_time: str
    available: bool
    price: Optional[Decimal] = None
    blocked_reason: Optional[str] = None
    violation_kind: Optional[str] = None
    reservation_id: Optional[int] = None
    block_type: Optional[str] = None


class CourtSlotsResponse(BaseModel):
    court_id: int
    target_date: date
    slots: list[SlotResponse] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    court_id: int
    target_date: date
    start_time: str
    end_time: str
    available: bool
    price: Optional[PriceBreakdownResponse] = None
    violations: list[ViolationResponse] = Field(default_factory=list)


class CourtCalendarResponse(BaseModel):
    court_id: int
    start_date: date
    end_date: date
    days: list[CourtSlotsResponse] = Field(default_factory=list)
