"""Pydantic schemas for court resources."""

from __future__ import annotations

from datetime import time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OperatingHoursResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_of_week: int = Field(..., ge=0, le=6)
    is_open: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None


class CourtResponse(BaseModel):
    """Court data, including its weekly opening hours."""

    model_config = ConfigDict(from_attributes=True)

    id_court: int
    id_facility: int
    name: str
    base_rate: Decimal
    peak_rate: Optional[Decimal] = None
    weekend_rate: Optional[Decimal] = None
    min_duration_minutes: int
    max_duration_minutes: int
    advance_booking_days: int
    cancellation_deadline_hours: int
    operating_hours: list[OperatingHoursResponse] = Field(default_factory=list)


class CourtSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id_court: int
    id_facility: int
    name: str
