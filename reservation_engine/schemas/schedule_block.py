"""Pydantic schemas for schedule blocks and special rates."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from reservation_engine.models.schedule_block import BlockType


class _WindowBase(BaseModel):
    id_court: int = Field(..., gt=0)
    block_date: date
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def _validate_window(self) -> "_WindowBase":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be earlier than end_time")
        return self


class ScheduleBlockCreate(_WindowBase):
    block_type: BlockType = BlockType.MAINTENANCE
    reason: Optional[str] = Field(None, max_length=500)


class SpecialRateCreate(_WindowBase):
    rate: Decimal = Field(..., ge=0)
    reason: Optional[str] = Field(None, max_length=500)


class ScheduleBlockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id_block: int
    id_court: int
    block_date: date
    start_time: time
    end_time: time
    is_blocked: bool
    block_type: Optional[str] = None
    reason: Optional[str] = None
    special_rate: Optional[Decimal] = None
    created_at: Optional[datetime] = None
