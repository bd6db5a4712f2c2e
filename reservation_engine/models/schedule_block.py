from __future__ import annotations

import enum
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Time,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reservation_engine.core.database import Base, BigIntId
from reservation_engine.models.court import Court


class BlockType(str, enum.Enum):
    MAINTENANCE = "maintenance"
    PRIVATE_EVENT = "private_event"
    WEATHER = "weather"
    STAFF_UNAVAILABLE = "staff_unavailable"
    OTHER = "other"


class ScheduleBlock(Base):
    """Unavailability window, or special-rate window, for a court on one date."""

    __tablename__ = "schedule_block"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_schedule_block_window"),
        CheckConstraint(
            "special_rate IS NULL OR special_rate >= 0", name="ck_schedule_block_rate"
        ),
        Index("ix_schedule_block_court_date", "id_court", "block_date"),
    )

    id_block: Mapped[int] = mapped_column(BigIntId, primary_key=True, index=True)
    id_court: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("court.id_court", ondelete="CASCADE"), nullable=False
    )
    block_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    is_blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    block_type: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    special_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    court: Mapped[Court] = relationship(lazy="joined")

    @property
    def label(self) -> str:
        return self.reason or self.block_type or "blocked"

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            "<ScheduleBlock(id_block={id}, court={court}, date={day}, {start}-{end}, "
            "is_blocked={blocked})>"
        ).format(
            id=self.id_block,
            court=self.id_court,
            day=self.block_date,
            start=self.start_time,
            end=self.end_time,
            blocked=self.is_blocked,
        )


__all__ = ["BlockType", "ScheduleBlock"]
