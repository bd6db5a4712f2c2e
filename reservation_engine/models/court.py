from __future__ import annotations

from datetime import time
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reservation_engine.core.database import Base, BigIntId


class Court(Base):
    """A bookable court. Owned by facility management; read-only here."""

    __tablename__ = "court"
    __table_args__ = (
        CheckConstraint(
            "min_duration_minutes <= max_duration_minutes",
            name="ck_court_duration_bounds",
        ),
        CheckConstraint("base_rate >= 0", name="ck_court_base_rate"),
        CheckConstraint("peak_rate IS NULL OR peak_rate >= 0", name="ck_court_peak_rate"),
        CheckConstraint(
            "weekend_rate IS NULL OR weekend_rate >= 0", name="ck_court_weekend_rate"
        ),
    )

    id_court: Mapped[int] = mapped_column(BigIntId, primary_key=True, index=True)
    id_facility: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    base_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    peak_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    weekend_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    min_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    max_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=180)
    advance_booking_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    cancellation_deadline_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)

    operating_hours: Mapped[List["CourtOperatingHours"]] = relationship(
        back_populates="court",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CourtOperatingHours.day_of_week",
    )

    def hours_for(self, day_of_week: int) -> Optional["CourtOperatingHours"]:
        for hours in self.operating_hours:
            if hours.day_of_week == day_of_week:
                return hours
        return None

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Court(id_court={self.id_court}, name={self.name})>"


class CourtOperatingHours(Base):
    """Opening hours of a court for one weekday (0 = Monday ... 6 = Sunday)."""

    __tablename__ = "court_operating_hours"
    __table_args__ = (
        UniqueConstraint("id_court", "day_of_week", name="uq_court_operating_day"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_operating_day_range"),
    )

    id_operating_hours: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    id_court: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("court.id_court", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    open_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    close_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    court: Mapped[Court] = relationship(back_populates="operating_hours")

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            f"<CourtOperatingHours(id_court={self.id_court}, day={self.day_of_week}, "
            f"open={self.open_time}, close={self.close_time}, is_open={self.is_open})>"
        )


__all__ = ["Court", "CourtOperatingHours"]
