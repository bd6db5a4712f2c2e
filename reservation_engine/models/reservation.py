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
    Integer,
    Numeric,
    String,
    Text,
    Time,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reservation_engine.core.database import Base, BigIntId
from reservation_engine.models.court import Court


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


ACTIVE_STATUSES = (ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value)

_ACTIVE_WHERE = text("status IN ('pending', 'confirmed')")


class Reservation(Base):

    __tablename__ = "reservation"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_reservation_window"),
        CheckConstraint("duration_minutes > 0", name="ck_reservation_duration"),
        Index("ix_reservation_court_date", "id_court", "reservation_date"),
        # Backstop for identical windows booked concurrently.
        Index(
            "uq_reservation_active_window",
            "id_court",
            "reservation_date",
            "start_time",
            "end_time",
            unique=True,
            sqlite_where=_ACTIVE_WHERE,
            postgresql_where=_ACTIVE_WHERE,
        ),
    )

    id_reservation: Mapped[int] = mapped_column(BigIntId, primary_key=True, index=True)
    id_court: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("court.id_court"), nullable=False
    )
    id_user: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    base_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    peak_multiplier: Mapped[Decimal] = mapped_column(Numeric(8, 4), nullable=False)
    weekend_multiplier: Mapped[Decimal] = mapped_column(Numeric(8, 4), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    service_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReservationStatus.PENDING.value
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    checked_in_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    checked_in_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    late_arrival: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    minutes_late: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    checked_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    checked_out_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    early_departure: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    minutes_early: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refund_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    refund_processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    refund_processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Bumped on every update; a transition based on a stale read fails.
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    court: Mapped[Court] = relationship(lazy="joined")

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Reservation(id_reservation={self.id_reservation}, status={self.status}, "
            f"date={self.reservation_date}, start_time={self.start_time}, "
            f"end_time={self.end_time})>"
        )


class CourtDayLedger(Base):
    """Per court and date write ledger.

    Every write that must not overlap a concurrent one (reservation creation,
    block creation) locks this row and bumps ``version``; a writer holding a
    stale version fails at flush time.
    """

    __tablename__ = "court_day_ledger"

    id_court: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("court.id_court", ondelete="CASCADE"), primary_key=True
    )
    ledger_date: Mapped[date] = mapped_column(Date, primary_key=True)
    change_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            f"<CourtDayLedger(id_court={self.id_court}, date={self.ledger_date}, "
            f"version={self.version})>"
        )


__all__ = [
    "ACTIVE_STATUSES",
    "CourtDayLedger",
    "Reservation",
    "ReservationStatus",
]
