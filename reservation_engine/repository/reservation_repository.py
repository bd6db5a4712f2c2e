from __future__ import annotations

from datetime import date
from typing import Callable, Dict, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, joinedload

from reservation_engine.core.database import unit_of_work
from reservation_engine.core.exceptions import ReservationEngineError
from reservation_engine.models.reservation import (
    ACTIVE_STATUSES,
    CourtDayLedger,
    Reservation,
)


def get_reservation(db: Session, reservation_id: int) -> Optional[Reservation]:
    return (
        db.query(Reservation)
        .options(joinedload(Reservation.court))
        .filter(Reservation.id_reservation == reservation_id)
        .first()
    )


def list_active_reservations(
    db: Session,
    *,
    court_id: int,
    target_date: date,
    statuses: Iterable[str] = ACTIVE_STATUSES,
) -> list[Reservation]:
    normalized = [status_value.lower() for status_value in statuses if status_value]

    query = (
        db.query(Reservation)
        .filter(Reservation.id_court == court_id)
        .filter(Reservation.reservation_date == target_date)
    )
    if normalized:
        query = query.filter(func.lower(Reservation.status).in_(normalized))

    return query.order_by(Reservation.start_time).all()


def list_reservations(
    db: Session,
    *,
    court_id: Optional[int] = None,
    user_id: Optional[int] = None,
    status_filter: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort_desc: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[Reservation]:
    query = _filtered_query(
        db,
        court_id=court_id,
        user_id=user_id,
        status_filter=status_filter,
        start_date=start_date,
        end_date=end_date,
    ).options(joinedload(Reservation.court))

    if sort_desc:
        query = query.order_by(
            Reservation.reservation_date.desc(),
            Reservation.start_time.desc(),
            Reservation.id_reservation.desc(),
        )
    else:
        query = query.order_by(Reservation.reservation_date, Reservation.start_time)

    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)

    return query.all()


def count_reservations(
    db: Session,
    *,
    court_id: Optional[int] = None,
    user_id: Optional[int] = None,
    status_filter: Optional[str] = None,
) -> int:
    return _filtered_query(
        db,
        court_id=court_id,
        user_id=user_id,
        status_filter=status_filter,
    ).count()


def _filtered_query(
    db: Session,
    *,
    court_id: Optional[int] = None,
    user_id: Optional[int] = None,
    status_filter: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    query = db.query(Reservation)

    if court_id is not None:
        query = query.filter(Reservation.id_court == court_id)
    if user_id is not None:
        query = query.filter(Reservation.id_user == user_id)
    if status_filter is not None:
        query = query.filter(func.lower(Reservation.status) == status_filter.strip().lower())
    if start_date is not None:
        query = query.filter(Reservation.reservation_date >= start_date)
    if end_date is not None:
        query = query.filter(Reservation.reservation_date <= end_date)

    return query


def add_reservation(db: Session, reservation_data: Dict[str, object]) -> Reservation:
    """Stage a reservation inside the caller's unit of work."""

    reservation = Reservation(**reservation_data)
    db.add(reservation)
    db.flush()
    return reservation


_LEDGER_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def lock_court_day(db: Session, *, court_id: int, target_date: date) -> CourtDayLedger:
    """Take the write lock for a court and date and return its ledger row.

    The row is created idempotently, so first writers of a day do not collide
    on its key. On PostgreSQL the ``FOR UPDATE`` row lock queues concurrent
    writers; on SQLite the insert itself opens the write transaction and takes
    the database write lock. Either way, reads made after this call see every
    booking committed before it.
    """

    dialect = db.get_bind().dialect.name
    insert = _LEDGER_INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Court-day locking is not supported on '{dialect}'")

    db.execute(
        insert(CourtDayLedger)
        .values(id_court=court_id, ledger_date=target_date, change_count=0, version=1)
        .on_conflict_do_nothing(index_elements=["id_court", "ledger_date"])
    )
    return (
        db.query(CourtDayLedger)
        .filter(CourtDayLedger.id_court == court_id)
        .filter(CourtDayLedger.ledger_date == target_date)
        .populate_existing()
        .with_for_update()
        .one()
    )


def touch_court_day(db: Session, ledger: CourtDayLedger) -> None:
    """Bump the ledger version; fails with ``StaleDataError`` if it moved."""

    ledger.change_count = (ledger.change_count or 0) + 1
    db.flush()


def save_reservation(
    db: Session,
    reservation: Reservation,
    *,
    on_stale: Optional[Callable[[], ReservationEngineError]] = None,
) -> Reservation:
    """Commit changes to a reservation loaded earlier in this session.

    The version column makes the update fail when another writer committed a
    change to the same reservation in between; ``on_stale`` builds the error
    raised in that case.
    """

    with unit_of_work(db, on_stale=on_stale):
        db.add(reservation)
    db.refresh(reservation)
    return reservation


__all__ = [
    "add_reservation",
    "count_reservations",
    "get_reservation",
    "list_active_reservations",
    "list_reservations",
    "lock_court_day",
    "save_reservation",
    "touch_court_day",
]
