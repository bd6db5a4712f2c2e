import random
import threading
from datetime import time

import pytest

from conftest import BOOKING_DATE, NOW, make_session_factory, seed_court

from reservation_engine.core.exceptions import ConflictError, StorageError
from reservation_engine.models.reservation import ACTIVE_STATUSES, Reservation
from reservation_engine.repository import reservation_repository
from reservation_engine.services.pricing_engine import PricingEngine
from reservation_engine.services.reservation_service import ReservationService
from reservation_engine.services.time_model import format_minutes, overlaps


def _clock():
    return NOW


def _service(session):
    return ReservationService(session, pricing_engine=PricingEngine(), clock=_clock)


def _active_windows(session, court_id):
    rows = (
        session.query(Reservation)
        .filter(Reservation.id_court == court_id)
        .filter(Reservation.reservation_date == BOOKING_DATE)
        .filter(Reservation.status.in_(ACTIVE_STATUSES))
        .all()
    )
    return [(row.start_time, row.end_time) for row in rows]


def _assert_no_overlaps(windows):
    for index, (start_a, end_a) in enumerate(windows):
        for start_b, end_b in windows[index + 1:]:
            assert not overlaps(start_a, end_a, start_b, end_b), (start_a, end_a, start_b, end_b)


def _seeded(file_engine):
    Session = make_session_factory(file_engine)
    setup = Session()
    court_id = seed_court(setup).id_court
    setup.close()
    return Session, court_id


def _commit_before_lock(monkeypatch, session, start, end):
    """Make ``session`` commit a booking just before the next court-day lock."""

    original_lock = reservation_repository.lock_court_day
    committed = []

    def lock_after_competitor(db, *, court_id, target_date):
        if not committed:
            committed.append(None)
            committed[0] = _service(session).create_reservation(
                court_id=court_id,
                user_id=2,
                target_date=target_date,
                start_time=start,
                end_time=end,
            )
        return original_lock(db, court_id=court_id, target_date=target_date)

    monkeypatch.setattr(reservation_repository, "lock_court_day", lock_after_competitor)
    return committed


def _race(Session, court_id, windows):
    """Book every window from its own thread and session at the same moment."""

    outcomes = {}
    barrier = threading.Barrier(len(windows))

    def attempt(index, start, end):
        session = Session()
        try:
            barrier.wait()
            _service(session).create_reservation(
                court_id=court_id,
                user_id=index + 1,
                target_date=BOOKING_DATE,
                start_time=start,
                end_time=end,
            )
            outcomes[index] = "booked"
        except ConflictError:
            outcomes[index] = "conflict"
        except StorageError:
            outcomes[index] = "storage"
        except Exception as exc:
            outcomes[index] = f"error: {exc!r}"
        finally:
            session.close()

    threads = [
        threading.Thread(target=attempt, args=(index, start, end))
        for index, (start, end) in enumerate(windows)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=90)

    return [outcomes.get(index) for index in range(len(windows))]


def test_randomized_sequential_bookings_never_overlap(db, court, reservation_service):
    rng = random.Random(20260309)
    accepted = 0

    for _ in range(200):
        start = rng.randrange(6 * 60, 21 * 60, 30)
        length = rng.choice([60, 90, 120, 150, 180])
        end = min(start + length, 22 * 60)
        if end - start < 60:
            continue
        try:
            reservation_service.create_reservation(
                court_id=court.id_court,
                user_id=rng.randrange(1, 20),
                target_date=BOOKING_DATE,
                start_time=format_minutes(start),
                end_time=format_minutes(end),
            )
            accepted += 1
        except ConflictError:
            pass

    windows = _active_windows(db, court.id_court)
    assert accepted == len(windows) > 0
    _assert_no_overlaps(windows)


def test_booking_sees_a_reservation_committed_just_before_it(file_engine, monkeypatch):
    Session, court_id = _seeded(file_engine)
    session_a = Session()
    session_b = Session()
    committed = _commit_before_lock(monkeypatch, session_b, "18:00", "19:30")

    with pytest.raises(ConflictError) as excinfo:
        _service(session_a).create_reservation(
            court_id=court_id, user_id=3, target_date=BOOKING_DATE, start_time="18:30", end_time="20:00"
        )

    violations = excinfo.value.to_dict()["violations"]
    assert [violation["kind"] for violation in violations] == ["reservation"]
    assert violations[0]["reservation_id"] == committed[0].id_reservation

    check = Session()
    assert _active_windows(check, court_id) == [(time(18, 0), time(19, 30))]
    for session in (session_a, session_b, check):
        session.close()


def test_disjoint_booking_succeeds_after_a_concurrent_commit(file_engine, monkeypatch):
    Session, court_id = _seeded(file_engine)
    session_a = Session()
    session_b = Session()
    committed = _commit_before_lock(monkeypatch, session_b, "10:00", "11:00")

    reservation = _service(session_a).create_reservation(
        court_id=court_id, user_id=3, target_date=BOOKING_DATE, start_time="18:00", end_time="19:00"
    )

    assert reservation.status == "pending"
    assert committed[0].status == "pending"
    check = Session()
    assert sorted(_active_windows(check, court_id)) == [
        (time(10, 0), time(11, 0)),
        (time(18, 0), time(19, 0)),
    ]
    for session in (session_a, session_b, check):
        session.close()


def test_concurrent_disjoint_bookings_all_succeed(file_engine):
    Session, court_id = _seeded(file_engine)
    windows = [
        ("06:00", "07:00"),
        ("08:00", "09:00"),
        ("10:00", "11:00"),
        ("12:00", "13:00"),
        ("14:00", "15:00"),
        ("16:00", "17:00"),
        ("18:00", "19:30"),
        ("20:00", "21:30"),
    ]

    outcomes = _race(Session, court_id, windows)

    assert outcomes == ["booked"] * len(windows)
    check = Session()
    assert len(_active_windows(check, court_id)) == len(windows)
    check.close()


def test_concurrent_overlapping_bookings_have_one_winner_per_group(file_engine):
    Session, court_id = _seeded(file_engine)
    # Windows overlap pairwise inside a group and never across groups.
    groups = [
        [("06:00", "07:00"), ("06:30", "07:30"), ("06:00", "07:30")],
        [("09:00", "10:30"), ("09:30", "11:00"), ("10:00", "11:00")],
        [("18:00", "19:30"), ("18:00", "19:30"), ("18:30", "19:30"), ("17:30", "19:00")],
    ]
    windows = [window for group in groups for window in group]

    outcomes = _race(Session, court_id, windows)

    assert set(outcomes) <= {"booked", "conflict"}, outcomes
    position = 0
    for group in groups:
        group_outcomes = outcomes[position:position + len(group)]
        assert group_outcomes.count("booked") == 1, (group, group_outcomes)
        position += len(group)

    check = Session()
    booked = _active_windows(check, court_id)
    check.close()
    assert len(booked) == len(groups)
    _assert_no_overlaps(booked)
