from datetime import date, datetime, time, timedelta, timezone

import pytest

from reservation_engine.core.exceptions import ValidationError
from reservation_engine.services.time_model import (
    as_naive,
    combine,
    duration_minutes,
    ensure_window,
    format_minutes,
    overlaps,
    parse_time,
    to_minutes,
)


def test_parse_time_accepts_strings_and_time_objects():
    assert parse_time("06:30") == time(6, 30)
    assert parse_time(" 23:59 ") == time(23, 59)
    assert parse_time(time(18, 0, 45)) == time(18, 0)


@pytest.mark.parametrize("raw", ["6:30", "24:00", "12:60", "noon", "", None, 630])
def test_parse_time_rejects_malformed_values(raw):
    with pytest.raises(ValidationError):
        parse_time(raw)


def test_minutes_conversion():
    assert to_minutes("00:00") == 0
    assert to_minutes("18:30") == 1110
    assert format_minutes(1110) == "18:30"


@pytest.mark.parametrize("minutes", [-1, 1440])
def test_format_minutes_rejects_offsets_outside_the_day(minutes):
    with pytest.raises(ValidationError):
        format_minutes(minutes)


def test_overlap_is_half_open():
    assert overlaps("18:00", "19:30", "18:30", "19:00")
    assert overlaps("18:30", "19:00", "18:00", "19:30")
    assert overlaps("17:00", "18:30", "18:00", "19:30")
    assert not overlaps("17:00", "18:00", "18:00", "19:30")
    assert not overlaps("19:30", "20:00", "18:00", "19:30")


def test_ensure_window_rejects_empty_and_reversed_windows():
    assert ensure_window("10:00", "11:30") == (time(10, 0), time(11, 30))
    assert duration_minutes("10:00", "11:30") == 90
    with pytest.raises(ValidationError):
        ensure_window("10:00", "10:00")
    with pytest.raises(ValidationError):
        ensure_window("11:00", "10:00")


def test_combine_and_as_naive():
    assert combine(date(2026, 3, 10), "18:00") == datetime(2026, 3, 10, 18, 0)
    aware = datetime(2026, 3, 10, 18, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert as_naive(aware) == datetime(2026, 3, 10, 18, 0)
    assert as_naive(datetime(2026, 3, 10)) == datetime(2026, 3, 10)
