from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from habit_tracker.errors import InvalidInputError
from habit_tracker.windows import (
    day_interval,
    day_key,
    parse_day_key,
    parse_instant,
    start_of_day,
    start_of_month,
    start_of_week,
    subtract_days,
    within,
)

UTC = ZoneInfo("UTC")


def test_start_of_day_uses_local_calendar() -> None:
    tz = ZoneInfo("America/New_York")
    # 01:30 UTC on Jan 2 is still Jan 1 in New York.
    instant = datetime(2026, 1, 2, 1, 30, tzinfo=timezone.utc)

    start = start_of_day(instant, tz)

    assert start == datetime(2026, 1, 1, 0, 0, tzinfo=tz)
    assert day_key(instant, tz) == "2026-01-01"


def test_weeks_start_on_sunday() -> None:
    wednesday = datetime(2024, 1, 10, 15, 0, tzinfo=timezone.utc)
    sunday = datetime(2024, 1, 7, 12, 0, tzinfo=timezone.utc)
    saturday = datetime(2024, 1, 13, 23, 59, tzinfo=timezone.utc)

    assert start_of_week(wednesday, UTC) == datetime(2024, 1, 7, tzinfo=UTC)
    assert start_of_week(sunday, UTC) == datetime(2024, 1, 7, tzinfo=UTC)
    assert start_of_week(saturday, UTC) == datetime(2024, 1, 7, tzinfo=UTC)


def test_start_of_month() -> None:
    instant = datetime(2024, 2, 29, 18, 0, tzinfo=timezone.utc)

    assert start_of_month(instant, UTC) == datetime(2024, 2, 1, tzinfo=UTC)


def test_subtract_days_keeps_wall_time_across_dst() -> None:
    tz = ZoneInfo("America/New_York")
    # DST started on 2024-03-10.
    after = datetime(2024, 3, 11, 0, 0, tzinfo=tz)

    shifted = subtract_days(after, 2, tz)

    assert shifted.replace(tzinfo=None) == datetime(2024, 3, 9, 0, 0)
    assert start_of_day(shifted, tz).date() == date(2024, 3, 9)


def test_day_interval_is_twenty_four_hours_and_inclusive() -> None:
    start = datetime(2024, 1, 10, tzinfo=UTC)

    begin, end = day_interval(start)

    assert end - begin == timedelta(hours=24)
    assert within(begin, begin, end)
    assert within(end, begin, end)
    assert not within(end + timedelta(microseconds=1), begin, end)


def test_day_interval_spans_twenty_four_hours_on_dst_change() -> None:
    tz = ZoneInfo("America/New_York")
    start = start_of_day(datetime(2024, 3, 10, 12, tzinfo=timezone.utc), tz)

    begin, end = day_interval(start)

    elapsed = end.astimezone(timezone.utc) - begin.astimezone(timezone.utc)
    assert elapsed == timedelta(hours=24)
    assert begin.astimezone(timezone.utc) == datetime(2024, 3, 10, 5, tzinfo=timezone.utc)
    assert end.astimezone(timezone.utc) == datetime(2024, 3, 11, 5, tzinfo=timezone.utc)
    # Clocks spring forward, so the window ends at 01:00 local the next day.
    assert end.hour == 1


def test_parse_instant_normalizes_to_utc() -> None:
    assert parse_instant("2024-01-10T10:00:00+02:00") == datetime(2024, 1, 10, 8, 0, tzinfo=timezone.utc)
    assert parse_instant("2024-01-10T10:00:00Z") == datetime(2024, 1, 10, 10, 0, tzinfo=timezone.utc)
    # Naive values are read as UTC.
    assert parse_instant("2024-01-10T10:00:00") == datetime(2024, 1, 10, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["", "tomorrow", None, 12345])
def test_parse_instant_rejects_garbage(value) -> None:
    with pytest.raises(InvalidInputError):
        parse_instant(value)


@pytest.mark.parametrize("value", ["2024-1-5", "2024-13-01", "05/01/2024", None])
def test_parse_day_key_rejects_malformed_dates(value) -> None:
    with pytest.raises(InvalidInputError):
        parse_day_key(value)


def test_naive_instants_fail_fast() -> None:
    with pytest.raises(InvalidInputError):
        start_of_day(datetime(2024, 1, 10, 12, 0), UTC)

    with pytest.raises(InvalidInputError):
        day_interval(datetime(2024, 1, 10))
