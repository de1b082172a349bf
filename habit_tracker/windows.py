from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from .errors import InvalidInputError

# Weeks begin on Sunday (datetime.weekday(): Monday=0 ... Sunday=6).
WEEK_START = 6
DAY = timedelta(days=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(value: datetime | str | None) -> datetime:
    """Parse an ISO timestamp (or datetime) and normalize to UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        # fromisoformat() before 3.11 does not accept a trailing Z.
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise InvalidInputError(f"Invalid timestamp: {value!r}") from exc
    else:
        raise InvalidInputError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        # Stored values should be timezone-aware; treat naive values as UTC for resilience.
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_day_key(value: str | None) -> date:
    """Parse a strict YYYY-MM-DD calendar date."""
    if not isinstance(value, str) or len(value) != 10:
        raise InvalidInputError(f"Invalid date: {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidInputError(f"Invalid date: {value!r}") from exc


def _local(instant: datetime, tz: ZoneInfo) -> datetime:
    if not isinstance(instant, datetime):
        raise InvalidInputError(f"Expected a datetime, got {instant!r}")
    if instant.tzinfo is None:
        raise InvalidInputError("Instant must be timezone-aware")
    return instant.astimezone(tz)


def start_of_day(instant: datetime, tz: ZoneInfo) -> datetime:
    local_day = _local(instant, tz).date()
    return datetime.combine(local_day, time.min, tzinfo=tz)


def start_of_week(instant: datetime, tz: ZoneInfo) -> datetime:
    local_day = _local(instant, tz).date()
    offset = (local_day.weekday() - WEEK_START) % 7
    return datetime.combine(local_day - timedelta(days=offset), time.min, tzinfo=tz)


def start_of_month(instant: datetime, tz: ZoneInfo) -> datetime:
    local_day = _local(instant, tz).date()
    return datetime.combine(local_day.replace(day=1), time.min, tzinfo=tz)


def subtract_days(instant: datetime, n: int, tz: ZoneInfo) -> datetime:
    # Aware arithmetic with a shared tzinfo keeps local wall time across DST changes.
    return _local(instant, tz) - timedelta(days=n)


def day_interval(day_start: datetime) -> tuple[datetime, datetime]:
    if not isinstance(day_start, datetime) or day_start.tzinfo is None:
        raise InvalidInputError("Day start must be a timezone-aware datetime")
    # Elapsed time, not wall clock: DST days still span exactly 24 hours.
    return day_start, (day_start.astimezone(timezone.utc) + DAY).astimezone(day_start.tzinfo)


def within(instant: datetime, start: datetime, end: datetime) -> bool:
    """Inclusive containment check used for day and period windows."""
    return start <= instant <= end


def day_key(instant: datetime, tz: ZoneInfo) -> str:
    return _local(instant, tz).date().isoformat()


def midnight_utc_for_local_day(day_value: date, tz: ZoneInfo) -> datetime:
    midnight_local = datetime.combine(day_value, time.min, tzinfo=tz)
    return midnight_local.astimezone(timezone.utc)
