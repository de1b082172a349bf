"""Statistics aggregation over activities, sessions and external time logs.

Everything here is a pure function of its arguments: callers fetch the
collections from the store, pass the reference instant explicitly and get a
fresh :class:`~habit_tracker.models.Statistics` back. Records that cannot be
interpreted (bad timestamps, malformed day keys, negative durations) are left
out of the affected aggregates instead of failing the whole computation.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from .errors import InvalidInputError
from .external import ExternalSource
from .models import Activity, ActivityBreakdown, ActivitySession, DailyCheckbox, DailyProgress, Statistics
from .windows import (
    day_interval,
    parse_day_key,
    parse_instant,
    start_of_day,
    start_of_month,
    start_of_week,
    subtract_days,
    within,
)

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")
PROGRESS_DAYS = 30
STREAK_SCAN_DAYS = 365


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True, slots=True)
class _CompletedSession:
    activity_id: str
    seconds: float
    # None when the stored value could not be parsed.
    started: datetime | None
    day: date | None


def _completed_sessions(sessions: Iterable[ActivitySession]) -> list[_CompletedSession]:
    completed: list[_CompletedSession] = []
    for session in sessions:
        if session.duration is None:
            continue
        if isinstance(session.duration, bool) or not isinstance(session.duration, (int, float)) or session.duration < 0:
            logger.debug("Skipping session %s with invalid duration %r", session.id, session.duration)
            continue

        try:
            started = parse_instant(session.start_time)
        except InvalidInputError:
            logger.debug("Session %s has unparseable start time %r", session.id, session.start_time)
            started = None

        try:
            day = parse_day_key(session.date)
        except InvalidInputError:
            logger.debug("Session %s has malformed date %r", session.id, session.date)
            day = None

        completed.append(
            _CompletedSession(
                activity_id=session.activity_id,
                seconds=session.duration,
                started=started,
                day=day,
            )
        )
    return completed


def empty_statistics(now: datetime | str, tz: ZoneInfo = UTC) -> Statistics:
    today = start_of_day(parse_instant(now), tz).date()
    progress = tuple(
        DailyProgress(date=(today - timedelta(days=offset)).isoformat(), total_minutes=0)
        for offset in range(PROGRESS_DAYS - 1, -1, -1)
    )
    return Statistics(daily_progress=progress)


def compute_statistics(
    activities: Sequence[Activity] | None,
    sessions: Sequence[ActivitySession] | None,
    checkboxes: Sequence[DailyCheckbox] | None,
    external: ExternalSource | None = None,
    activity_id: str | None = None,
    *,
    now: datetime | str,
    tz: ZoneInfo = UTC,
) -> Statistics:
    """Build the statistics snapshot as of ``now``.

    ``activity_id`` scopes sessions to one activity. The external source is
    blended in only when no filter is given or the filter names the external
    source's activity. Checkboxes never contribute time; they are accepted so
    every caller can pass the full store contents.
    """
    now_utc = parse_instant(now)

    if activities is None or sessions is None:
        logger.warning("Statistics requested without activities or sessions; returning empty result")
        return empty_statistics(now_utc, tz)

    today_start = start_of_day(now_utc, tz)
    today = today_start.date()
    week_start = start_of_week(now_utc, tz)
    month_start = start_of_month(now_utc, tz)

    completed = _completed_sessions(sessions)
    filtered = [item for item in completed if activity_id is None or item.activity_id == activity_id]

    use_external = external is not None and (activity_id is None or activity_id == external.activity_id)
    external_days = external.daily_seconds() if use_external else {}

    def external_seconds(first: date, last: date | None = None) -> float:
        return sum(
            seconds
            for day, seconds in external_days.items()
            if day >= first and (last is None or day <= last)
        )

    def total_minutes(window_start: datetime, window_end: datetime | None = None) -> float:
        seconds = 0.0
        for item in filtered:
            if item.started is None:
                continue
            if window_end is not None:
                if within(item.started, window_start, window_end):
                    seconds += item.seconds
            elif item.started >= window_start:
                seconds += item.seconds

        first_day = window_start.astimezone(tz).date()
        # External entries carry only a day; the window covers the days up to its last instant.
        last_day = None
        if window_end is not None:
            last_day = (window_end - timedelta(microseconds=1)).astimezone(tz).date()
        seconds += external_seconds(first_day, last_day)
        return seconds / 60

    _, today_end = day_interval(today_start)
    total_today = total_minutes(today_start, today_end)
    total_week = total_minutes(week_start)
    total_month = total_minutes(month_start)

    streak_days = 0
    for offset in range(STREAK_SCAN_DAYS):
        day_start = start_of_day(subtract_days(today_start, offset, tz), tz)
        start, end = day_interval(day_start)
        has_activity = any(
            item.started is not None and within(item.started, start, end) for item in filtered
        ) or day_start.date() in external_days

        if has_activity:
            streak_days += 1
        elif offset > 0:
            # An empty today does not break a streak that ran through yesterday.
            break

    completed_goals_today = 0
    for activity in activities:
        if not activity.has_daily_goal:
            continue
        if activity_id is not None and activity.id != activity_id:
            continue
        target = activity.target_minutes
        if isinstance(target, bool) or not isinstance(target, int) or target <= 0:
            logger.debug("Skipping goal for activity %s with invalid target %r", activity.id, target)
            continue

        seconds = sum(item.seconds for item in completed if item.activity_id == activity.id and item.day == today)
        if use_external and activity.id == external.activity_id:
            seconds += external_days.get(today, 0.0)
        if seconds / 60 >= target:
            completed_goals_today += 1

    daily_progress: list[DailyProgress] = []
    for offset in range(PROGRESS_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        seconds = sum(item.seconds for item in filtered if item.day == day)
        seconds += external_days.get(day, 0.0)
        daily_progress.append(DailyProgress(date=day.isoformat(), total_minutes=round_half_up(seconds / 60)))

    return Statistics(
        total_time_today=round_half_up(total_today),
        total_time_week=round_half_up(total_week),
        total_time_month=round_half_up(total_month),
        streak_days=streak_days,
        completed_goals_today=completed_goals_today,
        daily_progress=tuple(daily_progress),
        activity_breakdown=tuple(
            _activity_breakdown(activities, filtered, external if use_external else None, external_days)
        ),
    )


def _activity_breakdown(
    activities: Sequence[Activity],
    filtered: Sequence[_CompletedSession],
    external: ExternalSource | None,
    external_days: dict[date, float],
) -> list[ActivityBreakdown]:
    by_id = {activity.id: activity for activity in activities}
    buckets: dict[str, float] = {}

    for item in filtered:
        if item.activity_id not in by_id:
            logger.debug("Session references unknown activity %s; left out of breakdown", item.activity_id)
            continue
        buckets[item.activity_id] = buckets.get(item.activity_id, 0.0) + item.seconds / 60

    if external is not None and external.activity_id in by_id:
        bucket_id = external.activity_id
        buckets[bucket_id] = buckets.get(bucket_id, 0.0) + sum(external_days.values()) / 60

    total = sum(buckets.values())
    return [
        ActivityBreakdown(
            activity_id=bucket_id,
            activity_name=by_id[bucket_id].name,
            total_minutes=round_half_up(minutes),
            percentage=round_half_up(minutes / total * 100) if total > 0 else 0,
        )
        for bucket_id, minutes in buckets.items()
    ]
