import asyncio

from habit_tracker.models import Activity, ActivityBreakdown, ActivitySession, DailyProgress, Statistics
from habit_tracker.reporter import (
    build_activity_list_content,
    build_checkbox_grid,
    build_session_list_content,
    build_statistics_content,
    format_minutes,
    post_daily_summary,
    statistics_envelope,
)


class FakeChannel:
    def __init__(self) -> None:
        self.sent: list[tuple[str, dict]] = []

    async def send(self, content: str, **kwargs):
        self.sent.append((content, kwargs))


def make_stats() -> Statistics:
    return Statistics(
        total_time_today=45,
        total_time_week=125,
        total_time_month=600,
        streak_days=3,
        completed_goals_today=1,
        daily_progress=tuple(
            DailyProgress(date=f"2026-02-{day:02}", total_minutes=day * 10) for day in range(1, 11)
        ),
        activity_breakdown=(
            ActivityBreakdown(activity_id="b", activity_name="Piano", total_minutes=200, percentage=33),
            ActivityBreakdown(activity_id="a", activity_name="Reading", total_minutes=400, percentage=67),
        ),
    )


def test_format_minutes_h_mm() -> None:
    assert format_minutes(0) == "0:00"
    assert format_minutes(125) == "2:05"
    assert format_minutes(-5) == "0:00"


def test_statistics_content_sorts_breakdown_by_minutes() -> None:
    content = build_statistics_content(make_stats(), "Statistics")

    assert content.startswith("**Statistics**")
    assert "Week: `2:05`" in content
    assert "Streak: 3 days" in content
    assert content.index("Reading") < content.index("Piano")
    assert "(67%)" in content
    # Only the last seven days are charted.
    assert "2026-02-03" not in content
    assert "2026-02-04" in content


def test_statistics_content_without_tracked_time() -> None:
    content = build_statistics_content(Statistics(), "Statistics")

    assert "No tracked time yet." in content
    assert "Streak: 0 days" in content


def test_activity_list_marks_running_and_done() -> None:
    activities = [
        Activity(id="a", name="Reading", category="Learning", color="#10B981", type="time-tracking",
                 goal_type="daily", target_minutes=30, goal_is_active=True),
        Activity(id="b", name="Stretch", category="Health", color="#EF4444", type="checkbox", reset_period="weekly"),
    ]
    running = [ActivitySession(id="s", activity_id="a", start_time="2026-02-01T09:00:00+00:00",
                               date="2026-02-01", is_running=True)]

    content = build_activity_list_content(activities, running, {"b": True})

    assert "- Reading [Learning]: ⏱ running, goal 0:30 daily" in content
    assert "- Stretch [Health]: ☑ checkbox, resets weekly" in content


def test_empty_activity_list() -> None:
    assert "No activities yet" in build_activity_list_content([], [], {})


def test_session_list_shows_ids_and_durations() -> None:
    activity = Activity(id="a", name="Reading", category="Learning", color="#10B981", type="time-tracking")
    sessions = [
        ActivitySession(id="s2", activity_id="a", start_time="2026-02-01T14:00:00+00:00", date="2026-02-01",
                        is_running=True),
        ActivitySession(id="s1", activity_id="a", start_time="2026-02-01T09:05:00+00:00", date="2026-02-01",
                        duration=5400, notes="chapter 3"),
    ]

    content = build_session_list_content(activity, "2026-02-01", sessions)

    assert content.splitlines() == [
        "**Reading** on 2026-02-01",
        "- `s1` 09:05 UTC, `1:30` - chapter 3",
        "- `s2` 14:00 UTC, `running`",
    ]
    assert "No sessions" in build_session_list_content(activity, "2026-02-02", [])


def test_checkbox_grid_counts_checked_days() -> None:
    history = [(f"2026-02-{day:02}", day % 2 == 0) for day in range(1, 10)]

    grid = build_checkbox_grid(history)

    lines = grid.splitlines()
    assert lines[0].startswith("`2026-02-01`")
    assert lines[1].startswith("`2026-02-08`")
    assert lines[-1] == "4/9 days checked"


def test_statistics_envelope_uses_wire_names() -> None:
    payload = statistics_envelope(make_stats())

    assert payload["success"] is True
    assert payload["data"]["totalTimeToday"] == 45
    assert payload["data"]["dailyProgress"][0] == {"date": "2026-02-01", "totalMinutes": 10}
    assert payload["data"]["activityBreakdown"][1]["activityName"] == "Reading"


def test_post_daily_summary_sends_without_mentions() -> None:
    channel = FakeChannel()

    asyncio.run(post_daily_summary(channel, make_stats(), "2026-02-10"))

    content, kwargs = channel.sent[0]
    assert content.startswith("**Daily Activity Summary - 2026-02-10**")
    assert "allowed_mentions" in kwargs
