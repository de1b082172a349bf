from __future__ import annotations

from typing import Protocol

from .models import CHECKBOX, Activity, ActivitySession, Statistics

try:
    import discord
except ModuleNotFoundError:  # pragma: no cover - allows tests without discord.py installed
    discord = None

PROGRESS_BAR_WIDTH = 20
PROGRESS_DAYS_SHOWN = 7


def format_minutes(total_minutes: int) -> str:
    """Render a minute count as H:MM."""
    safe_minutes = max(0, int(total_minutes))
    hours, minutes = divmod(safe_minutes, 60)
    return f"{hours}:{minutes:02}"


class ReportChannelLike(Protocol):
    async def send(self, content: str, **kwargs): ...


def _bar(value: int, peak: int) -> str:
    if peak <= 0 or value <= 0:
        return ""
    return "█" * max(1, round(value / peak * PROGRESS_BAR_WIDTH))


def build_statistics_content(stats: Statistics, title: str) -> str:
    lines = [
        f"**{title}**",
        f"Today: `{format_minutes(stats.total_time_today)}`"
        f" | Week: `{format_minutes(stats.total_time_week)}`"
        f" | Month: `{format_minutes(stats.total_time_month)}`",
        f"Streak: {stats.streak_days} day{'s' if stats.streak_days != 1 else ''}"
        f" | Daily goals met today: {stats.completed_goals_today}",
    ]

    recent = stats.daily_progress[-PROGRESS_DAYS_SHOWN:]
    if recent:
        peak = max(item.total_minutes for item in recent)
        lines.append("Last 7 days:")
        lines.extend(
            f"`{item.date}` `{format_minutes(item.total_minutes):>6}` {_bar(item.total_minutes, peak)}".rstrip()
            for item in recent
        )

    breakdown = sorted(stats.activity_breakdown, key=lambda item: (-item.total_minutes, item.activity_name.lower()))
    if breakdown:
        lines.append("Breakdown:")
        lines.extend(
            f"- {item.activity_name}: `{format_minutes(item.total_minutes)}` ({item.percentage}%)"
            for item in breakdown
        )
    else:
        lines.append("No tracked time yet.")

    return "\n".join(lines)


def build_activity_list_content(
    activities: list[Activity],
    running: list[ActivitySession],
    done_by_id: dict[str, bool],
) -> str:
    if not activities:
        return "No activities yet. Add one with /activity-add."

    running_ids = {session.activity_id for session in running}
    lines = ["**Activities**"]
    for activity in activities:
        if activity.type == CHECKBOX:
            mark = "☑" if done_by_id.get(activity.id) else "☐"
            detail = f"{mark} checkbox, resets {activity.reset_period}"
        else:
            detail = "⏱ running" if activity.id in running_ids else "⏱ idle"
            if activity.goal_is_active and activity.target_minutes:
                detail += f", goal {format_minutes(activity.target_minutes)} {activity.goal_type}"
        archived = " (archived)" if not activity.is_active else ""
        lines.append(f"- {activity.name} [{activity.category}]: {detail}{archived}")
    return "\n".join(lines)


def build_session_list_content(activity: Activity, day: str, sessions: list[ActivitySession]) -> str:
    if not sessions:
        return f"No sessions for **{activity.name}** on {day}."

    lines = [f"**{activity.name}** on {day}"]
    for session in sorted(sessions, key=lambda item: item.start_time):
        if session.is_running or session.duration is None:
            detail = "running"
        else:
            detail = format_minutes(session.duration // 60)
        notes = f" - {session.notes}" if session.notes else ""
        lines.append(f"- `{session.id}` {session.start_time[11:16]} UTC, `{detail}`{notes}")
    return "\n".join(lines)


def build_checkbox_grid(history: list[tuple[str, bool]], per_row: int = 7) -> str:
    """Render per-day completion as rows of squares, oldest first."""
    if not history:
        return "No history."

    rows = []
    for index in range(0, len(history), per_row):
        chunk = history[index:index + per_row]
        cells = "".join("🟩" if checked else "⬜" for _, checked in chunk)
        rows.append(f"`{chunk[0][0]}` {cells}")
    done = sum(1 for _, checked in history if checked)
    rows.append(f"{done}/{len(history)} days checked")
    return "\n".join(rows)


def statistics_envelope(stats: Statistics) -> dict:
    return {"success": True, "data": stats.to_dict()}


async def post_daily_summary(channel: ReportChannelLike, stats: Statistics, day_local: str) -> bool:
    content = build_statistics_content(stats, f"Daily Activity Summary - {day_local}")

    kwargs = {}
    if discord is not None:
        # Never ping users in automated summaries.
        kwargs["allowed_mentions"] = discord.AllowedMentions.none()

    await channel.send(content, **kwargs)
    return True
