from __future__ import annotations

import io
import json
import logging
from typing import Literal, Optional

import discord
from discord import app_commands

from .errors import InvalidInputError, TrackerError
from .reporter import (
    build_activity_list_content,
    build_checkbox_grid,
    build_session_list_content,
    build_statistics_content,
    format_minutes,
    statistics_envelope,
)
from .windows import day_key, utc_now

logger = logging.getLogger(__name__)

Period = Literal["daily", "weekly", "monthly"]


async def _reply(interaction: discord.Interaction, content: str, **kwargs) -> None:
    if interaction.response.is_done():
        await interaction.followup.send(content, ephemeral=True, **kwargs)
    else:
        await interaction.response.send_message(content, ephemeral=True, **kwargs)


def register_commands(bot) -> None:
    """Register all slash commands on the bot. Called once during setup."""
    guild_scope = discord.Object(id=bot.config.guild_id)
    tracker = bot.tracker

    @bot.tree.error
    async def on_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
        original = getattr(error, "original", error)
        if isinstance(original, (TrackerError, InvalidInputError)):
            await _reply(interaction, f"⚠️ {original}")
            return
        logger.error("Command %s failed", interaction.command.name if interaction.command else "?", exc_info=original)
        await _reply(interaction, "Something went wrong while running that command.")

    @bot.tree.command(name="activity-add", description="Create a time-tracking or checkbox activity", guild=guild_scope)
    @app_commands.describe(
        reset_period="Checkbox activities only",
        goal_type="Time-tracking activities only",
        target_minutes="Goal target in minutes",
    )
    async def activity_add(
        interaction: discord.Interaction,
        name: str,
        category: str,
        color: str,
        type: Literal["time-tracking", "checkbox"],
        reset_period: Optional[Period] = None,
        goal_type: Optional[Period] = None,
        target_minutes: Optional[app_commands.Range[int, 1]] = None,
    ) -> None:
        activity = tracker.create_activity(
            name,
            category,
            color,
            type,
            reset_period=reset_period,
            goal_type=goal_type,
            target_minutes=target_minutes,
        )
        await _reply(interaction, f"Added **{activity.name}** ({activity.type}).")

    @bot.tree.command(name="activities", description="List activities and their current state", guild=guild_scope)
    @app_commands.describe(include_archived="Also list archived activities")
    async def activities(interaction: discord.Interaction, include_archived: bool = False) -> None:
        now = utc_now()
        items = tracker.list_activities(include_archived)
        done = {item.id: tracker.checkbox_done(item, now) for item in items if item.type == "checkbox"}
        await _reply(interaction, build_activity_list_content(items, tracker.running_sessions(), done))

    @bot.tree.command(name="activity-edit", description="Rename or restyle an activity", guild=guild_scope)
    async def activity_edit(
        interaction: discord.Interaction,
        activity: str,
        name: Optional[str] = None,
        category: Optional[str] = None,
        color: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        updated = tracker.edit_activity(activity, name=name, category=category, color=color, description=description)
        await _reply(interaction, f"Updated **{updated.name}** [{updated.category}] `{updated.color}`.")

    @bot.tree.command(name="activity-remove", description="Archive or delete an activity", guild=guild_scope)
    @app_commands.describe(delete="Permanently delete the activity and all of its data")
    async def activity_remove(interaction: discord.Interaction, activity: str, delete: bool = False) -> None:
        if delete:
            removed = tracker.delete_activity(activity)
            await _reply(interaction, f"Deleted **{removed.name}** with all sessions and checkboxes.")
            return
        archived = tracker.archive_activity(activity)
        await _reply(interaction, f"Archived **{archived.name}**.")

    @bot.tree.command(name="goal", description="Set or clear the time goal of an activity", guild=guild_scope)
    @app_commands.describe(target_minutes="Leave empty to clear the goal")
    async def goal(
        interaction: discord.Interaction,
        activity: str,
        goal_type: Period = "daily",
        target_minutes: Optional[app_commands.Range[int, 1]] = None,
    ) -> None:
        if target_minutes is None:
            updated = tracker.clear_goal(activity)
            await _reply(interaction, f"Cleared the goal for **{updated.name}**.")
            return
        updated = tracker.update_goal(activity, goal_type, target_minutes)
        await _reply(
            interaction,
            f"Goal for **{updated.name}**: `{format_minutes(target_minutes)}` {goal_type}.",
        )

    @bot.tree.command(name="start", description="Start timing an activity", guild=guild_scope)
    async def start(interaction: discord.Interaction, activity: str, notes: Optional[str] = None) -> None:
        session = tracker.start_session(activity, notes=notes)
        started = tracker.resolve_activity(session.activity_id)
        await _reply(interaction, f"Started **{started.name}**.")

    @bot.tree.command(name="stop", description="Stop the running session of an activity", guild=guild_scope)
    async def stop(interaction: discord.Interaction, activity: str, notes: Optional[str] = None) -> None:
        session = tracker.stop_session(activity, notes=notes)
        stopped = tracker.resolve_activity(session.activity_id)
        minutes = (session.duration or 0) // 60
        await _reply(interaction, f"Stopped **{stopped.name}** after `{format_minutes(minutes)}`.")

    @bot.tree.command(name="sessions", description="List the sessions of an activity for a day", guild=guild_scope)
    @app_commands.describe(date="YYYY-MM-DD, defaults to today")
    async def sessions(interaction: discord.Interaction, activity: str, date: Optional[str] = None) -> None:
        target = tracker.resolve_activity(activity)
        day = date or day_key(utc_now(), tracker.tz)
        items = tracker.sessions_on(target.id, day=day)
        await _reply(interaction, build_session_list_content(target, day, items))

    @bot.tree.command(name="session-delete", description="Delete a session by its id", guild=guild_scope)
    @app_commands.describe(session_id="Shown by /sessions")
    async def session_delete(interaction: discord.Interaction, session_id: str) -> None:
        removed = tracker.delete_session(session_id)
        owner = tracker.db.get_activity(removed.activity_id)
        label = owner.name if owner is not None else removed.activity_id
        await _reply(interaction, f"Deleted a session of **{label}** from {removed.date}.")

    @bot.tree.command(name="check", description="Toggle a checkbox activity for a day", guild=guild_scope)
    @app_commands.describe(date="YYYY-MM-DD, defaults to today")
    async def check(interaction: discord.Interaction, activity: str, date: Optional[str] = None) -> None:
        checkbox = tracker.toggle_checkbox(activity, day=date)
        target = tracker.resolve_activity(checkbox.activity_id)
        state = "done" if checkbox.is_checked else "not done"
        await _reply(interaction, f"**{target.name}** marked {state} for {checkbox.date}.")

    @bot.tree.command(name="check-remove", description="Remove the checkbox record of a day", guild=guild_scope)
    @app_commands.describe(date="YYYY-MM-DD")
    async def check_remove(interaction: discord.Interaction, activity: str, date: str) -> None:
        removed = tracker.remove_checkbox(activity, date)
        target = tracker.resolve_activity(removed.activity_id)
        await _reply(interaction, f"Removed the {removed.date} record of **{target.name}**.")

    @bot.tree.command(name="stats", description="Show tracking statistics", guild=guild_scope)
    async def stats(interaction: discord.Interaction, activity: Optional[str] = None) -> None:
        title = "Statistics"
        if activity:
            title = f"Statistics - {tracker.resolve_activity(activity).name}"
        result = tracker.compute_statistics(activity)
        await _reply(interaction, build_statistics_content(result, title))

    @bot.tree.command(name="stats-export", description="Download statistics as JSON", guild=guild_scope)
    async def stats_export(interaction: discord.Interaction, activity: Optional[str] = None) -> None:
        result = tracker.compute_statistics(activity)
        payload = json.dumps(statistics_envelope(result), indent=2).encode("utf-8")
        file = discord.File(io.BytesIO(payload), filename="statistics.json")
        await _reply(interaction, "Statistics export:", file=file)

    @bot.tree.command(name="history", description="Show the last 90 days of a checkbox activity", guild=guild_scope)
    async def history(interaction: discord.Interaction, activity: str) -> None:
        target = tracker.resolve_activity(activity)
        grid = build_checkbox_grid(tracker.checkbox_history(target.id))
        await _reply(interaction, f"**{target.name}**\n{grid}")
