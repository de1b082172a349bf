from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from .db import Database
from .errors import TrackerError
from .external import ExternalSource
from .models import ACTIVITY_TYPES, CHECKBOX, PERIODS, TIME_TRACKING, Activity, ActivitySession, DailyCheckbox, Statistics
from .statistics import compute_statistics
from .windows import day_key, parse_day_key, parse_instant, start_of_day, start_of_month, start_of_week, utc_now


def _new_id() -> str:
    return str(uuid.uuid4())


def _require(**fields: object) -> None:
    missing = [name for name, value in fields.items() if value is None or (isinstance(value, str) and not value.strip())]
    if missing:
        raise TrackerError(f"Missing required fields: {', '.join(missing)}")


class ActivityTracker:
    def __init__(
        self,
        db: Database,
        tz: ZoneInfo,
        external: ExternalSource | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.db = db
        self.tz = tz
        self.external = external
        self.logger = logger or logging.getLogger(__name__)

    # Activities

    def create_activity(
        self,
        name: str,
        category: str,
        color: str,
        type: str,
        *,
        reset_period: str | None = None,
        goal_type: str | None = None,
        target_minutes: int | None = None,
        description: str | None = None,
        now: datetime | None = None,
    ) -> Activity:
        _require(name=name, category=category, color=color, type=type)
        if type not in ACTIVITY_TYPES:
            raise TrackerError(f"Activity type must be one of: {', '.join(ACTIVITY_TYPES)}")
        if type == CHECKBOX and not reset_period:
            raise TrackerError("Reset period is required for checkbox activities")
        if reset_period is not None and reset_period not in PERIODS:
            raise TrackerError(f"Reset period must be one of: {', '.join(PERIODS)}")
        if self.db.find_activity_by_name(name) is not None:
            raise TrackerError(f"An activity named {name.strip()!r} already exists")

        is_timed = type == TIME_TRACKING
        if is_timed and goal_type is not None:
            _validate_goal(goal_type, target_minutes)

        activity = Activity(
            id=_new_id(),
            name=name.strip(),
            category=category.strip(),
            color=color.strip(),
            type=type,
            description=description,
            created_at=(now or utc_now()).isoformat(),
            reset_period=reset_period if type == CHECKBOX else None,
            goal_type=goal_type if is_timed else None,
            # A target without a goal type is dropped.
            target_minutes=target_minutes if is_timed and goal_type is not None else None,
            goal_is_active=True if is_timed and goal_type is not None else None,
        )
        self.db.add_activity(activity)
        self.logger.info("Activity created: %s (%s)", activity.name, activity.type)
        return activity

    def resolve_activity(self, name_or_id: str) -> Activity:
        activity = self.db.get_activity(name_or_id) or self.db.find_activity_by_name(name_or_id)
        if activity is None:
            raise TrackerError(f"Unknown activity: {name_or_id}")
        return activity

    def list_activities(self, include_archived: bool = False) -> list[Activity]:
        return self.db.list_activities(active_only=not include_archived)

    def edit_activity(
        self,
        activity_id: str,
        *,
        name: str | None = None,
        category: str | None = None,
        color: str | None = None,
        description: str | None = None,
    ) -> Activity:
        """Change the descriptive fields of an activity; ``None`` leaves a field as is."""
        activity = self.resolve_activity(activity_id)
        changes = {
            field: value.strip()
            for field, value in (("name", name), ("category", category), ("color", color))
            if value is not None
        }
        blank = [field for field, value in changes.items() if not value]
        if blank:
            raise TrackerError(f"Fields cannot be empty: {', '.join(blank)}")
        if "name" in changes:
            clash = self.db.find_activity_by_name(changes["name"])
            if clash is not None and clash.id != activity.id:
                raise TrackerError(f"An activity named {changes['name']!r} already exists")
        if description is not None:
            changes["description"] = description.strip() or None
        if not changes:
            raise TrackerError("Nothing to change")

        updated = replace(activity, **changes)
        self.db.update_activity(updated)
        self.logger.info("Activity edited: %s (%s)", updated.name, ", ".join(sorted(changes)))
        return updated

    def update_goal(self, activity_id: str, goal_type: str, target_minutes: int, is_active: bool = True) -> Activity:
        activity = self.resolve_activity(activity_id)
        if activity.type != TIME_TRACKING:
            raise TrackerError("Goals can only be set on time-tracking activities")
        _validate_goal(goal_type, target_minutes)

        updated = replace(activity, goal_type=goal_type, target_minutes=target_minutes, goal_is_active=is_active)
        self.db.update_activity(updated)
        return updated

    def clear_goal(self, activity_id: str) -> Activity:
        activity = self.resolve_activity(activity_id)
        updated = replace(activity, goal_type=None, target_minutes=None, goal_is_active=None)
        self.db.update_activity(updated)
        return updated

    def archive_activity(self, activity_id: str) -> Activity:
        activity = self.resolve_activity(activity_id)
        updated = replace(activity, is_active=False)
        self.db.update_activity(updated)
        return updated

    def delete_activity(self, activity_id: str) -> Activity:
        # Sessions, checkboxes and goals go with it through ON DELETE CASCADE.
        activity = self.resolve_activity(activity_id)
        self.db.delete_activity(activity.id)
        self.logger.info("Activity deleted: %s", activity.name)
        return activity

    def import_legacy_goals(self) -> int:
        """Copy active standalone goals onto activities that have no goal of their own."""
        imported = 0
        for goal in self.db.list_goals(is_active=True):
            activity = self.db.get_activity(goal.activity_id)
            if activity is None or activity.type != TIME_TRACKING:
                continue
            if activity.goal_type is not None and activity.target_minutes:
                continue

            self.db.update_activity(
                replace(activity, goal_type=goal.type, target_minutes=goal.target_minutes, goal_is_active=True)
            )
            imported += 1
        if imported:
            self.logger.info("Imported %d legacy goals onto activities", imported)
        return imported

    # Sessions

    def start_session(self, activity_id: str, now: datetime | None = None, notes: str | None = None) -> ActivitySession:
        activity = self.resolve_activity(activity_id)
        if activity.type != TIME_TRACKING:
            raise TrackerError(f"{activity.name} is a checkbox activity and cannot be timed")
        if self.db.get_running_session(activity.id) is not None:
            raise TrackerError(f"There is already a running session for {activity.name}")

        started = parse_instant(now or utc_now())
        session = ActivitySession(
            id=_new_id(),
            activity_id=activity.id,
            start_time=started.isoformat(),
            date=day_key(started, self.tz),
            is_running=True,
            notes=notes,
        )
        self.db.add_session(session)
        self.logger.info("Session started: activity=%s", activity.name)
        return session

    def stop_session(self, activity_id: str, now: datetime | None = None, notes: str | None = None) -> ActivitySession:
        activity = self.resolve_activity(activity_id)
        session = self.db.get_running_session(activity.id)
        if session is None:
            raise TrackerError(f"No running session for {activity.name}")

        ended = parse_instant(now or utc_now())
        started = parse_instant(session.start_time)
        duration = max(0, int((ended - started).total_seconds()))

        self.db.finish_session(session.id, ended.isoformat(), duration, notes)
        self.logger.info("Session stopped: activity=%s tracked=%ss", activity.name, duration)
        return replace(
            session,
            end_time=ended.isoformat(),
            duration=duration,
            is_running=False,
            notes=notes if notes is not None else session.notes,
        )

    def running_sessions(self) -> list[ActivitySession]:
        return self.db.list_sessions(is_running=True)

    def sessions_on(self, activity_id: str, day: str | None = None, now: datetime | None = None) -> list[ActivitySession]:
        activity = self.resolve_activity(activity_id)
        target_day = day or day_key(parse_instant(now or utc_now()), self.tz)
        parse_day_key(target_day)
        return self.db.list_sessions(activity_id=activity.id, day=target_day)

    def delete_session(self, session_id: str) -> ActivitySession:
        session = self.db.get_session(session_id.strip())
        if session is None:
            raise TrackerError(f"Unknown session: {session_id}")

        self.db.delete_session(session.id)
        self.logger.info("Session deleted: %s (activity=%s)", session.id, session.activity_id)
        return session

    # Checkboxes

    def toggle_checkbox(
        self,
        activity_id: str,
        day: str | None = None,
        is_checked: bool | None = None,
        now: datetime | None = None,
    ) -> DailyCheckbox:
        activity = self.resolve_activity(activity_id)
        if activity.type != CHECKBOX:
            raise TrackerError(f"{activity.name} is not a checkbox activity")

        target_day = day or day_key(parse_instant(now or utc_now()), self.tz)
        parse_day_key(target_day)

        existing = self.db.get_checkbox(activity.id, target_day)
        if is_checked is None:
            is_checked = not existing.is_checked if existing is not None else True

        stored = self.db.upsert_checkbox(
            DailyCheckbox(id=_new_id(), activity_id=activity.id, date=target_day, is_checked=is_checked)
        )
        self.logger.info("Checkbox %s for %s on %s", "checked" if is_checked else "cleared", activity.name, target_day)
        return stored

    def remove_checkbox(self, activity_id: str, day: str) -> DailyCheckbox:
        """Drop the stored record for a day, leaving it as if never toggled."""
        activity = self.resolve_activity(activity_id)
        parse_day_key(day)
        checkbox = self.db.get_checkbox(activity.id, day)
        if checkbox is None:
            raise TrackerError(f"No checkbox record for {activity.name} on {day}")

        self.db.delete_checkbox(checkbox.id)
        self.logger.info("Checkbox removed for %s on %s", activity.name, day)
        return checkbox

    def checkbox_done(self, activity: Activity, now: datetime | None = None) -> bool:
        """Whether the checkbox counts as done for its current reset period."""
        current = parse_instant(now or utc_now())
        if activity.reset_period == "weekly":
            first = start_of_week(current, self.tz).date()
        elif activity.reset_period == "monthly":
            first = start_of_month(current, self.tz).date()
        else:
            first = start_of_day(current, self.tz).date()
        last = start_of_day(current, self.tz).date()

        for checkbox in self.db.list_checkboxes(activity_id=activity.id):
            if not checkbox.is_checked:
                continue
            if first.isoformat() <= checkbox.date <= last.isoformat():
                return True
        return False

    def checkbox_history(self, activity_id: str, now: datetime | None = None, days: int = 90) -> list[tuple[str, bool]]:
        activity = self.resolve_activity(activity_id)
        today = start_of_day(parse_instant(now or utc_now()), self.tz).date()
        checked = {item.date for item in self.db.list_checkboxes(activity_id=activity.id) if item.is_checked}

        history: list[tuple[str, bool]] = []
        for offset in range(days - 1, -1, -1):
            key = (today - timedelta(days=offset)).isoformat()
            history.append((key, key in checked))
        return history

    # Statistics

    def compute_statistics(self, activity_id: str | None = None, now: datetime | None = None) -> Statistics:
        resolved_id = self.resolve_activity(activity_id).id if activity_id else None
        return compute_statistics(
            self.db.list_activities(),
            self.db.list_sessions(),
            self.db.list_checkboxes(),
            self.external,
            resolved_id,
            now=now or utc_now(),
            tz=self.tz,
        )


def _validate_goal(goal_type: str | None, target_minutes: int | None) -> None:
    if goal_type not in PERIODS:
        raise TrackerError(f"Goal type must be one of: {', '.join(PERIODS)}")
    if target_minutes is None or isinstance(target_minutes, bool) or int(target_minutes) <= 0:
        raise TrackerError("Target minutes must be a positive integer")
