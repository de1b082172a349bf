from __future__ import annotations

import sqlite3
from pathlib import Path

from .models import Activity, ActivitySession, DailyCheckbox, Goal


class Database:
    """Thin SQLite access layer for activities, sessions, checkboxes and goals."""

    def __init__(self, db_path: str | Path) -> None:
        self._conn = sqlite3.connect(str(db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._closed = False

    def close(self) -> None:
        if self._closed:
            return
        self._conn.close()
        self._closed = True

    def initialize(self) -> None:
        # goals: standalone goal rows from older data; new goals live on activities.
        # meta: small key/value store for scheduler markers.
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS activities (
              id TEXT PRIMARY KEY,
              name TEXT NOT NULL,
              category TEXT NOT NULL,
              color TEXT NOT NULL,
              description TEXT,
              created_at TEXT,
              is_active INTEGER NOT NULL DEFAULT 1,
              type TEXT NOT NULL CHECK (type IN ('time-tracking', 'checkbox')),
              reset_period TEXT CHECK (reset_period IN ('daily', 'weekly', 'monthly')),
              goal_type TEXT CHECK (goal_type IN ('daily', 'weekly', 'monthly')),
              target_minutes INTEGER,
              goal_is_active INTEGER
            );

            CREATE TABLE IF NOT EXISTS activity_sessions (
              id TEXT PRIMARY KEY,
              activity_id TEXT NOT NULL REFERENCES activities(id) ON DELETE CASCADE,
              start_time TEXT NOT NULL,
              end_time TEXT,
              duration INTEGER,
              date TEXT NOT NULL,
              notes TEXT,
              is_running INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS daily_checkboxes (
              id TEXT PRIMARY KEY,
              activity_id TEXT NOT NULL REFERENCES activities(id) ON DELETE CASCADE,
              date TEXT NOT NULL,
              is_checked INTEGER NOT NULL DEFAULT 0,
              notes TEXT,
              UNIQUE (activity_id, date)
            );

            CREATE TABLE IF NOT EXISTS goals (
              id TEXT PRIMARY KEY,
              activity_id TEXT NOT NULL REFERENCES activities(id) ON DELETE CASCADE,
              type TEXT NOT NULL CHECK (type IN ('daily', 'weekly', 'monthly')),
              target_minutes INTEGER NOT NULL,
              start_date TEXT NOT NULL,
              end_date TEXT,
              is_active INTEGER NOT NULL DEFAULT 1,
              created_at TEXT
            );

            CREATE TABLE IF NOT EXISTS meta (
              key TEXT PRIMARY KEY,
              value TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_activity_sessions_activity_id ON activity_sessions(activity_id);
            CREATE INDEX IF NOT EXISTS idx_activity_sessions_date ON activity_sessions(date);
            CREATE INDEX IF NOT EXISTS idx_activity_sessions_is_running ON activity_sessions(is_running);
            CREATE INDEX IF NOT EXISTS idx_daily_checkboxes_activity_id ON daily_checkboxes(activity_id);
            CREATE INDEX IF NOT EXISTS idx_daily_checkboxes_date ON daily_checkboxes(date);
            CREATE INDEX IF NOT EXISTS idx_goals_activity_id ON goals(activity_id);
            """
        )
        self._conn.commit()

    # Activities

    def add_activity(self, activity: Activity) -> None:
        self._conn.execute(
            """
            INSERT INTO activities (
              id, name, category, color, description, created_at, is_active,
              type, reset_period, goal_type, target_minutes, goal_is_active
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            _activity_params(activity),
        )
        self._conn.commit()

    def update_activity(self, activity: Activity) -> bool:
        cursor = self._conn.execute(
            """
            UPDATE activities
            SET name = ?, category = ?, color = ?, description = ?, created_at = ?, is_active = ?,
                type = ?, reset_period = ?, goal_type = ?, target_minutes = ?, goal_is_active = ?
            WHERE id = ?
            """,
            (*_activity_params(activity)[1:], activity.id),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    def get_activity(self, activity_id: str) -> Activity | None:
        row = self._conn.execute("SELECT * FROM activities WHERE id = ?", (activity_id,)).fetchone()
        if row is None:
            return None
        return _row_to_activity(row)

    def find_activity_by_name(self, name: str) -> Activity | None:
        row = self._conn.execute(
            "SELECT * FROM activities WHERE lower(name) = lower(?) ORDER BY is_active DESC, created_at ASC",
            (name.strip(),),
        ).fetchone()
        if row is None:
            return None
        return _row_to_activity(row)

    def list_activities(self, *, active_only: bool = False) -> list[Activity]:
        query = "SELECT * FROM activities"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY created_at ASC, name ASC"
        return [_row_to_activity(row) for row in self._conn.execute(query).fetchall()]

    def delete_activity(self, activity_id: str) -> bool:
        cursor = self._conn.execute("DELETE FROM activities WHERE id = ?", (activity_id,))
        self._conn.commit()
        return cursor.rowcount > 0

    # Sessions

    def add_session(self, session: ActivitySession) -> None:
        self._conn.execute(
            """
            INSERT INTO activity_sessions (id, activity_id, start_time, end_time, duration, date, notes, is_running)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session.id,
                session.activity_id,
                session.start_time,
                session.end_time,
                session.duration,
                session.date,
                session.notes,
                int(session.is_running),
            ),
        )
        self._conn.commit()

    def get_session(self, session_id: str) -> ActivitySession | None:
        row = self._conn.execute("SELECT * FROM activity_sessions WHERE id = ?", (session_id,)).fetchone()
        if row is None:
            return None
        return _row_to_session(row)

    def get_running_session(self, activity_id: str) -> ActivitySession | None:
        row = self._conn.execute(
            "SELECT * FROM activity_sessions WHERE activity_id = ? AND is_running = 1 ORDER BY start_time DESC",
            (activity_id,),
        ).fetchone()
        if row is None:
            return None
        return _row_to_session(row)

    def list_sessions(
        self,
        *,
        activity_id: str | None = None,
        day: str | None = None,
        is_running: bool | None = None,
    ) -> list[ActivitySession]:
        clauses: list[str] = []
        params: list[object] = []
        if activity_id is not None:
            clauses.append("activity_id = ?")
            params.append(activity_id)
        if day is not None:
            clauses.append("date = ?")
            params.append(day)
        if is_running is not None:
            clauses.append("is_running = ?")
            params.append(int(is_running))

        query = "SELECT * FROM activity_sessions"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY start_time ASC"
        return [_row_to_session(row) for row in self._conn.execute(query, params).fetchall()]

    def finish_session(self, session_id: str, end_time: str, duration: int, notes: str | None = None) -> None:
        self._conn.execute(
            """
            UPDATE activity_sessions
            SET end_time = ?, duration = ?, is_running = 0, notes = COALESCE(?, notes)
            WHERE id = ?
            """,
            (end_time, duration, notes, session_id),
        )
        self._conn.commit()

    def delete_session(self, session_id: str) -> bool:
        cursor = self._conn.execute("DELETE FROM activity_sessions WHERE id = ?", (session_id,))
        self._conn.commit()
        return cursor.rowcount > 0

    # Checkboxes

    def upsert_checkbox(self, checkbox: DailyCheckbox) -> DailyCheckbox | None:
        # One row per (activity, day); an existing row keeps its id.
        self._conn.execute(
            """
            INSERT INTO daily_checkboxes (id, activity_id, date, is_checked, notes)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(activity_id, date)
            DO UPDATE SET is_checked = excluded.is_checked, notes = COALESCE(excluded.notes, notes)
            """,
            (checkbox.id, checkbox.activity_id, checkbox.date, int(checkbox.is_checked), checkbox.notes),
        )
        self._conn.commit()
        return self.get_checkbox(checkbox.activity_id, checkbox.date)

    def get_checkbox(self, activity_id: str, day: str) -> DailyCheckbox | None:
        row = self._conn.execute(
            "SELECT * FROM daily_checkboxes WHERE activity_id = ? AND date = ?",
            (activity_id, day),
        ).fetchone()
        if row is None:
            return None
        return _row_to_checkbox(row)

    def list_checkboxes(self, *, activity_id: str | None = None, day: str | None = None) -> list[DailyCheckbox]:
        clauses: list[str] = []
        params: list[object] = []
        if activity_id is not None:
            clauses.append("activity_id = ?")
            params.append(activity_id)
        if day is not None:
            clauses.append("date = ?")
            params.append(day)

        query = "SELECT * FROM daily_checkboxes"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY date ASC"
        return [_row_to_checkbox(row) for row in self._conn.execute(query, params).fetchall()]

    def delete_checkbox(self, checkbox_id: str) -> bool:
        cursor = self._conn.execute("DELETE FROM daily_checkboxes WHERE id = ?", (checkbox_id,))
        self._conn.commit()
        return cursor.rowcount > 0

    # Legacy goals

    def add_goal(self, goal: Goal) -> None:
        self._conn.execute(
            """
            INSERT INTO goals (id, activity_id, type, target_minutes, start_date, end_date, is_active, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                goal.id,
                goal.activity_id,
                goal.type,
                goal.target_minutes,
                goal.start_date,
                goal.end_date,
                int(goal.is_active),
                goal.created_at,
            ),
        )
        self._conn.commit()

    def list_goals(self, *, activity_id: str | None = None, is_active: bool | None = None) -> list[Goal]:
        clauses: list[str] = []
        params: list[object] = []
        if activity_id is not None:
            clauses.append("activity_id = ?")
            params.append(activity_id)
        if is_active is not None:
            clauses.append("is_active = ?")
            params.append(int(is_active))

        query = "SELECT * FROM goals"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY start_date ASC"
        return [
            Goal(
                id=row["id"],
                activity_id=row["activity_id"],
                type=row["type"],
                target_minutes=row["target_minutes"],
                start_date=row["start_date"],
                end_date=row["end_date"],
                is_active=bool(row["is_active"]),
                created_at=row["created_at"],
            )
            for row in self._conn.execute(query, params).fetchall()
        ]

    # Meta

    def get_meta(self, key: str) -> str | None:
        row = self._conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return str(row["value"])

    def set_meta(self, key: str, value: str) -> None:
        self._conn.execute(
            """
            INSERT INTO meta (key, value)
            VALUES (?, ?)
            ON CONFLICT(key)
            DO UPDATE SET value=excluded.value
            """,
            (key, value),
        )
        self._conn.commit()


def _optional_bool(value) -> bool | None:
    return None if value is None else bool(value)


def _activity_params(activity: Activity) -> tuple:
    return (
        activity.id,
        activity.name,
        activity.category,
        activity.color,
        activity.description,
        activity.created_at,
        int(activity.is_active),
        activity.type,
        activity.reset_period,
        activity.goal_type,
        activity.target_minutes,
        None if activity.goal_is_active is None else int(activity.goal_is_active),
    )


def _row_to_activity(row: sqlite3.Row) -> Activity:
    return Activity(
        id=row["id"],
        name=row["name"],
        category=row["category"],
        color=row["color"],
        type=row["type"],
        is_active=bool(row["is_active"]),
        description=row["description"],
        created_at=row["created_at"],
        reset_period=row["reset_period"],
        goal_type=row["goal_type"],
        target_minutes=row["target_minutes"],
        goal_is_active=_optional_bool(row["goal_is_active"]),
    )


def _row_to_session(row: sqlite3.Row) -> ActivitySession:
    return ActivitySession(
        id=row["id"],
        activity_id=row["activity_id"],
        start_time=row["start_time"],
        date=row["date"],
        is_running=bool(row["is_running"]),
        end_time=row["end_time"],
        duration=row["duration"],
        notes=row["notes"],
    )


def _row_to_checkbox(row: sqlite3.Row) -> DailyCheckbox:
    return DailyCheckbox(
        id=row["id"],
        activity_id=row["activity_id"],
        date=row["date"],
        is_checked=bool(row["is_checked"]),
        notes=row["notes"],
    )
