import sqlite3

import pytest

from habit_tracker.db import Database
from habit_tracker.models import Activity, ActivitySession, DailyCheckbox


def make_db() -> Database:
    db = Database(":memory:")
    db.initialize()
    db.add_activity(Activity(id="a", name="Reading", category="Learning", color="#10B981", type="time-tracking",
                             created_at="2026-01-01T00:00:00+00:00"))
    db.add_activity(Activity(id="b", name="Stretch", category="Health", color="#EF4444", type="checkbox",
                             reset_period="daily", is_active=False, created_at="2026-01-02T00:00:00+00:00"))
    return db


def test_activity_round_trip_and_lookup() -> None:
    db = make_db()

    assert db.find_activity_by_name(" reading ").id == "a"
    assert [item.id for item in db.list_activities()] == ["a", "b"]
    assert [item.id for item in db.list_activities(active_only=True)] == ["a"]
    assert db.get_activity("b").reset_period == "daily"
    assert db.get_activity("a").goal_is_active is None


def test_activity_type_is_constrained() -> None:
    db = make_db()

    with pytest.raises(sqlite3.IntegrityError):
        db.add_activity(Activity(id="c", name="Bad", category="x", color="#000000", type="habit"))


def test_list_sessions_filters() -> None:
    db = make_db()
    db.add_session(ActivitySession(id="s1", activity_id="a", start_time="2026-02-01T09:00:00+00:00",
                                   date="2026-02-01", duration=600))
    db.add_session(ActivitySession(id="s2", activity_id="a", start_time="2026-02-02T09:00:00+00:00",
                                   date="2026-02-02", is_running=True))

    assert [item.id for item in db.list_sessions(day="2026-02-01")] == ["s1"]
    assert [item.id for item in db.list_sessions(is_running=True)] == ["s2"]
    assert [item.id for item in db.list_sessions(activity_id="a", is_running=False)] == ["s1"]
    assert db.get_running_session("a").id == "s2"

    db.finish_session("s2", "2026-02-02T09:10:00+00:00", 600, notes="chapter 3")
    finished = db.get_session("s2")
    assert (finished.is_running, finished.duration, finished.notes) == (False, 600, "chapter 3")
    assert db.get_running_session("a") is None

    assert db.delete_session("s1") is True
    assert db.delete_session("s1") is False


def test_sessions_require_existing_activity() -> None:
    db = make_db()

    with pytest.raises(sqlite3.IntegrityError):
        db.add_session(ActivitySession(id="s", activity_id="missing", start_time="2026-02-01T09:00:00+00:00",
                                       date="2026-02-01"))


def test_checkbox_upsert_keeps_one_row_per_day() -> None:
    db = make_db()

    first = db.upsert_checkbox(DailyCheckbox(id="c1", activity_id="b", date="2026-02-01", is_checked=True))
    second = db.upsert_checkbox(DailyCheckbox(id="c2", activity_id="b", date="2026-02-01", is_checked=False))

    assert first.id == second.id == "c1"
    assert second.is_checked is False
    assert len(db.list_checkboxes(activity_id="b", day="2026-02-01")) == 1
    assert db.delete_checkbox("c1") is True
    assert db.list_checkboxes() == []


def test_meta_round_trip() -> None:
    db = make_db()

    assert db.get_meta("last_auto_summary_day") is None
    db.set_meta("last_auto_summary_day", "2026-02-01")
    db.set_meta("last_auto_summary_day", "2026-02-02")

    assert db.get_meta("last_auto_summary_day") == "2026-02-02"
