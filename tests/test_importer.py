import json

from habit_tracker.db import Database
from habit_tracker.importer import import_directory, main


def write_json(path, payload) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


def seed_directory(data_dir) -> None:
    write_json(
        data_dir / "activities.json",
        [
            {"id": "a", "name": "Reading", "category": "Learning", "color": "#10B981", "type": "time-tracking",
             "createdAt": "2024-01-01T00:00:00.000Z", "isActive": True},
            {"id": "b", "name": "Stretch", "category": "Health", "color": "#EF4444", "type": "checkbox",
             "resetPeriod": "daily", "isActive": True},
            {"id": "broken", "name": "No type"},
        ],
    )
    write_json(
        data_dir / "sessions.json",
        [
            {"id": "s1", "activityId": "a", "startTime": "2024-01-05T09:00:00.000Z", "endTime": "2024-01-05T09:30:00.000Z",
             "duration": 1800, "date": "2024-01-05", "isRunning": False},
            {"id": "s2", "activityId": "ghost", "startTime": "2024-01-05T10:00:00.000Z", "date": "2024-01-05",
             "isRunning": True},
        ],
    )
    write_json(data_dir / "checkboxes.json", [{"id": "c1", "activityId": "b", "date": "2024-01-05", "isChecked": True}])
    write_json(
        data_dir / "goals.json",
        [{"id": "g1", "activityId": "a", "type": "daily", "targetMinutes": "25", "startDate": "2024-01-01",
          "isActive": True}],
    )


def test_import_directory_skips_bad_records(tmp_path) -> None:
    seed_directory(tmp_path)
    db = Database(":memory:")
    db.initialize()

    counts = import_directory(db, tmp_path)

    assert counts == {"activities": 2, "sessions": 1, "checkboxes": 1, "goals": 1}
    assert db.get_session("s1").duration == 1800
    assert db.list_goals()[0].target_minutes == 25


def test_import_directory_rejects_non_numeric_targets(tmp_path) -> None:
    write_json(
        tmp_path / "activities.json",
        [
            {"id": "a", "name": "Reading", "category": "Learning", "color": "#10B981", "type": "time-tracking",
             "goalType": "daily", "targetMinutes": "thirty", "goalIsActive": True},
            {"id": "b", "name": "Writing", "category": "Learning", "color": "#3B82F6", "type": "time-tracking",
             "goalType": "daily", "targetMinutes": 0, "goalIsActive": True},
            {"id": "c", "name": "Drawing", "category": "Art", "color": "#F59E0B", "type": "time-tracking",
             "goalType": "daily", "targetMinutes": "45", "goalIsActive": True},
        ],
    )
    db = Database(":memory:")
    db.initialize()

    counts = import_directory(db, tmp_path)

    assert counts["activities"] == 1
    assert db.get_activity("a") is None
    assert db.get_activity("b") is None
    assert db.get_activity("c").target_minutes == 45


def test_import_directory_tolerates_missing_files(tmp_path) -> None:
    db = Database(":memory:")
    db.initialize()

    assert import_directory(db, tmp_path) == {"activities": 0, "sessions": 0, "checkboxes": 0, "goals": 0}


def test_main_imports_and_folds_legacy_goals(tmp_path) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    seed_directory(data_dir)
    db_path = tmp_path / "tracker.db"

    main([str(data_dir), "--db", str(db_path)])

    db = Database(db_path)
    try:
        reading = db.get_activity("a")
        assert (reading.goal_type, reading.target_minutes, reading.goal_is_active) == ("daily", 25, True)
    finally:
        db.close()
