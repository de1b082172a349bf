"""Load a JSON data directory (activities.json, sessions.json, ...) into SQLite.

The JSON files use the camelCase records of the file-based store:
``{"id", "activityId", "startTime", "duration", "date", "isRunning", ...}``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sqlite3
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from .config import DEFAULT_DB_PATH
from .db import Database
from .models import Activity, ActivitySession, DailyCheckbox, Goal
from .tracker import ActivityTracker

logger = logging.getLogger(__name__)


def _read_records(path: Path) -> list[dict]:
    if not path.exists():
        logger.info("No %s found, skipping", path.name)
        return []
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Could not read {path}") from exc
    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a JSON list")
    return [item for item in payload if isinstance(item, dict)]


def _optional_target(value) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid targetMinutes {value!r}")
    target = int(value)
    if target <= 0:
        raise ValueError(f"targetMinutes must be positive, got {value!r}")
    return target


def activity_from_record(record: dict) -> Activity:
    return Activity(
        id=record["id"],
        name=record["name"],
        category=record["category"],
        color=record["color"],
        type=record["type"],
        is_active=record.get("isActive", True),
        description=record.get("description"),
        created_at=record.get("createdAt"),
        reset_period=record.get("resetPeriod"),
        goal_type=record.get("goalType"),
        target_minutes=_optional_target(record.get("targetMinutes")),
        goal_is_active=record.get("goalIsActive"),
    )


def session_from_record(record: dict) -> ActivitySession:
    return ActivitySession(
        id=record["id"],
        activity_id=record["activityId"],
        start_time=record["startTime"],
        date=record["date"],
        is_running=record.get("isRunning", False),
        end_time=record.get("endTime"),
        duration=record.get("duration"),
        notes=record.get("notes"),
    )


def checkbox_from_record(record: dict) -> DailyCheckbox:
    return DailyCheckbox(
        id=record["id"],
        activity_id=record["activityId"],
        date=record["date"],
        is_checked=record.get("isChecked", False),
        notes=record.get("notes"),
    )


def goal_from_record(record: dict) -> Goal:
    return Goal(
        id=record["id"],
        activity_id=record["activityId"],
        type=record["type"],
        target_minutes=int(record["targetMinutes"]),
        start_date=record["startDate"],
        end_date=record.get("endDate"),
        is_active=record.get("isActive", True),
        created_at=record.get("createdAt"),
    )


def import_directory(db: Database, data_dir: str | Path) -> dict[str, int]:
    """Import every known file in ``data_dir`` and return per-file counts."""
    base = Path(data_dir)
    steps = (
        ("activities", activity_from_record, db.add_activity),
        ("sessions", session_from_record, db.add_session),
        ("checkboxes", checkbox_from_record, db.upsert_checkbox),
        ("goals", goal_from_record, db.add_goal),
    )

    counts: dict[str, int] = {}
    for name, convert, store in steps:
        imported = 0
        for record in _read_records(base / f"{name}.json"):
            try:
                store(convert(record))
            except (KeyError, TypeError, ValueError, sqlite3.IntegrityError) as exc:
                logger.warning("Skipping %s record %r: %s", name, record.get("id"), exc)
                continue
            imported += 1
        counts[name] = imported
        logger.info("Imported %d %s", imported, name)
    return counts


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    parser = argparse.ArgumentParser(description="Import JSON tracker data into the SQLite store.")
    parser.add_argument("data_dir", type=Path, help="directory holding activities.json, sessions.json, ...")
    parser.add_argument("--db", type=Path, default=Path(DEFAULT_DB_PATH), help="SQLite database path")
    args = parser.parse_args(argv)

    db = Database(args.db)
    try:
        db.initialize()
        import_directory(db, args.data_dir)
        # Standalone goals become embedded activity goals; the timezone is irrelevant here.
        ActivityTracker(db=db, tz=ZoneInfo("UTC")).import_legacy_goals()
    finally:
        db.close()


if __name__ == "__main__":
    main()
