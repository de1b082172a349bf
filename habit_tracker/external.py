"""Secondary time-log source blended into one designated activity.

Some activities are also tracked by an outside service that only exports
per-day totals. Those totals are loaded from a JSON export and attributed to
a single activity by the statistics aggregator.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from .errors import InvalidInputError
from .windows import parse_day_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExternalEntry:
    date: str
    seconds: float


@dataclass(frozen=True, slots=True)
class ExternalSource:
    activity_id: str
    entries: tuple[ExternalEntry, ...] = field(default_factory=tuple)

    def daily_seconds(self) -> dict[date, float]:
        """Total seconds per calendar day, ignoring malformed entries."""
        totals: dict[date, float] = defaultdict(float)
        for entry in self.entries:
            try:
                day = parse_day_key(entry.date)
            except InvalidInputError:
                logger.debug("Skipping external entry with bad date %r", entry.date)
                continue
            if not _valid_seconds(entry.seconds):
                logger.debug("Skipping external entry with bad seconds %r", entry.seconds)
                continue
            totals[day] += entry.seconds
        return dict(totals)


def _valid_seconds(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0


def load_external_source(path: str | Path, activity_id: str) -> ExternalSource:
    """Load ``[{"date": "YYYY-MM-DD", "seconds": n}, ...]`` from a JSON export."""
    file_path = Path(path)
    if not file_path.exists():
        logger.warning("External entries file %s not found; using no external data", file_path)
        return ExternalSource(activity_id=activity_id)

    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Could not read external entries from {file_path}") from exc

    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not isinstance(payload, list):
        raise ValueError(f"External entries in {file_path} must be a list")

    entries: list[ExternalEntry] = []
    for raw in payload:
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object external entry: %r", raw)
            continue
        day = raw.get("date")
        seconds = raw.get("seconds")
        try:
            parse_day_key(day)
        except InvalidInputError:
            logger.warning("Skipping external entry with invalid date: %r", day)
            continue
        if not _valid_seconds(seconds):
            logger.warning("Skipping external entry for %s with invalid seconds: %r", day, seconds)
            continue
        entries.append(ExternalEntry(date=day, seconds=seconds))

    logger.info("Loaded %d external entries for activity %s", len(entries), activity_id)
    return ExternalSource(activity_id=activity_id, entries=tuple(entries))
