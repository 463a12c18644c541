"""Pure computations for the project reports."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime, timedelta
from typing import Any


def percent(done: int, total: int) -> int:
    """Completion percentage, half rounding up; 0 for an empty milestone."""
    if total <= 0:
        return 0
    return math.floor(done * 100 / total + 0.5)


def milestone_progress(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "milestone_id": row["milestone_id"],
            "title": row["title"],
            "total": row["total"],
            "done": row["done"],
            "progress": percent(row["done"], row["total"]),
        }
        for row in rows
    ]


def _day(value: datetime | None) -> date | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.date()


def burndown_points(
    tasks: Iterable[Mapping[str, Any]], today: date | None = None
) -> list[dict[str, Any]]:
    """Daily ``{day, total, done}`` points for a project's tasks.

    The series runs from the first creation day to the later of the last
    update and today (UTC days). ``done`` counts tasks in the done state
    whose last update falls on or before the day, an estimate since no
    status history is kept. A project with no tasks has no points.
    """
    tasks = list(tasks)
    created = [d for d in (_day(t["created_at"]) for t in tasks) if d is not None]
    if not created:
        return []
    updated = [d for d in (_day(t["updated_at"]) for t in tasks) if d is not None]
    today = today or datetime.now(UTC).date()
    start = min(created)
    end = max([today, *updated])

    points = []
    day = start
    while day <= end:
        total = sum(1 for d in created if d <= day)
        done = sum(
            1
            for t in tasks
            if t["status"] == "done"
            and (d := _day(t["updated_at"])) is not None
            and d <= day
        )
        points.append({"day": day.isoformat(), "total": total, "done": done})
        day += timedelta(days=1)
    return points
