"""Urgency scoring and sorting - pure functions."""

import math
from datetime import datetime
from typing import Iterable

from .tasks import Task

# Flat score multiplier for overdue tasks and tasks due within the hour
PLATEAU = 1000


def hours_remaining(task: Task, now: datetime) -> float:
    """Fractional hours until the deadline (negative when overdue)."""
    return (task.deadline - now).total_seconds() / 3600


def urgency_score(task: Task, now: datetime | None = None) -> float:
    """
    Dynamic urgency score. Higher means more urgent.

    - Completed: -inf, always last.
    - Overdue: weight * 1000 * hours overdue, growing without bound.
    - Due within the hour: weight * 1000.
    - Otherwise: weight / hours remaining.

    Only meaningful relative to other scores.
    """
    if task.is_completed:
        return -math.inf

    now = now or datetime.now().astimezone()
    hours = hours_remaining(task, now)
    weight = task.priority.weight

    if hours <= 0:
        return weight * PLATEAU * abs(hours)
    if hours < 1:
        return weight * PLATEAU
    return weight * (1 / hours)


def sort_by_urgency(tasks: Iterable[Task], now: datetime | None = None) -> list[Task]:
    """
    Sort tasks by urgency score (descending), then id for equal scores.

    Returns a new list; the input is not modified.
    """
    now = now or datetime.now().astimezone()
    return sorted(tasks, key=lambda t: (-urgency_score(t, now), t.id))
