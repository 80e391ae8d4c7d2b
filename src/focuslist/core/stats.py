"""Productivity statistics - pure functions."""

from datetime import datetime
from typing import Iterable

from .deadlines import start_of_day
from .tasks import ProductivityStats, Task


def compute_stats(tasks: Iterable[Task], now: datetime | None = None) -> ProductivityStats:
    """
    Aggregate counts over the full, unfiltered collection.

    completed_today counts completed tasks *created* since midnight; there is
    no completion timestamp to key on.
    """
    now = now or datetime.now().astimezone()
    midnight = start_of_day(now)
    tasks = list(tasks)

    return ProductivityStats(
        completed_today=sum(1 for t in tasks if t.is_completed and t.created_at >= midnight),
        pending_tasks=sum(1 for t in tasks if not t.is_completed),
        overdue_count=sum(1 for t in tasks if t.is_overdue(now)),
    )
