"""Derived views over a task collection - pure selectors."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import lru_cache
from typing import Iterable

from focuslist.errors import FocusListError

from .focus import filter_by_focus
from .scoring import sort_by_urgency
from .stats import compute_stats
from .tasks import FocusMode, ProductivityStats, Task


class SyncState(Enum):
    """Lifecycle of the live task listing."""

    UNAUTHENTICATED = "unauthenticated"
    SYNCING = "syncing"
    LIVE = "live"
    ERROR = "error"


@dataclass(frozen=True)
class TaskView:
    """Everything the presentation layer needs for one render."""

    tasks: tuple[Task, ...]
    focus_mode: FocusMode
    stats: ProductivityStats
    as_of: datetime
    state: SyncState = SyncState.LIVE
    error: FocusListError | None = None


@lru_cache(maxsize=16)
def _visible(tasks: tuple[Task, ...], mode: FocusMode, now: datetime) -> tuple[Task, ...]:
    return tuple(sort_by_urgency(filter_by_focus(tasks, mode, now), now))


@lru_cache(maxsize=16)
def _stats(tasks: tuple[Task, ...], now: datetime) -> ProductivityStats:
    return compute_stats(tasks, now)


def select_visible(
    tasks: Iterable[Task],
    mode: FocusMode = FocusMode.ALL,
    now: datetime | None = None,
) -> tuple[Task, ...]:
    """Filter by focus mode, then order by urgency."""
    now = now or datetime.now().astimezone()
    return _visible(tuple(tasks), mode, now)


def select_stats(tasks: Iterable[Task], now: datetime | None = None) -> ProductivityStats:
    now = now or datetime.now().astimezone()
    return _stats(tuple(tasks), now)


def build_view(
    tasks: Iterable[Task],
    mode: FocusMode = FocusMode.ALL,
    now: datetime | None = None,
    state: SyncState = SyncState.LIVE,
    error: FocusListError | None = None,
) -> TaskView:
    """Assemble the visible tasks, stats and sync status for one instant."""
    now = now or datetime.now().astimezone()
    tasks = tuple(tasks)
    return TaskView(
        tasks=select_visible(tasks, mode, now),
        focus_mode=mode,
        stats=select_stats(tasks, now),
        as_of=now,
        state=state,
        error=error,
    )
