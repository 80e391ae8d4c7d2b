"""Focus mode filtering - pure functions."""

from datetime import datetime
from typing import Iterable

from .deadlines import is_due_today
from .tasks import FocusMode, Priority, Task


def filter_by_focus(
    tasks: Iterable[Task],
    mode: FocusMode = FocusMode.ALL,
    now: datetime | None = None,
) -> list[Task]:
    """
    Filter tasks to those visible in a focus mode.

    Never reorders; sorting happens afterwards.
    """
    now = now or datetime.now().astimezone()
    match mode:
        case FocusMode.TODAY:
            return [t for t in tasks if not t.is_completed and is_due_today(t.deadline, now)]
        case FocusMode.HIGH_PRIORITY:
            return [t for t in tasks if not t.is_completed and t.priority is Priority.HIGH]
        case _:
            return list(tasks)
