"""Task store interface."""

from typing import Callable, Protocol

from focuslist.core.tasks import Task, TaskDraft
from focuslist.errors import SubscriptionFailure

SnapshotCallback = Callable[[list[Task]], None]
ErrorCallback = Callable[[SubscriptionFailure], None]
Unsubscribe = Callable[[], None]


class TaskStore(Protocol):
    """
    Interface for the document store holding each user's tasks.

    Callbacks are invoked on the event loop thread. Every method may fail;
    failures surface as SubscriptionFailure (through on_error) or
    MutationFailure (raised), never as silent no-ops.
    """

    def subscribe(
        self,
        user_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        """Deliver the full task listing now and on every change."""
        ...

    async def create(self, user_id: str, draft: TaskDraft) -> Task:
        """Persist a new task. The store assigns id and created_at."""
        ...

    async def set_completed(self, user_id: str, task_id: str, completed: bool) -> None:
        """Set a task's completion flag."""
        ...

    async def delete(self, user_id: str, task_id: str) -> None:
        """Permanently delete a task."""
        ...
