"""In-process task store adapter."""

import asyncio
import logging
from contextlib import suppress
from uuid import uuid4

from focuslist.core.tasks import Task, TaskDraft
from focuslist.errors import MutationFailure, SubscriptionFailure, TaskNotFoundError, ValidationFailure
from focuslist.ports.clock import Clock
from focuslist.ports.task_store import ErrorCallback, SnapshotCallback, Unsubscribe

from .clocks import SystemClock

logger = logging.getLogger(__name__)

_Listener = tuple[SnapshotCallback, ErrorCallback]

# Raised by unreadable or malformed stored data
_READ_ERRORS = (OSError, ValueError, KeyError, TypeError, AttributeError, ValidationFailure)


class MemoryTaskStore:
    """
    Task store held in memory.

    Implements TaskStore protocol. Subscribers get the current listing right
    after subscribing and again after every write, delivered on the event
    loop rather than inside the writing call.
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or SystemClock()
        self._tasks: dict[str, dict[str, Task]] = {}
        self._listeners: dict[str, list[_Listener]] = {}

    def _load(self, user_id: str) -> dict[str, Task]:
        """Current tasks for a user, keyed by id."""
        return dict(self._tasks.get(user_id, {}))

    def _save(self, user_id: str, tasks: dict[str, Task]) -> None:
        self._tasks[user_id] = tasks

    def list_tasks(self, user_id: str) -> list[Task]:
        """Full listing for a user. Raises SubscriptionFailure if unreadable."""
        try:
            return list(self._load(user_id).values())
        except _READ_ERRORS as e:
            logger.error(f"Error loading tasks for {user_id}: {e}")
            raise SubscriptionFailure("Failed to load tasks. Please check your connection.") from e

    def subscribe(
        self,
        user_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        listener = (on_snapshot, on_error)
        self._listeners.setdefault(user_id, []).append(listener)
        asyncio.get_running_loop().call_soon(self._deliver, user_id, listener)

        def _unsubscribe() -> None:
            with suppress(ValueError):
                self._listeners.get(user_id, []).remove(listener)

        return _unsubscribe

    def _deliver(self, user_id: str, listener: _Listener) -> None:
        if listener not in self._listeners.get(user_id, []):
            return
        on_snapshot, on_error = listener
        try:
            tasks = self.list_tasks(user_id)
        except SubscriptionFailure as e:
            on_error(e)
            return
        on_snapshot(tasks)

    def _publish(self, user_id: str) -> None:
        loop = asyncio.get_running_loop()
        for listener in list(self._listeners.get(user_id, [])):
            loop.call_soon(self._deliver, user_id, listener)

    def _write(self, user_id: str, tasks: dict[str, Task], message: str) -> None:
        try:
            self._save(user_id, tasks)
        except OSError as e:
            logger.error(f"Error saving tasks for {user_id}: {e}")
            raise MutationFailure(message) from e
        self._publish(user_id)

    def _load_for_write(self, user_id: str, message: str) -> dict[str, Task]:
        try:
            return self._load(user_id)
        except _READ_ERRORS as e:
            logger.error(f"Error loading tasks for {user_id}: {e}")
            raise MutationFailure(message) from e

    async def create(self, user_id: str, draft: TaskDraft) -> Task:
        message = "Failed to create task. Please try again."
        tasks = self._load_for_write(user_id, message)
        task = Task(
            id=uuid4().hex,
            title=draft.title,
            description=draft.description,
            deadline=draft.deadline,
            priority=draft.priority,
            created_at=self.clock.now(),
        )
        tasks[task.id] = task
        self._write(user_id, tasks, message)
        return task

    async def set_completed(self, user_id: str, task_id: str, completed: bool) -> None:
        message = "Failed to update task. Please try again."
        tasks = self._load_for_write(user_id, message)
        if task_id not in tasks:
            raise TaskNotFoundError(task_id)
        tasks[task_id] = tasks[task_id].with_completed(completed)
        self._write(user_id, tasks, message)

    async def delete(self, user_id: str, task_id: str) -> None:
        message = "Failed to delete task. Please try again."
        tasks = self._load_for_write(user_id, message)
        if task_id not in tasks:
            raise TaskNotFoundError(task_id)
        del tasks[task_id]
        self._write(user_id, tasks, message)
