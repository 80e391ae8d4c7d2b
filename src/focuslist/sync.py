"""Task synchronization - the single owner of a session's task collection.

Snapshots from the store arrive through callbacks and are queued; one
reconciliation loop per session applies them in arrival order. Mutation
intents update the collection optimistically, then await the store. Nothing
is rolled back on failure: the next snapshot is authoritative.
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable
from uuid import uuid4

from .adapters.clocks import SystemClock
from .core.deadlines import DeadlineInfo, classify_deadline
from .core.tasks import FocusMode, ProductivityStats, Task, TaskDraft, validate_draft
from .core.views import SyncState, TaskView, build_view, select_stats, select_visible
from .errors import FocusListError, MutationFailure, NotAuthenticatedError, SubscriptionFailure, TaskNotFoundError
from .ports.clock import Clock
from .ports.session import SessionProvider
from .ports.task_store import TaskStore

logger = logging.getLogger(__name__)

PROVISIONAL_PREFIX = "pending-"

Listener = Callable[["TaskSync"], None]


@dataclass(frozen=True)
class _Snapshot:
    generation: int
    tasks: tuple[Task, ...]


@dataclass(frozen=True)
class _Failure:
    generation: int
    error: SubscriptionFailure


class TaskSync:
    """
    Reconciles the local task collection with the store.

    Must be driven from a running asyncio event loop. All collection updates
    happen on that loop, so snapshots and mutations never interleave within
    a single update.
    """

    def __init__(self, store: TaskStore, clock: Clock | None = None):
        self.store = store
        self.clock = clock or SystemClock()
        self._tasks: tuple[Task, ...] = ()
        self._state = SyncState.UNAUTHENTICATED
        self._user_id: str | None = None
        self._focus_mode = FocusMode.ALL
        self._error: FocusListError | None = None
        # Bumped on every session start/end; stale callbacks compare against it
        self._generation = 0
        self._unsubscribe: Callable[[], None] | None = None
        self._events: asyncio.Queue | None = None
        self._loop_task: asyncio.Task | None = None
        # Cancelled loop tasks not yet finished; awaited by aclose()
        self._stopping: set[asyncio.Task] = set()
        self._synced: asyncio.Event | None = None
        self._listeners: list[Listener] = []
        self._session_unsubscribe: Callable[[], None] | None = None

    # ============== Read side ==============

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def tasks(self) -> tuple[Task, ...]:
        """The full, unfiltered collection (read-only)."""
        return self._tasks

    @property
    def focus_mode(self) -> FocusMode:
        return self._focus_mode

    @property
    def error(self) -> FocusListError | None:
        """Most recent failure, kept until clear_error()."""
        return self._error

    def clear_error(self) -> None:
        self._error = None
        self._notify()

    def set_focus_mode(self, mode: FocusMode | str) -> None:
        self._focus_mode = FocusMode.parse(mode)
        self._notify()

    def visible_tasks(self) -> tuple[Task, ...]:
        """Tasks in the current focus mode, most urgent first."""
        return select_visible(self._tasks, self._focus_mode, self.clock.now())

    def stats(self) -> ProductivityStats:
        return select_stats(self._tasks, self.clock.now())

    def view(self) -> TaskView:
        return build_view(self._tasks, self._focus_mode, self.clock.now(), self._state, self._error)

    def classify(self, task: Task) -> DeadlineInfo:
        return classify_deadline(task.deadline, self.clock.now())

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call listener after every change. Returns a function that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ============== Session lifecycle ==============

    def start_session(self, user_id: str) -> None:
        """Open the live listing for a user, replacing any active session."""
        if self._user_id is not None:
            self.end_session()

        self._generation += 1
        generation = self._generation
        self._user_id = user_id
        self._tasks = ()
        self._focus_mode = FocusMode.ALL
        self._error = None
        self._state = SyncState.SYNCING
        self._events = asyncio.Queue()
        self._synced = asyncio.Event()
        self._loop_task = asyncio.get_running_loop().create_task(
            self._reconcile(self._events), name=f"focuslist-sync-{user_id}"
        )
        logger.info(f"Starting task sync for user {user_id}")

        try:
            self._unsubscribe = self.store.subscribe(
                user_id,
                partial(self._on_snapshot, generation),
                partial(self._on_error, generation),
            )
        except SubscriptionFailure as e:
            self._fail(e)
            return
        self._notify()

    def end_session(self) -> None:
        """Stop listening and discard the collection. Late callbacks become no-ops."""
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        self._generation += 1
        try:
            if unsubscribe is not None:
                unsubscribe()
        finally:
            if self._loop_task is not None:
                self._loop_task.cancel()
                self._stopping.add(self._loop_task)
                self._loop_task.add_done_callback(self._stopping.discard)
            if self._synced is not None:
                self._synced.set()
            if self._user_id is not None:
                logger.info(f"Ended task sync for user {self._user_id}")
            self._loop_task = None
            self._events = None
            self._synced = None
            self._user_id = None
            self._tasks = ()
            self._focus_mode = FocusMode.ALL
            self._error = None
            self._state = SyncState.UNAUTHENTICATED
            self._notify()

    async def aclose(self) -> None:
        """Stop following any session, end it, and wait for its loop to exit."""
        if self._session_unsubscribe is not None:
            self._session_unsubscribe()
            self._session_unsubscribe = None
        if self._user_id is not None:
            self.end_session()
        if self._stopping:
            await asyncio.gather(*self._stopping, return_exceptions=True)

    def follow(self, session: SessionProvider) -> Callable[[], None]:
        """Start and end sessions as the provider's user changes."""
        if self._session_unsubscribe is not None:
            self._session_unsubscribe()
        self._session_unsubscribe = session.on_change(self._on_session_change)
        self._on_session_change(session.user_id)
        return self._session_unsubscribe

    def _on_session_change(self, user_id: str | None) -> None:
        if user_id == self._user_id:
            return
        if user_id is None:
            self.end_session()
        else:
            self.start_session(user_id)

    async def wait_until_synced(self) -> SyncState:
        """Wait for the first snapshot or subscription failure."""
        if self._synced is None:
            raise NotAuthenticatedError("Not signed in.")
        await self._synced.wait()
        return self._state

    async def settle(self) -> None:
        """Wait until every snapshot delivered so far has been applied."""
        await asyncio.sleep(0)
        if self._events is not None:
            await self._events.join()

    # ============== Snapshot stream ==============

    def _on_snapshot(self, generation: int, tasks: list[Task]) -> None:
        if generation != self._generation or self._events is None:
            logger.debug("Ignoring snapshot delivered after session ended")
            return
        self._events.put_nowait(_Snapshot(generation, tuple(tasks)))

    def _on_error(self, generation: int, error: SubscriptionFailure) -> None:
        if generation != self._generation or self._events is None:
            logger.debug("Ignoring subscription error delivered after session ended")
            return
        self._events.put_nowait(_Failure(generation, error))

    async def _reconcile(self, events: asyncio.Queue) -> None:
        while True:
            event = await events.get()
            try:
                if event.generation != self._generation:
                    continue
                if isinstance(event, _Snapshot):
                    self._apply_snapshot(event.tasks)
                else:
                    self._fail(event.error)
            finally:
                events.task_done()

    def _apply_snapshot(self, tasks: tuple[Task, ...]) -> None:
        self._tasks = tasks
        self._state = SyncState.LIVE
        if self._synced is not None:
            self._synced.set()
        logger.debug(f"Applied snapshot with {len(tasks)} tasks")
        self._notify()

    def _fail(self, error: SubscriptionFailure) -> None:
        # Last-known-good collection is kept
        self._state = SyncState.ERROR
        self._error = error
        if self._synced is not None:
            self._synced.set()
        logger.warning(f"Task subscription failed: {error}")
        self._notify()

    # ============== Mutation intents ==============

    async def add_task(self, draft: TaskDraft) -> Task:
        """Validate and create a task, showing it immediately."""
        user_id = self._require_user()
        now = self.clock.now()
        draft = validate_draft(draft, now)

        provisional = Task(
            id=f"{PROVISIONAL_PREFIX}{uuid4().hex}",
            title=draft.title,
            description=draft.description,
            deadline=draft.deadline,
            priority=draft.priority,
            created_at=now,
        )
        generation = self._generation
        self._set_tasks(self._tasks + (provisional,))

        try:
            created = await self.store.create(user_id, draft)
        except MutationFailure as e:
            self._mutation_failed(generation, "create", e)
            raise

        if generation == self._generation:
            ids = {t.id for t in self._tasks}
            if created.id in ids:
                self._set_tasks(tuple(t for t in self._tasks if t.id != provisional.id))
            elif provisional.id in ids:
                self._set_tasks(tuple(created if t.id == provisional.id else t for t in self._tasks))
        logger.info(f"Created task {created.id}")
        return created

    async def toggle_complete(self, task_id: str) -> Task:
        """Flip a task's completion flag. Returns the optimistic task."""
        user_id = self._require_user()
        task = self._find(task_id)
        toggled = task.with_completed(not task.is_completed)
        generation = self._generation
        self._set_tasks(tuple(toggled if t.id == task_id else t for t in self._tasks))

        try:
            await self.store.set_completed(user_id, task_id, toggled.is_completed)
        except MutationFailure as e:
            self._mutation_failed(generation, "toggle", e)
            raise
        return toggled

    async def remove_task(self, task_id: str) -> None:
        """Delete a task, hiding it immediately."""
        user_id = self._require_user()
        self._find(task_id)
        generation = self._generation
        self._set_tasks(tuple(t for t in self._tasks if t.id != task_id))

        try:
            await self.store.delete(user_id, task_id)
        except MutationFailure as e:
            self._mutation_failed(generation, "delete", e)
            raise
        logger.info(f"Deleted task {task_id}")

    def _require_user(self) -> str:
        if self._user_id is None:
            raise NotAuthenticatedError("Not signed in.")
        return self._user_id

    def _find(self, task_id: str) -> Task:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def _set_tasks(self, tasks: tuple[Task, ...]) -> None:
        self._tasks = tasks
        self._notify()

    def _mutation_failed(self, generation: int, action: str, error: MutationFailure) -> None:
        logger.warning(f"Task {action} failed: {error}")
        if generation == self._generation:
            self._error = error
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Task listener failed")
