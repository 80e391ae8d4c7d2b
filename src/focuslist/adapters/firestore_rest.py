"""Firestore REST adapter - HTTP client for the users/{uid}/tasks collection."""

import asyncio
import logging
import re
from datetime import datetime, timezone

import requests

from focuslist.core.tasks import Priority, Task, TaskDraft
from focuslist.errors import MutationFailure, SubscriptionFailure, ValidationFailure
from focuslist.ports.task_store import ErrorCallback, SnapshotCallback, Unsubscribe

logger = logging.getLogger(__name__)

API_BASE = "https://firestore.googleapis.com/v1"
PAGE_SIZE = 300

LOAD_FAILED = "Failed to load tasks. Please check your connection."
CREATE_FAILED = "Failed to create task. Please try again."
UPDATE_FAILED = "Failed to update task. Please try again."
DELETE_FAILED = "Failed to delete task. Please try again."

_FRACTION = re.compile(r"\.(\d{6})\d*")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, dropping precision beyond microseconds."""
    value = _FRACTION.sub(r".\1", value.replace("Z", "+00:00"))
    return datetime.fromisoformat(value)


def format_timestamp(value: datetime) -> str:
    """Format an aware datetime as an RFC 3339 UTC timestamp."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def encode_draft(draft: TaskDraft) -> dict:
    """Firestore typed field map for a new task."""
    return {
        "title": {"stringValue": draft.title},
        "description": {"stringValue": draft.description},
        "deadline": {"timestampValue": format_timestamp(draft.deadline)},
        "priority": {"stringValue": draft.priority.name},
        "isCompleted": {"booleanValue": False},
    }


def decode_document(doc: dict) -> Task:
    """Create Task from a Firestore document resource."""
    fields = doc.get("fields", {})

    def field(name: str, kind: str, default=None):
        return fields.get(name, {}).get(kind, default)

    created = field("createdAt", "timestampValue") or doc["createTime"]
    return Task(
        id=doc["name"].rsplit("/", 1)[-1],
        title=field("title", "stringValue", ""),
        description=field("description", "stringValue", ""),
        created_at=parse_timestamp(created),
        deadline=parse_timestamp(field("deadline", "timestampValue")),
        priority=Priority.parse(field("priority", "stringValue", "MEDIUM")),
        is_completed=bool(field("isCompleted", "booleanValue", False)),
    )


class FirestoreTaskStore:
    """
    Firestore REST adapter.

    Implements TaskStore protocol. HTTP calls run in worker threads; the
    live listing is a polling loop on the event loop that emits a snapshot
    whenever the listing changes. No business logic - just I/O.
    """

    def __init__(
        self,
        project: str,
        token: str = "",
        poll_interval: float = 5.0,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.project = project
        self.token = token
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._session = session or requests.Session()

    def _collection_url(self, user_id: str) -> str:
        return f"{API_BASE}/projects/{self.project}/databases/(default)/documents/users/{user_id}/tasks"

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, url: str, failure: str, **kwargs) -> dict:
        """Make an API request, mapping transport and HTTP errors to MutationFailure."""
        try:
            resp = self._session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Firestore {method} {url} failed: {e}")
            raise MutationFailure(failure) from e
        return resp.json() if resp.content else {}

    def list_tasks(self, user_id: str) -> list[Task]:
        """Fetch the full listing, following page tokens."""
        url = self._collection_url(user_id)
        params: dict[str, str | int] = {"pageSize": PAGE_SIZE}
        documents = []

        while True:
            try:
                resp = self._session.get(url, params=params, headers=self._headers(), timeout=self.timeout)
                resp.raise_for_status()
                data = resp.json()
            except (requests.RequestException, ValueError) as e:
                logger.error(f"Error subscribing to tasks: {e}")
                raise SubscriptionFailure(LOAD_FAILED) from e

            documents.extend(data.get("documents", []))
            token = data.get("nextPageToken")
            if not token:
                break
            params["pageToken"] = token

        try:
            return [decode_document(doc) for doc in documents]
        except (KeyError, ValueError, TypeError, ValidationFailure) as e:
            logger.error(f"Malformed task document: {e}")
            raise SubscriptionFailure(LOAD_FAILED) from e

    def subscribe(
        self,
        user_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        poller = asyncio.get_running_loop().create_task(self._poll(user_id, on_snapshot, on_error))

        def _unsubscribe() -> None:
            poller.cancel()

        return _unsubscribe

    async def _poll(self, user_id: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> None:
        last: list[Task] | None = None
        failing = False
        while True:
            try:
                tasks = await asyncio.to_thread(self.list_tasks, user_id)
            except SubscriptionFailure as e:
                # Report once per outage; resume snapshots when it recovers
                if not failing:
                    on_error(e)
                failing = True
                last = None
            else:
                failing = False
                if tasks != last:
                    on_snapshot(tasks)
                    last = tasks
            await asyncio.sleep(self.poll_interval)

    async def create(self, user_id: str, draft: TaskDraft) -> Task:
        doc = await asyncio.to_thread(
            self._request,
            "POST",
            self._collection_url(user_id),
            CREATE_FAILED,
            json={"fields": encode_draft(draft)},
        )
        try:
            return decode_document(doc)
        except (KeyError, ValueError, TypeError, ValidationFailure) as e:
            raise MutationFailure(CREATE_FAILED) from e

    async def set_completed(self, user_id: str, task_id: str, completed: bool) -> None:
        await asyncio.to_thread(
            self._request,
            "PATCH",
            f"{self._collection_url(user_id)}/{task_id}",
            UPDATE_FAILED,
            params={"updateMask.fieldPaths": "isCompleted", "currentDocument.exists": "true"},
            json={"fields": {"isCompleted": {"booleanValue": completed}}},
        )

    async def delete(self, user_id: str, task_id: str) -> None:
        await asyncio.to_thread(
            self._request,
            "DELETE",
            f"{self._collection_url(user_id)}/{task_id}",
            DELETE_FAILED,
        )
