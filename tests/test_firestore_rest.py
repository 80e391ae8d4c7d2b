"""Tests for the Firestore REST adapter."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import requests

from focuslist.adapters.firestore_rest import (
    FirestoreTaskStore,
    decode_document,
    encode_draft,
    format_timestamp,
    parse_timestamp,
)
from focuslist.core.tasks import Priority, TaskDraft
from focuslist.errors import MutationFailure, SubscriptionFailure

COLLECTION = "https://firestore.googleapis.com/v1/projects/demo/databases/(default)/documents/users/u1/tasks"


def make_doc(id="abc", title="Write report", completed=False, priority="HIGH"):
    return {
        "name": f"projects/demo/databases/(default)/documents/users/u1/tasks/{id}",
        "createTime": "2025-01-15T14:00:00.123456789Z",
        "fields": {
            "title": {"stringValue": title},
            "description": {"stringValue": ""},
            "deadline": {"timestampValue": "2025-01-16T22:00:00Z"},
            "priority": {"stringValue": priority},
            "isCompleted": {"booleanValue": completed},
        },
    }


def make_response(payload, status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.content = b"{}"
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def store(session):
    return FirestoreTaskStore("demo", token="secret", poll_interval=0.01, session=session)


class TestCodec:
    def test_parse_timestamp_truncates_nanoseconds(self):
        assert parse_timestamp("2025-01-15T14:00:00.123456789Z") == datetime(
            2025, 1, 15, 14, 0, 0, 123456, tzinfo=timezone.utc
        )

    def test_parse_timestamp_without_fraction(self):
        assert parse_timestamp("2025-01-16T22:00:00Z") == datetime(2025, 1, 16, 22, tzinfo=timezone.utc)

    def test_format_timestamp_converts_to_utc(self):
        local = datetime(2025, 1, 16, 17, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert format_timestamp(local) == "2025-01-16T22:00:00Z"

    def test_decode_document(self):
        task = decode_document(make_doc(completed=True))
        assert task.id == "abc"
        assert task.title == "Write report"
        assert task.priority is Priority.HIGH
        assert task.is_completed is True
        assert task.created_at.microsecond == 123456

    def test_decode_prefers_created_at_field(self):
        doc = make_doc()
        doc["fields"]["createdAt"] = {"timestampValue": "2025-01-10T08:00:00Z"}
        assert decode_document(doc).created_at == datetime(2025, 1, 10, 8, tzinfo=timezone.utc)

    def test_encode_draft(self):
        draft = TaskDraft(
            title="Write report",
            deadline=datetime(2025, 1, 16, 22, tzinfo=timezone.utc),
            priority=Priority.LOW,
        )
        fields = encode_draft(draft)
        assert fields["title"] == {"stringValue": "Write report"}
        assert fields["deadline"] == {"timestampValue": "2025-01-16T22:00:00Z"}
        assert fields["priority"] == {"stringValue": "LOW"}
        assert fields["isCompleted"] == {"booleanValue": False}


class TestListTasks:
    def test_fetches_collection_with_auth(self, store, session):
        session.get.return_value = make_response({"documents": [make_doc()]})
        tasks = store.list_tasks("u1")

        assert [t.id for t in tasks] == ["abc"]
        args, kwargs = session.get.call_args
        assert args[0] == COLLECTION
        assert kwargs["headers"] == {"Authorization": "Bearer secret"}

    def test_follows_page_tokens(self, store, session):
        session.get.side_effect = [
            make_response({"documents": [make_doc("a")], "nextPageToken": "p2"}),
            make_response({"documents": [make_doc("b")]}),
        ]
        tasks = store.list_tasks("u1")

        assert [t.id for t in tasks] == ["a", "b"]
        assert session.get.call_args_list[1].kwargs["params"]["pageToken"] == "p2"

    def test_empty_collection(self, store, session):
        session.get.return_value = make_response({})
        assert store.list_tasks("u1") == []

    def test_http_error_is_subscription_failure(self, store, session):
        session.get.return_value = make_response({}, status=403)
        with pytest.raises(SubscriptionFailure, match="check your connection"):
            store.list_tasks("u1")

    def test_connection_error_is_subscription_failure(self, store, session):
        session.get.side_effect = requests.ConnectionError("offline")
        with pytest.raises(SubscriptionFailure):
            store.list_tasks("u1")

    def test_malformed_document_is_subscription_failure(self, store, session):
        session.get.return_value = make_response({"documents": [{"name": "x"}]})
        with pytest.raises(SubscriptionFailure):
            store.list_tasks("u1")

    def test_no_token_sends_no_auth_header(self, session):
        store = FirestoreTaskStore("demo", session=session)
        session.get.return_value = make_response({})
        store.list_tasks("u1")
        assert session.get.call_args.kwargs["headers"] == {}


class TestSubscribe:
    def test_emits_only_when_listing_changes(self, store, session):
        session.get.return_value = make_response({"documents": [make_doc()]})
        snapshots, errors = [], []

        async def scenario():
            unsubscribe = store.subscribe("u1", snapshots.append, errors.append)
            await asyncio.sleep(0.1)
            unsubscribe()

        asyncio.run(scenario())
        assert session.get.call_count > 1
        assert len(snapshots) == 1
        assert errors == []

    def test_reports_outage_once(self, store, session):
        session.get.side_effect = requests.ConnectionError("offline")
        snapshots, errors = [], []

        async def scenario():
            unsubscribe = store.subscribe("u1", snapshots.append, errors.append)
            await asyncio.sleep(0.1)
            unsubscribe()

        asyncio.run(scenario())
        assert len(errors) == 1
        assert isinstance(errors[0], SubscriptionFailure)
        assert snapshots == []


class TestMutations:
    def test_create_posts_fields(self, store, session):
        session.request.return_value = make_response(make_doc("new"))
        draft = TaskDraft(title="Write report", deadline=datetime(2025, 1, 16, 22, tzinfo=timezone.utc))

        task = asyncio.run(store.create("u1", draft))

        assert task.id == "new"
        args, kwargs = session.request.call_args
        assert args == ("POST", COLLECTION)
        assert kwargs["json"] == {"fields": encode_draft(draft)}

    def test_set_completed_patches_one_field(self, store, session):
        session.request.return_value = make_response(make_doc(completed=True))
        asyncio.run(store.set_completed("u1", "abc", True))

        args, kwargs = session.request.call_args
        assert args == ("PATCH", f"{COLLECTION}/abc")
        assert kwargs["params"]["updateMask.fieldPaths"] == "isCompleted"
        assert kwargs["json"] == {"fields": {"isCompleted": {"booleanValue": True}}}

    def test_delete(self, store, session):
        resp = make_response({})
        resp.content = b""
        session.request.return_value = resp
        asyncio.run(store.delete("u1", "abc"))

        args, _ = session.request.call_args
        assert args == ("DELETE", f"{COLLECTION}/abc")

    @pytest.mark.parametrize(
        "call,message",
        [
            (lambda s: s.set_completed("u1", "abc", True), "Failed to update task"),
            (lambda s: s.delete("u1", "abc"), "Failed to delete task"),
        ],
    )
    def test_http_errors_are_mutation_failures(self, store, session, call, message):
        session.request.return_value = make_response({}, status=500)
        with pytest.raises(MutationFailure, match=message):
            asyncio.run(call(store))

    def test_create_failure(self, store, session):
        session.request.side_effect = requests.Timeout("slow")
        draft = TaskDraft(title="Write report", deadline=datetime(2025, 1, 16, 22, tzinfo=timezone.utc))
        with pytest.raises(MutationFailure, match="Failed to create task"):
            asyncio.run(store.create("u1", draft))
