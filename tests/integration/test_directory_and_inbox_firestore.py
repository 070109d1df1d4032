"""Firestore directory provider, notification inbox and activity log."""

from datetime import UTC, datetime

import pytest

from taskboard.infrastructure.exceptions import StorageUnavailableException
from taskboard.infrastructure.firebase._rest_encoding import decode_document, encode_document
from taskboard.infrastructure.firebase.repositories import FirestoreDirectoryProvider
from taskboard.infrastructure.services import FirestoreActivityLog, FirestoreNotificationService

ORGANIZATION = {
    "name": "Robotics Club",
    "president": {"id": "p1", "name": "Pat", "profilePicUrl": "https://img.example/p1.png"},
    "officers": [{"id": "o1", "name": "Ana"}],
    "members": [{"id": "m1", "name": "Alice"}, {"name": "missing id"}],
    "committees": [
        {
            "id": "c1",
            "name": "Logistics",
            "head": {"id": "m4", "name": "Dave"},
            "members": [{"id": "m1", "name": "Alice (committee copy)"}, {"id": "m2", "name": "Bob"}],
        },
        {"name": "No id committee"},
    ],
}


async def test_directory_collects_roster_and_committees(firestore_client, fake_firestore) -> None:
    fake_firestore.put("organizations/org-1", encode_document(ORGANIZATION)["fields"])

    directory = await FirestoreDirectoryProvider(firestore_client).load("org-1")

    assert {m.id for m in directory.members()} == {"p1", "o1", "m1", "m2", "m4"}
    assert directory.get_member("m1").name == "Alice"
    assert directory.get_member("p1").profile_ref == "https://img.example/p1.png"
    committee = directory.get_committee("c1")
    assert committee.head_id == "m4"
    assert committee.member_set() == frozenset({"m1", "m2", "m4"})
    assert [c.id for c in directory.committees()] == ["c1"]


async def test_unknown_organization_is_empty_directory(firestore_client) -> None:
    directory = await FirestoreDirectoryProvider(firestore_client).load("ghost")
    assert directory.get_member("m1") is None
    assert directory.committees() == []


async def test_directory_http_error(firestore_client, fake_firestore) -> None:
    fake_firestore.fail_with = 500
    with pytest.raises(StorageUnavailableException):
        await FirestoreDirectoryProvider(firestore_client).load("org-1")


async def test_notification_written_to_user_inbox(firestore_client, fake_firestore) -> None:
    await FirestoreNotificationService(firestore_client).notify("m1", "New task: X", "Body")

    (path,) = fake_firestore.docs
    assert path.startswith("notifications/m1/userNotifications/")
    doc = decode_document(fake_firestore.docs[path])
    assert doc["subject"] == "New task: X"
    assert doc["message"] == "Body"
    assert doc["isRead"] is False
    assert doc["type"] == "task"


async def test_activity_log_entry(firestore_client, fake_firestore) -> None:
    at = datetime(2024, 3, 5, 12, 0, tzinfo=UTC)
    await FirestoreActivityLog(firestore_client).append("org-1", "Ana created task 'X'", "Ana", at)

    (path,) = fake_firestore.docs
    assert path.startswith("studentlogs/org-1/activitylogs/")
    assert decode_document(fake_firestore.docs[path]) == {
        "userName": "Ana",
        "description": "Ana created task 'X'",
        "timestamp": at,
    }
