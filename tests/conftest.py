"""Pytest configuration and fixtures for taskboard.

Fixtures wire the real use cases to in-memory adapters: InMemoryTaskRepository,
StaticDirectoryProvider and InProcessChangeFeed. Notifications and activity
log entries are recorded so tests can assert on side effects.
"""

from datetime import UTC, datetime

import pytest

from taskboard.application.services.task_events import TaskEventPublisher
from taskboard.application.use_cases.tasks import SubmissionManager, TaskStore
from taskboard.core.config import get_settings
from taskboard.domain.entities import (
    CommitteeEntity,
    MemberProfile,
    OrganizationDirectory,
    TaskEntity,
)
from taskboard.domain.enums import TaskStatus
from taskboard.infrastructure.memory import InMemoryTaskRepository, StaticDirectoryProvider
from taskboard.infrastructure.messaging import InProcessChangeFeed

ORG_ID = "org-1"


class RecordingNotifier:
    """INotificationService that keeps (recipient_id, subject, body) tuples."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    async def notify(self, recipient_id: str, subject: str, body: str) -> None:
        self.sent.append((recipient_id, subject, body))

    def recipients(self) -> set[str]:
        return {r for r, _, _ in self.sent}


class RecordingActivityLog:
    """IActivityLog that keeps (organization_id, description, actor_name, timestamp)."""

    def __init__(self) -> None:
        self.entries: list[tuple[str, str, str, datetime]] = []

    async def append(
        self,
        organization_id: str,
        description: str,
        actor_name: str,
        timestamp: datetime,
    ) -> None:
        self.entries.append((organization_id, description, actor_name, timestamp))

    def descriptions(self) -> list[str]:
        return [d for _, d, _, _ in self.entries]


def _utc(*args: int) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=UTC)


def _make_task(**overrides) -> TaskEntity:
    """TaskEntity for org-1 running 2024-03-01 09:00 to 2024-03-10 17:00 UTC."""
    data = {
        "id": "task-1",
        "organization_id": ORG_ID,
        "title": "Prepare venue",
        "description": "Book the hall and chairs",
        "start_time": _utc(2024, 3, 1, 9, 0),
        "due_time": _utc(2024, 3, 10, 17, 0),
        "created_by": "Ana Officer",
        "created_by_id": "officer-1",
        "assigned_member_ids": ("m1",),
    }
    data.update(overrides)
    return TaskEntity(**data)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached per process; start each test from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def directory() -> OrganizationDirectory:
    """m1..m4 plus committee c1 (head m4, members m2 and m3)."""
    return OrganizationDirectory(
        members=[
            MemberProfile(id="m1", name="Alice"),
            MemberProfile(id="m2", name="Bob"),
            MemberProfile(id="m3", name="Carol"),
            MemberProfile(id="m4", name="Dave"),
            MemberProfile(id="officer-1", name="Ana Officer"),
        ],
        committees=[
            CommitteeEntity(id="c1", name="Logistics", head_id="m4", member_ids=("m2", "m3")),
            CommitteeEntity(id="c-empty", name="Dormant", member_ids=()),
        ],
    )


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def directory_provider(directory: OrganizationDirectory) -> StaticDirectoryProvider:
    return StaticDirectoryProvider({ORG_ID: directory})


@pytest.fixture
def change_feed() -> InProcessChangeFeed:
    return InProcessChangeFeed()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def activity_log() -> RecordingActivityLog:
    return RecordingActivityLog()


@pytest.fixture
def events(change_feed, activity_log, notifier) -> TaskEventPublisher:
    return TaskEventPublisher(change_feed, activity_log, notifier)


@pytest.fixture
def store(task_repo, directory_provider, events) -> TaskStore:
    return TaskStore(task_repo, directory_provider, events)


@pytest.fixture
def manager(task_repo, events) -> SubmissionManager:
    return SubmissionManager(task_repo, events)


@pytest.fixture
async def seeded_task(task_repo) -> TaskEntity:
    """Default task stored in the repository with status IN_PROGRESS."""
    return await task_repo.create(_make_task(status=TaskStatus.IN_PROGRESS))


@pytest.fixture
def make_task():
    """Factory for TaskEntity with sensible defaults; keyword overrides win."""
    return _make_task
