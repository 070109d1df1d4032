"""Composition root: wires repositories, adapters and use cases from Settings.

    engine = await build_engine()
    try:
        task = await engine.store.create(draft, actor_name="Ana")
    finally:
        await engine.aclose()
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from taskboard.application.interfaces.repositories import (
    IDirectoryProvider,
    ITaskRepository,
)
from taskboard.application.interfaces.services import (
    IActivityLog,
    IChangeFeed,
    INotificationService,
)
from taskboard.application.services.assignee_resolver import AssigneeResolver
from taskboard.application.services.attachment_gateway import AttachmentGateway
from taskboard.application.services.task_events import TaskEventPublisher
from taskboard.application.use_cases.tasks.submission_manager import SubmissionManager
from taskboard.application.use_cases.tasks.task_store import TaskStore
from taskboard.core.config import Settings, get_settings
from taskboard.infrastructure.external.storage.factory import StorageFactory
from taskboard.infrastructure.firebase.client import close_firestore, init_firestore
from taskboard.infrastructure.firebase.repositories import (
    FirestoreDirectoryProvider,
    FirestoreTaskRepository,
)
from taskboard.infrastructure.memory import InMemoryTaskRepository, StaticDirectoryProvider
from taskboard.infrastructure.messaging import InProcessChangeFeed, RedisChangeFeed
from taskboard.infrastructure.services import (
    FirestoreActivityLog,
    FirestoreNotificationService,
    LogOnlyActivityLog,
    LogOnlyNotificationService,
)
from taskboard.shared.telemetry.logging import get_logger, setup_logging

logger = get_logger(__name__)


@dataclass
class TaskEngine:
    """Ready-to-use task engine: store, submission manager and their collaborators."""

    store: TaskStore
    submissions: SubmissionManager
    resolver: AssigneeResolver
    attachments: AttachmentGateway
    task_repo: ITaskRepository
    directory_provider: IDirectoryProvider
    change_feed: IChangeFeed
    _closers: list[Callable[[], Awaitable[None]]] = field(default_factory=list)

    async def aclose(self) -> None:
        """Release connections opened by build_engine (Redis, Firestore HTTP pool)."""
        while self._closers:
            closer = self._closers.pop()
            try:
                await closer()
            except Exception:
                logger.exception("Error while closing task engine resource")


async def build_engine(
    settings: Settings | None = None,
    *,
    task_repo: ITaskRepository | None = None,
    directory_provider: IDirectoryProvider | None = None,
    change_feed: IChangeFeed | None = None,
    activity_log: IActivityLog | None = None,
    notifier: INotificationService | None = None,
) -> TaskEngine:
    """Build a TaskEngine for the configured backends.

    Explicit collaborators override the ones the settings would select.

    Args:
        settings: Engine settings; defaults to get_settings().

    Returns:
        Wired TaskEngine. Call aclose() on shutdown.
    """
    settings = settings or get_settings()
    setup_logging(settings)
    closers: list[Callable[[], Awaitable[None]]] = []

    if settings.task_backend == "firestore":
        client = init_firestore(settings)
        closers.append(close_firestore)
        task_repo = task_repo or FirestoreTaskRepository(
            client, append_retries=settings.submission_append_retries
        )
        directory_provider = directory_provider or FirestoreDirectoryProvider(client)
        activity_log = activity_log or FirestoreActivityLog(client)
        notifier = notifier or FirestoreNotificationService(client)
    else:
        task_repo = task_repo or InMemoryTaskRepository()
        directory_provider = directory_provider or StaticDirectoryProvider()
        activity_log = activity_log or LogOnlyActivityLog()
        notifier = notifier or LogOnlyNotificationService()

    if change_feed is None:
        if settings.change_feed_backend == "redis":
            redis_feed = RedisChangeFeed(settings=settings)
            await redis_feed.connect()
            closers.append(redis_feed.disconnect)
            change_feed = redis_feed
        else:
            change_feed = InProcessChangeFeed()

    resolver = AssigneeResolver()
    events = TaskEventPublisher(change_feed, activity_log, notifier)
    attachments = AttachmentGateway(
        StorageFactory.create_storage_service(settings), settings.max_upload_size
    )
    store = TaskStore(
        task_repo,
        directory_provider,
        events,
        resolver=resolver,
        calendar_tz=settings.calendar_tz,
    )
    submissions = SubmissionManager(task_repo, events, attachment_gateway=attachments)
    logger.info(
        "Task engine ready (task_backend=%s, change_feed=%s, calendar_timezone=%s)",
        settings.task_backend,
        settings.change_feed_backend,
        settings.calendar_timezone,
    )
    return TaskEngine(
        store=store,
        submissions=submissions,
        resolver=resolver,
        attachments=attachments,
        task_repo=task_repo,
        directory_provider=directory_provider,
        change_feed=change_feed,
        _closers=closers,
    )
