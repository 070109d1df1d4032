"""Task store: create, edit, delete, list and watch tasks of an organization.

Status is reconciled lazily on every read (get, list, each watch delivery)
with the lifecycle evaluator; corrected statuses are written back with a
status-only write. Because the evaluator is deterministic, concurrent readers
writing the same correction converge without coordination.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import Any

from taskboard.application.dtos.task import TaskDraft, TaskPatch
from taskboard.application.interfaces.repositories import (
    IDirectory,
    IDirectoryProvider,
    ITaskRepository,
)
from taskboard.application.services.assignee_resolver import AssigneeResolver
from taskboard.application.services.task_events import TaskEventPublisher
from taskboard.domain.entities.task import TaskEntity
from taskboard.domain.enums import TaskStatus
from taskboard.domain.exceptions import (
    ResourceNotFoundException,
    TaskboardException,
    ValidationException,
)
from taskboard.domain.lifecycle import evaluate
from taskboard.shared.telemetry.logging import get_logger
from taskboard.shared.telemetry.tracing import add_span_attributes, traced
from taskboard.shared.utils.datetime import ensure_utc, utc_now
from taskboard.shared.utils.generators import generate_cuid

logger = get_logger(__name__)

SYSTEM_ACTOR = "System"

TaskListCallback = Callable[[list[TaskEntity]], Awaitable[None] | None]

_DATETIME_FIELDS = ("start_time", "due_time")
_TUPLE_FIELDS = ("assigned_member_ids", "assigned_committee_ids", "attachments")


class TaskSubscription:
    """Handle returned by TaskStore.watch; close() stops deliveries (idempotent)."""

    def __init__(self, organization_id: str, unsubscribe: Callable[[], Awaitable[None]]) -> None:
        self.organization_id = organization_id
        self._unsubscribe = unsubscribe
        self.closed = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._unsubscribe()

    async def __aenter__(self) -> TaskSubscription:
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        await self.close()


class TaskStore:
    """Owns task records for organizations; single entry point for task edits."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        directory_provider: IDirectoryProvider,
        events: TaskEventPublisher,
        resolver: AssigneeResolver | None = None,
        calendar_tz: tzinfo | None = None,
    ) -> None:
        self.task_repo = task_repo
        self.directory_provider = directory_provider
        self.events = events
        self.resolver = resolver or AssigneeResolver()
        self.calendar_tz = calendar_tz

    def _require_recipients(
        self,
        member_ids: tuple[str, ...],
        committee_ids: tuple[str, ...],
        directory: IDirectory,
    ) -> frozenset[str]:
        resolved = self.resolver.resolve_ids(member_ids, committee_ids, directory)
        if resolved.is_empty:
            raise ValidationException(
                "A task needs at least one assigned member or committee member",
                field="assigned_member_ids",
            )
        return resolved.recipient_ids

    @traced("task_store.create")
    async def create(
        self,
        draft: TaskDraft,
        *,
        actor_name: str,
        actor_id: str | None = None,
        now: datetime | None = None,
    ) -> TaskEntity:
        """Validate and persist a new task in status STARTED.

        Raises:
            ValidationException: Blank title, due before start, or no recipients.
        """
        now = ensure_utc(now) if now is not None else utc_now()
        TaskEntity.validate_dates(draft.start_time, draft.due_time)
        start_time = ensure_utc(draft.start_time)
        due_time = ensure_utc(draft.due_time)

        directory = await self.directory_provider.load(draft.organization_id)
        recipients = self._require_recipients(
            tuple(draft.assigned_member_ids),
            tuple(draft.assigned_committee_ids),
            directory,
        )

        task = TaskEntity(
            id=generate_cuid(),
            organization_id=draft.organization_id,
            title=draft.title,
            description=draft.description,
            start_time=start_time,
            due_time=due_time,
            created_by=actor_name,
            created_by_id=actor_id,
            status=TaskStatus.STARTED,
            event_id=draft.event_id,
            assigned_member_ids=tuple(draft.assigned_member_ids),
            assigned_committee_ids=tuple(draft.assigned_committee_ids),
            attachments=tuple(draft.attachments),
            created_at=now,
            updated_at=now,
        )
        stored = await self.task_repo.create(task)
        add_span_attributes(task_id=stored.id, recipients=len(recipients))
        logger.info(
            "Task created (organization_id=%s, task_id=%s, recipients=%d)",
            stored.organization_id,
            stored.id,
            len(recipients),
        )

        await self.events.changed(stored.organization_id)
        await self.events.log(
            stored.organization_id, f"Created task '{stored.title}'", actor_name, now
        )
        await self.events.notify(
            recipients,
            f"New task assigned: {stored.title}",
            f"{actor_name} assigned you '{stored.title}', due {stored.due_time.isoformat()}.",
        )
        return stored

    @traced("task_store.get")
    async def get(
        self, organization_id: str, task_id: str, now: datetime | None = None
    ) -> TaskEntity:
        """Return the task with its status reconciled at `now`.

        Raises:
            ResourceNotFoundException: Task does not exist in the organization.
        """
        task = await self.task_repo.get(organization_id, task_id)
        if task is None:
            raise ResourceNotFoundException("task", task_id)
        now = ensure_utc(now) if now is not None else utc_now()
        reconciled, promoted = await self._reconcile(task, now)
        if promoted:
            await self._announce_promotions(organization_id, [reconciled], now)
        return reconciled

    @traced("task_store.list_by_organization")
    async def list_by_organization(
        self, organization_id: str, now: datetime | None = None
    ) -> list[TaskEntity]:
        """Return every task of the organization with statuses reconciled at `now`."""
        now = ensure_utc(now) if now is not None else utc_now()
        tasks = await self.task_repo.list_by_organization(organization_id)
        result: list[TaskEntity] = []
        promoted: list[TaskEntity] = []
        for task in tasks:
            reconciled, changed = await self._reconcile(task, now)
            result.append(reconciled)
            if changed:
                promoted.append(reconciled)
        if promoted:
            await self._announce_promotions(organization_id, promoted, now)
        add_span_attributes(count=len(result))
        return result

    @traced("task_store.update")
    async def update(
        self,
        organization_id: str,
        task_id: str,
        patch: TaskPatch | dict[str, Any],
        *,
        actor_name: str,
        now: datetime | None = None,
    ) -> TaskEntity:
        """Apply an edit, re-run the evaluator, and persist fields plus status.

        A change of start or due date counts as a reschedule (EXTENDED /
        EXTENDED_OVERDUE); other edits only re-evaluate.

        Raises:
            ValidationException: Submissions in patch, due before start, blank
                title, or assignee edit leaving no recipients.
            ResourceNotFoundException: Task does not exist.
        """
        if not isinstance(patch, TaskPatch):
            patch = TaskPatch.from_dict(patch)
        now = ensure_utc(now) if now is not None else utc_now()

        existing = await self.task_repo.get(organization_id, task_id)
        if existing is None:
            raise ResourceNotFoundException("task", task_id)

        changes = patch.changes()
        for name in _DATETIME_FIELDS:
            if isinstance(changes.get(name), datetime):
                changes[name] = ensure_utc(changes[name])
        for name in _TUPLE_FIELDS:
            if name in changes:
                changes[name] = tuple(changes[name] or ())

        candidate = replace(existing, **changes)
        directory = await self.directory_provider.load(organization_id)
        recipients = self._require_recipients(
            candidate.assigned_member_ids, candidate.assigned_committee_ids, directory
        )

        rescheduled = (
            candidate.start_time != existing.start_time
            or candidate.due_time != existing.due_time
        )
        changes["status"] = evaluate(
            candidate, now, rescheduled=rescheduled, tz=self.calendar_tz
        )
        changes["updated_at"] = now

        stored = await self.task_repo.update_fields(organization_id, task_id, changes)
        if stored is None:
            raise ResourceNotFoundException("task", task_id)
        logger.info(
            "Task updated (organization_id=%s, task_id=%s, fields=%s, status=%s)",
            organization_id,
            task_id,
            sorted(patch.changes()),
            stored.status.value,
        )

        await self.events.changed(organization_id)
        await self.events.log(
            organization_id, f"Edited task '{stored.title}'", actor_name, now
        )
        await self.events.notify(
            recipients,
            f"Task updated: {stored.title}",
            f"{actor_name} updated '{stored.title}'. Status: {stored.status.value}.",
        )
        return stored

    @traced("task_store.delete")
    async def delete(
        self,
        organization_id: str,
        task_id: str,
        *,
        actor_name: str,
        now: datetime | None = None,
    ) -> None:
        """Hard delete a task. Attachment cleanup is the caller's responsibility.

        Raises:
            ResourceNotFoundException: Task does not exist.
        """
        now = ensure_utc(now) if now is not None else utc_now()
        existing = await self.task_repo.get(organization_id, task_id)
        if existing is None or not await self.task_repo.delete(organization_id, task_id):
            raise ResourceNotFoundException("task", task_id)
        logger.info("Task deleted (organization_id=%s, task_id=%s)", organization_id, task_id)

        await self.events.changed(organization_id)
        await self.events.log(
            organization_id, f"Deleted task '{existing.title}'", actor_name, now
        )
        try:
            directory = await self.directory_provider.load(organization_id)
        except Exception:
            logger.exception("Directory load failed; skipping delete notifications")
            return
        recipients = self.resolver.resolve(existing, directory).recipient_ids
        await self.events.notify(
            recipients,
            f"Task removed: {existing.title}",
            f"{actor_name} removed the task '{existing.title}'.",
        )

    async def watch(
        self, organization_id: str, on_change: TaskListCallback
    ) -> TaskSubscription:
        """Deliver the full reconciled task list now and on every change in the organization.

        `on_change` may be sync or async. Delivery errors after the initial
        snapshot are logged by the change feed and do not affect other watchers.
        """

        async def _deliver(org_id: str) -> None:
            tasks = await self.list_by_organization(org_id)
            result = on_change(tasks)
            if inspect.isawaitable(result):
                await result

        unsubscribe = await self.events.change_feed.subscribe(organization_id, _deliver)
        subscription = TaskSubscription(organization_id, unsubscribe)
        try:
            await _deliver(organization_id)
        except Exception:
            await subscription.close()
            raise
        return subscription

    async def _reconcile(
        self, task: TaskEntity, now: datetime
    ) -> tuple[TaskEntity, bool]:
        """Evaluate status at `now` and write it back.

        Returns (task, announce). `announce` is True only for the reader whose
        write changed the stored status, so concurrent readers announce a
        promotion once. A failed write-back is logged and the reconciled task
        is still returned.
        """
        status = evaluate(task, now, tz=self.calendar_tz)
        if status == task.status:
            return task, False
        try:
            written = await self.task_repo.set_status(
                task.organization_id, task.id, status, expected=task.status
            )
        except TaskboardException:
            logger.exception(
                "Status write-back failed (task_id=%s, %s -> %s)",
                task.id,
                task.status.value,
                status.value,
            )
            written = False
        if written:
            logger.debug(
                "Task status reconciled (task_id=%s, %s -> %s)",
                task.id,
                task.status.value,
                status.value,
            )
        return replace(task, status=status), written

    async def _announce_promotions(
        self, organization_id: str, promoted: list[TaskEntity], now: datetime
    ) -> None:
        """Log each promotion; notify recipients of tasks that became overdue."""
        for task in promoted:
            await self.events.log(
                organization_id,
                f"Task '{task.title}' marked as {task.status.value}",
                SYSTEM_ACTOR,
                now,
            )
        overdue = [t for t in promoted if t.status == TaskStatus.OVERDUE]
        if not overdue:
            return
        try:
            directory = await self.directory_provider.load(organization_id)
        except Exception:
            logger.exception("Directory load failed; skipping overdue notifications")
            return
        for task in overdue:
            await self.events.notify(
                self.resolver.resolve(task, directory).recipient_ids,
                f"Task overdue: {task.title}",
                f"'{task.title}' was due {task.due_time.isoformat()} and has no submission.",
            )
