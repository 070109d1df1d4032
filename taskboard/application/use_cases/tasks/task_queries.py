"""Read-model queries over reconciled task lists (my tasks, filters, ordering, report counts)."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, tzinfo

from taskboard.application.dtos.task import TaskFilter
from taskboard.application.interfaces.repositories import IDirectory
from taskboard.application.services.assignee_resolver import AssigneeResolver
from taskboard.domain.entities.task import TaskEntity
from taskboard.domain.enums import TaskStatus
from taskboard.domain.lifecycle import is_open

# Display order for task lists: active work first, then finished, then overdue.
STATUS_ORDER: dict[TaskStatus, int] = {
    TaskStatus.IN_PROGRESS: 0,
    TaskStatus.STARTED: 1,
    TaskStatus.EXTENDED: 2,
    TaskStatus.EXTENDED_OVERDUE: 3,
    TaskStatus.COMPLETED: 4,
    TaskStatus.OVERDUE: 5,
}


def tasks_for_member(
    tasks: Iterable[TaskEntity],
    member_id: str,
    directory: IDirectory,
    resolver: AssigneeResolver | None = None,
) -> list[TaskEntity]:
    """Return tasks assigned to the member directly or through a committee they belong to or head."""
    resolver = resolver or AssigneeResolver()
    return [t for t in tasks if resolver.is_assignee(t, member_id, directory)]


def filter_tasks(
    tasks: Iterable[TaskEntity],
    criteria: TaskFilter,
    tz: tzinfo | None = None,
) -> list[TaskEntity]:
    """Apply event, status, text search and date filters (all optional, combined with AND).

    The date filter matches tasks whose start or due date falls on that
    calendar day in `tz` (UTC when omitted).
    """
    tz = tz or UTC
    needle = criteria.search.strip().lower() if criteria.search else ""
    result: list[TaskEntity] = []
    for task in tasks:
        if criteria.event_id is not None and task.event_id != criteria.event_id:
            continue
        if criteria.status is not None and task.status != criteria.status:
            continue
        if criteria.open_only and not is_open(task.status):
            continue
        if needle and needle not in task.title.lower() and needle not in (task.description or "").lower():
            continue
        if criteria.on_date is not None:
            days = {task.start_time.astimezone(tz).date(), task.due_time.astimezone(tz).date()}
            if criteria.on_date not in days:
                continue
        result.append(task)
    return result


def sort_tasks(tasks: Iterable[TaskEntity], descending: bool = False) -> list[TaskEntity]:
    """Order by status (STATUS_ORDER) then due time; descending reverses both keys."""
    return sorted(
        tasks,
        key=lambda t: (STATUS_ORDER[t.status], t.due_time),
        reverse=descending,
    )


def status_summary(tasks: Iterable[TaskEntity]) -> dict[TaskStatus, int]:
    """Count tasks per status; every status is present (zero when absent)."""
    counts = {status: 0 for status in TaskStatus}
    for task in tasks:
        counts[task.status] += 1
    return counts
