"""Task lifecycle evaluator: canonical status from persisted fields and the clock.

evaluate() is a pure function of (status, start_time, due_time, submissions,
now). Every reader runs it on load and on each change delivery, and both
mutators (task edits, submissions) run it before persisting. Because the
result depends only on its inputs, concurrent readers that write back the
corrected status converge without locks or version checks.

Rules, in priority order:

1. COMPLETED is sticky; a task with any submission is COMPLETED.
2. Without submissions, now >= overdue_boundary(due_time) gives OVERDUE.
3. A reschedule (start or due date edited) with the boundary still ahead
   gives EXTENDED_OVERDUE for tasks that were overdue, EXTENDED otherwise.
4. Otherwise STARTED becomes IN_PROGRESS once now >= start_time; OVERDUE
   whose boundary moved ahead becomes EXTENDED_OVERDUE; other states hold.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, tzinfo

from taskboard.core.constants import OVERDUE_GRACE_DAYS, OVERDUE_GRACE_TIME
from taskboard.domain.entities.task import TaskEntity
from taskboard.domain.enums import TaskStatus
from taskboard.shared.utils.datetime import ensure_utc

OPEN_STATUSES = frozenset(
    {
        TaskStatus.STARTED,
        TaskStatus.IN_PROGRESS,
        TaskStatus.EXTENDED,
        TaskStatus.EXTENDED_OVERDUE,
    }
)


def overdue_boundary(due_time: datetime, tz: tzinfo | None = None) -> datetime:
    """Return the instant a task without submissions becomes overdue.

    The boundary is 00:01 on the calendar day after the due date, not the due
    instant itself. Calendar days are taken in `tz` (defaults to the due
    time's own timezone).

    Args:
        due_time: Task due instant (aware).
        tz: Calendar timezone of the organization.

    Returns:
        Aware datetime of the boundary.
    """
    due_time = ensure_utc(due_time)
    local_due = due_time.astimezone(tz) if tz is not None else due_time
    next_day = local_due.date() + timedelta(days=OVERDUE_GRACE_DAYS)
    return datetime.combine(next_day, OVERDUE_GRACE_TIME, tzinfo=local_due.tzinfo)


def evaluate(
    task: TaskEntity,
    now: datetime,
    *,
    rescheduled: bool = False,
    tz: tzinfo | None = None,
) -> TaskStatus:
    """Return the canonical status of `task` at `now`.

    Args:
        task: Task as persisted (or as patched, for edits).
        now: Current instant.
        rescheduled: True when an edit changed start_time or due_time.
        tz: Calendar timezone for the overdue boundary.

    Returns:
        The status the task should carry; never mutates `task`.
    """
    current = task.status
    if current == TaskStatus.COMPLETED or task.has_submissions:
        return TaskStatus.COMPLETED

    now = ensure_utc(now)
    if now >= overdue_boundary(task.due_time, tz):
        return TaskStatus.OVERDUE

    if rescheduled:
        if current.is_overdue_family:
            return TaskStatus.EXTENDED_OVERDUE
        return TaskStatus.EXTENDED

    if current == TaskStatus.STARTED:
        return TaskStatus.IN_PROGRESS if now >= task.start_time else TaskStatus.STARTED
    if current == TaskStatus.OVERDUE:
        return TaskStatus.EXTENDED_OVERDUE
    return current


def reconcile(
    task: TaskEntity,
    now: datetime,
    *,
    tz: tzinfo | None = None,
) -> TaskEntity:
    """Return `task` carrying its evaluated status (same object when unchanged)."""
    status = evaluate(task, now, tz=tz)
    if status == task.status:
        return task
    return replace(task, status=status)


def is_open(status: TaskStatus) -> bool:
    """Whether a task in this status still expects work (not completed, not overdue)."""
    return status in OPEN_STATUSES
