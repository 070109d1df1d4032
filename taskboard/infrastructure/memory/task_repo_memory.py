"""In-memory task repository (implements ITaskRepository).

Appends to a task's submissions are serialised with an asyncio.Lock so the
cap holds under concurrent submitters. Stored entities are copied on the way
in and out; callers never share instances with the store.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any

from taskboard.domain.entities.task import CommentEntity, SubmissionEntity, TaskEntity
from taskboard.domain.enums import TaskStatus
from taskboard.domain.exceptions import (
    SubmissionLimitReachedException,
    ValidationException,
)


class InMemoryTaskRepository:
    """Tasks keyed by (organization_id, task_id)."""

    def __init__(self) -> None:
        self._tasks: dict[tuple[str, str], TaskEntity] = {}
        self._lock = asyncio.Lock()

    async def create(self, task: TaskEntity) -> TaskEntity:
        key = (task.organization_id, task.id)
        async with self._lock:
            if key in self._tasks:
                raise ValidationException(f"Task already exists: {task.id}", field="id")
            self._tasks[key] = replace(task)
        return replace(task)

    async def get(self, organization_id: str, task_id: str) -> TaskEntity | None:
        task = self._tasks.get((organization_id, task_id))
        return replace(task) if task is not None else None

    async def list_by_organization(self, organization_id: str) -> list[TaskEntity]:
        return [
            replace(task)
            for (org_id, _), task in self._tasks.items()
            if org_id == organization_id
        ]

    async def update_fields(
        self, organization_id: str, task_id: str, changes: dict[str, Any]
    ) -> TaskEntity | None:
        if "submissions" in changes:
            raise ValidationException("Submissions cannot be edited", field="submissions")
        key = (organization_id, task_id)
        async with self._lock:
            task = self._tasks.get(key)
            if task is None:
                return None
            updated = replace(task, **changes)
            self._tasks[key] = updated
        return replace(updated)

    async def set_status(
        self,
        organization_id: str,
        task_id: str,
        status: TaskStatus,
        expected: TaskStatus | None = None,
    ) -> bool:
        key = (organization_id, task_id)
        async with self._lock:
            task = self._tasks.get(key)
            if task is None or task.status == status:
                return False
            if expected is not None and task.status != expected:
                return False
            self._tasks[key] = replace(task, status=status)
        return True

    async def append_submission(
        self,
        organization_id: str,
        task_id: str,
        submission: SubmissionEntity,
        limit: int,
    ) -> TaskEntity | None:
        key = (organization_id, task_id)
        async with self._lock:
            task = self._tasks.get(key)
            if task is None:
                return None
            if len(task.submissions) >= limit:
                raise SubmissionLimitReachedException(task_id, limit)
            updated = replace(
                task,
                submissions=(*task.submissions, submission),
                status=TaskStatus.COMPLETED,
                updated_at=submission.submitted_at,
            )
            self._tasks[key] = updated
        return replace(updated)

    async def append_comment(
        self,
        organization_id: str,
        task_id: str,
        submission_index: int,
        comment: CommentEntity,
    ) -> TaskEntity | None:
        key = (organization_id, task_id)
        async with self._lock:
            task = self._tasks.get(key)
            if task is None:
                return None
            updated = task.with_comment(submission_index, comment)
            self._tasks[key] = updated
        return replace(updated)

    async def delete(self, organization_id: str, task_id: str) -> bool:
        async with self._lock:
            return self._tasks.pop((organization_id, task_id), None) is not None
