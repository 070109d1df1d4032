"""Firestore-backed task repository (implements ITaskRepository).

Tasks live at tasks/{organization_id}/AllTasks/{task_id} with camelCase
fields. Submissions are an array field on the task document, so appending
one is a read-check-write guarded by the document's updateTime.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx

from taskboard.domain.entities.task import CommentEntity, SubmissionEntity, TaskEntity
from taskboard.domain.enums import TaskStatus
from taskboard.domain.exceptions import (
    SubmissionLimitReachedException,
    SubmissionNotFoundException,
    TaskboardException,
    ValidationException,
)
from taskboard.infrastructure.exceptions import StorageUnavailableException
from taskboard.infrastructure.firebase._rest_client import (
    DocumentReference,
    DocumentSnapshot,
    FirestoreRESTClient,
    PreconditionFailedError,
)
from taskboard.infrastructure.firebase.collections import tasks_path
from taskboard.shared.telemetry.logging import get_logger
from taskboard.shared.utils.datetime import ensure_utc, from_timestamp_ms_utc, utc_now

logger = get_logger(__name__)

# Entity attribute -> document field
_FIELD_NAMES: dict[str, str] = {
    "organization_id": "organizationId",
    "event_id": "eventId",
    "title": "title",
    "description": "description",
    "start_time": "startTime",
    "due_time": "dueTime",
    "assigned_member_ids": "assignedTo",
    "assigned_committee_ids": "assignedCommittees",
    "status": "taskStatus",
    "created_by": "givenBy",
    "created_by_id": "givenById",
    "attachments": "attachments",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def _as_datetime(value: Any) -> datetime | None:
    """Accept Firestore timestamps, ISO strings, or epoch milliseconds."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)):
        return from_timestamp_ms_utc(int(value))
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError as e:
        raise ValidationException(f"Unreadable date value: {value!r}") from e


def _as_ids(values: Any) -> tuple[str, ...]:
    """Ids stored either as plain strings or as {id: ...} maps."""
    ids: list[str] = []
    for v in values or []:
        if isinstance(v, dict):
            v = v.get("id")
        if v:
            ids.append(str(v))
    return tuple(ids)


def _encode_field(name: str, value: Any) -> Any:
    if name == "status":
        return TaskStatus(value).value
    if isinstance(value, tuple):
        return list(value)
    return value


def _comment_to_dict(comment: CommentEntity) -> dict[str, Any]:
    return {
        "authorId": comment.author_id,
        "authorName": comment.author_name,
        "text": comment.text,
        "timestamp": comment.posted_at,
    }


def _submission_to_dict(submission: SubmissionEntity) -> dict[str, Any]:
    return {
        "memberId": submission.submitter_id,
        "memberName": submission.submitter_name,
        "textContent": submission.text or "",
        "fileAttachments": list(submission.files),
        "date": submission.submitted_at,
        "comments": [_comment_to_dict(c) for c in submission.comments],
    }


def _comment_from_dict(data: dict[str, Any]) -> CommentEntity:
    user = data.get("user") or {}
    return CommentEntity(
        author_id=data.get("authorId") or user.get("id") or "",
        author_name=data.get("authorName") or user.get("name") or "",
        text=data.get("text", ""),
        posted_at=_as_datetime(data.get("timestamp")) or utc_now(),
    )


def _submission_from_dict(data: dict[str, Any]) -> SubmissionEntity:
    return SubmissionEntity(
        submitter_id=data.get("memberId", ""),
        submitter_name=data.get("memberName", ""),
        submitted_at=_as_datetime(data.get("date")) or utc_now(),
        text=data.get("textContent") or None,
        files=tuple(data.get("fileAttachments") or ()),
        comments=tuple(_comment_from_dict(c) for c in data.get("comments") or []),
    )


def task_to_document(task: TaskEntity) -> dict[str, Any]:
    """Map a TaskEntity to its Firestore document fields."""
    data = {
        doc_field: _encode_field(attr, getattr(task, attr))
        for attr, doc_field in _FIELD_NAMES.items()
    }
    data["submissions"] = [_submission_to_dict(s) for s in task.submissions]
    return data


def document_to_task(organization_id: str, snapshot: DocumentSnapshot) -> TaskEntity:
    """Map a Firestore task document back to a TaskEntity.

    Documents written by the web portal carry `startDate`, `dueDate` and
    `event` instead of `startTime`, `dueTime` and `eventId`; both are read.

    Raises:
        ValidationException: Missing or unreadable dates, blank title.
    """
    d = snapshot.to_dict()
    return TaskEntity(
        id=snapshot.id,
        organization_id=d.get("organizationId") or organization_id,
        event_id=d.get("eventId") or d.get("event") or None,
        title=d.get("title", ""),
        description=d.get("description", ""),
        start_time=_as_datetime(d.get("startTime") or d.get("startDate")),
        due_time=_as_datetime(d.get("dueTime") or d.get("dueDate")),
        assigned_member_ids=_as_ids(d.get("assignedTo")),
        assigned_committee_ids=_as_ids(d.get("assignedCommittees")),
        status=TaskStatus(d.get("taskStatus") or TaskStatus.STARTED.value),
        created_by=d.get("givenBy", ""),
        created_by_id=d.get("givenById") or None,
        attachments=tuple(d.get("attachments") or ()),
        submissions=tuple(_submission_from_dict(s) for s in d.get("submissions") or []),
        created_at=_as_datetime(d.get("createdAt")),
        updated_at=_as_datetime(d.get("updatedAt")),
    )


class FirestoreTaskRepository:
    """Task repository using Firestore. Same contract as InMemoryTaskRepository."""

    def __init__(self, client: FirestoreRESTClient, append_retries: int = 5) -> None:
        self._client = client
        self._append_retries = append_retries

    def _doc(self, organization_id: str, task_id: str) -> DocumentReference:
        return self._client.collection(tasks_path(organization_id)).document(task_id)

    async def create(self, task: TaskEntity) -> TaskEntity:
        try:
            await self._client.collection(tasks_path(task.organization_id)).create(
                task.id, task_to_document(task)
            )
        except httpx.HTTPError as e:
            raise StorageUnavailableException("create_task", str(e)) from e
        return task

    async def get(self, organization_id: str, task_id: str) -> TaskEntity | None:
        snapshot = await self._read(organization_id, task_id, "get_task")
        if snapshot is None:
            return None
        return document_to_task(organization_id, snapshot)

    async def list_by_organization(self, organization_id: str) -> list[TaskEntity]:
        """Return every task document of the organization; unreadable documents are skipped."""
        tasks: list[TaskEntity] = []
        try:
            async for snapshot in self._client.collection(
                tasks_path(organization_id)
            ).stream():
                try:
                    tasks.append(document_to_task(organization_id, snapshot))
                except (TaskboardException, ValueError, TypeError):
                    logger.exception(
                        "Skipping malformed task document (organization_id=%s, task_id=%s)",
                        organization_id,
                        snapshot.id,
                    )
        except httpx.HTTPError as e:
            raise StorageUnavailableException("list_tasks", str(e)) from e
        return tasks

    async def update_fields(
        self, organization_id: str, task_id: str, changes: dict[str, Any]
    ) -> TaskEntity | None:
        updates = {
            _FIELD_NAMES[attr]: _encode_field(attr, value)
            for attr, value in changes.items()
        }
        try:
            stored = await self._doc(organization_id, task_id).update(updates)
        except httpx.HTTPError as e:
            raise StorageUnavailableException("update_task", str(e)) from e
        except PreconditionFailedError:
            return None
        if stored is None:
            return None
        return document_to_task(organization_id, stored)

    async def set_status(
        self,
        organization_id: str,
        task_id: str,
        status: TaskStatus,
        expected: TaskStatus | None = None,
    ) -> bool:
        """Compare-and-set on taskStatus; True only when this call wrote the new value."""
        doc_ref = self._doc(organization_id, task_id)
        for _ in range(self._append_retries):
            snapshot = await self._read(organization_id, task_id, "set_task_status")
            if snapshot is None:
                return False
            current = snapshot.to_dict().get("taskStatus") or TaskStatus.STARTED.value
            if current == status.value:
                return False
            if expected is not None and current != expected.value:
                return False
            try:
                stored = await doc_ref.update(
                    {"taskStatus": status.value}, update_time=snapshot.update_time
                )
            except PreconditionFailedError:
                continue
            except httpx.HTTPError as e:
                raise StorageUnavailableException("set_task_status", str(e)) from e
            return stored is not None
        return False

    async def append_submission(
        self,
        organization_id: str,
        task_id: str,
        submission: SubmissionEntity,
        limit: int,
    ) -> TaskEntity | None:
        """Compare-and-append: retry while another writer changed the document first."""
        doc_ref = self._doc(organization_id, task_id)
        for attempt in range(1, self._append_retries + 1):
            snapshot = await self._read(organization_id, task_id, "append_submission")
            if snapshot is None:
                return None
            current = snapshot.to_dict().get("submissions") or []
            if len(current) >= limit:
                raise SubmissionLimitReachedException(task_id, limit)
            updates = {
                "submissions": [*current, _submission_to_dict(submission)],
                "taskStatus": TaskStatus.COMPLETED.value,
                "updatedAt": submission.submitted_at,
            }
            try:
                stored = await doc_ref.update(updates, update_time=snapshot.update_time)
            except PreconditionFailedError:
                logger.info(
                    "Concurrent write on task; retrying submission append (task_id=%s, attempt=%d)",
                    task_id,
                    attempt,
                )
                continue
            except httpx.HTTPError as e:
                raise StorageUnavailableException("append_submission", str(e)) from e
            if stored is None:
                return None
            return document_to_task(organization_id, stored)
        raise StorageUnavailableException(
            "append_submission",
            f"document kept changing after {self._append_retries} attempts",
        )

    async def append_comment(
        self,
        organization_id: str,
        task_id: str,
        submission_index: int,
        comment: CommentEntity,
    ) -> TaskEntity | None:
        doc_ref = self._doc(organization_id, task_id)
        for attempt in range(1, self._append_retries + 1):
            snapshot = await self._read(organization_id, task_id, "append_comment")
            if snapshot is None:
                return None
            submissions = list(snapshot.to_dict().get("submissions") or [])
            if submission_index < 0 or submission_index >= len(submissions):
                raise SubmissionNotFoundException(task_id, submission_index)
            target = dict(submissions[submission_index])
            target["comments"] = [
                *(target.get("comments") or []),
                _comment_to_dict(comment),
            ]
            submissions[submission_index] = target
            try:
                stored = await doc_ref.update(
                    {"submissions": submissions}, update_time=snapshot.update_time
                )
            except PreconditionFailedError:
                logger.info(
                    "Concurrent write on task; retrying comment append (task_id=%s, attempt=%d)",
                    task_id,
                    attempt,
                )
                continue
            except httpx.HTTPError as e:
                raise StorageUnavailableException("append_comment", str(e)) from e
            if stored is None:
                return None
            return document_to_task(organization_id, stored)
        raise StorageUnavailableException(
            "append_comment",
            f"document kept changing after {self._append_retries} attempts",
        )

    async def delete(self, organization_id: str, task_id: str) -> bool:
        doc_ref = self._doc(organization_id, task_id)
        try:
            if await doc_ref.get() is None:
                return False
            await doc_ref.delete()
        except httpx.HTTPError as e:
            raise StorageUnavailableException("delete_task", str(e)) from e
        return True

    async def _read(
        self, organization_id: str, task_id: str, operation: str
    ) -> DocumentSnapshot | None:
        try:
            return await self._doc(organization_id, task_id).get()
        except httpx.HTTPError as e:
            raise StorageUnavailableException(operation, str(e)) from e
