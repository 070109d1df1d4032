"""Task domain entity with its submissions and comments.

Represents a unit of work independent of persistence. Invariants that do
not depend on the organization directory (title, date window, submission
window and cap) are enforced here; recipient expansion lives in the
application layer.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime

from taskboard.core.constants import MAX_SUBMISSIONS_PER_TASK
from taskboard.domain.enums import TaskStatus
from taskboard.domain.exceptions import (
    OutOfWindowException,
    SubmissionLimitReachedException,
    SubmissionNotFoundException,
    ValidationException,
)
from taskboard.shared.utils.datetime import ensure_utc


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    """Drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for v in values:
        if v and v not in seen:
            seen[v] = None
    return tuple(seen)


@dataclass(frozen=True)
class CommentEntity:
    """A remark on one submission."""

    author_id: str
    author_name: str
    text: str
    posted_at: datetime

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValidationException("Comment cannot be empty", field="text")
        object.__setattr__(self, "posted_at", ensure_utc(self.posted_at))


@dataclass(frozen=True)
class SubmissionEntity:
    """Evidence of work against a task: text and/or file references, plus comments."""

    submitter_id: str
    submitter_name: str
    submitted_at: datetime
    text: str | None = None
    files: tuple[str, ...] = ()
    comments: tuple[CommentEntity, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "submitted_at", ensure_utc(self.submitted_at))
        object.__setattr__(self, "files", tuple(self.files))
        object.__setattr__(self, "comments", tuple(self.comments))
        if not (self.text and self.text.strip()) and not self.files:
            raise ValidationException(
                "Submission needs text or at least one file", field="content"
            )

    def with_comment(self, comment: CommentEntity) -> SubmissionEntity:
        """Return a copy with the comment appended."""
        return replace(self, comments=(*self.comments, comment))


@dataclass
class TaskEntity:
    """Domain entity for a task (SRP: lifecycle rules separate from persistence).

    Validation runs on construction. Datetimes are normalized to UTC.
    Submissions are append-only; use with_submission/with_comment to derive
    the next state.
    """

    id: str
    organization_id: str
    title: str
    description: str
    start_time: datetime
    due_time: datetime
    created_by: str
    status: TaskStatus = TaskStatus.STARTED
    event_id: str | None = None
    assigned_member_ids: tuple[str, ...] = ()
    assigned_committee_ids: tuple[str, ...] = ()
    created_by_id: str | None = None
    attachments: tuple[str, ...] = ()
    submissions: tuple[SubmissionEntity, ...] = field(default_factory=tuple)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.validate_dates(self.start_time, self.due_time)
        self.start_time = ensure_utc(self.start_time)
        self.due_time = ensure_utc(self.due_time)
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)
        self.status = TaskStatus(self.status)
        self.assigned_member_ids = _unique(self.assigned_member_ids)
        self.assigned_committee_ids = _unique(self.assigned_committee_ids)
        self.attachments = tuple(self.attachments)
        self.submissions = tuple(self.submissions)
        self.validate()

    def validate(self) -> None:
        """Validate task business rules. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Task ID is required", field="id")
        if not self.organization_id:
            raise ValidationException("Organization ID is required", field="organization_id")
        if not self.title or not self.title.strip():
            raise ValidationException("Task title is required", field="title")
        self.validate_dates(self.start_time, self.due_time)

    @staticmethod
    def validate_dates(start_time: datetime, due_time: datetime) -> None:
        """Raise ValidationException unless both are datetimes and due_time >= start_time."""
        for name, value in (("start_time", start_time), ("due_time", due_time)):
            if not isinstance(value, datetime):
                raise ValidationException(f"{name} must be a date and time", field=name)
        if ensure_utc(due_time) < ensure_utc(start_time):
            raise ValidationException(
                "Due date must be on or after the start date", field="due_time"
            )

    @property
    def has_submissions(self) -> bool:
        return bool(self.submissions)

    def check_can_submit(self, now: datetime) -> None:
        """Raise unless a submission at `now` would be accepted.

        The window is inclusive at both ends: start_time <= now <= due_time.

        Raises:
            OutOfWindowException: now is before start or after due.
            SubmissionLimitReachedException: cap already reached.
        """
        now = ensure_utc(now)
        if now < self.start_time:
            raise OutOfWindowException(self.id, "before_start")
        if now > self.due_time:
            raise OutOfWindowException(self.id, "after_due")
        if len(self.submissions) >= MAX_SUBMISSIONS_PER_TASK:
            raise SubmissionLimitReachedException(self.id, MAX_SUBMISSIONS_PER_TASK)

    def with_submission(self, submission: SubmissionEntity) -> TaskEntity:
        """Return a copy with the submission appended and status COMPLETED.

        Completion is submission-driven: it applies even if the task was
        overdue or its due date was extended.
        """
        if len(self.submissions) >= MAX_SUBMISSIONS_PER_TASK:
            raise SubmissionLimitReachedException(self.id, MAX_SUBMISSIONS_PER_TASK)
        return replace(
            self,
            submissions=(*self.submissions, submission),
            status=TaskStatus.COMPLETED,
        )

    def with_comment(self, submission_index: int, comment: CommentEntity) -> TaskEntity:
        """Return a copy with the comment appended to the indexed submission."""
        if submission_index < 0 or submission_index >= len(self.submissions):
            raise SubmissionNotFoundException(self.id, submission_index)
        updated = list(self.submissions)
        updated[submission_index] = updated[submission_index].with_comment(comment)
        return replace(self, submissions=tuple(updated))
