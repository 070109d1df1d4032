"""DTOs for task creation, edits, submissions and queries."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, BinaryIO

from taskboard.domain.enums import TaskStatus
from taskboard.domain.exceptions import ValidationException


@dataclass(frozen=True)
class TaskDraft:
    """Input for TaskStore.create (id and status are assigned by the store)."""

    organization_id: str
    title: str
    description: str
    start_time: datetime
    due_time: datetime
    assigned_member_ids: tuple[str, ...] = ()
    assigned_committee_ids: tuple[str, ...] = ()
    event_id: str | None = None
    attachments: tuple[str, ...] = ()


# Sentinel: distinguishes "leave unchanged" from an explicit None (e.g. clearing event_id).
UNSET: Any = object()


@dataclass(frozen=True)
class TaskPatch:
    """Partial edit for TaskStore.update. Fields left UNSET are not touched.

    Submissions are not part of a patch; they only change through the
    submission manager.
    """

    title: str = UNSET
    description: str = UNSET
    event_id: str | None = UNSET
    start_time: datetime = UNSET
    due_time: datetime = UNSET
    assigned_member_ids: tuple[str, ...] = UNSET
    assigned_committee_ids: tuple[str, ...] = UNSET
    attachments: tuple[str, ...] = UNSET

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskPatch:
        """Build a patch from a plain mapping; rejects unknown or read-only keys."""
        allowed = {f.name for f in fields(cls)}
        if "submissions" in data:
            raise ValidationException(
                "Submissions cannot be edited directly", field="submissions"
            )
        unknown = set(data) - allowed
        if unknown:
            raise ValidationException(
                f"Unknown task field(s): {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        return cls(**data)

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were set."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


@dataclass(frozen=True)
class SubmissionContent:
    """Text and/or already-uploaded file references for a submission."""

    text: str | None = None
    files: tuple[str, ...] = ()


@dataclass(frozen=True)
class UploadFile:
    """Raw file handed to the attachment gateway."""

    filename: str
    data: BinaryIO
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class ResolvedAssignees:
    """Effective recipients of a task and display names for every referenced id."""

    recipient_ids: frozenset[str]
    display_names: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.recipient_ids


@dataclass(frozen=True)
class TaskFilter:
    """List filters; None means "all" for each criterion."""

    event_id: str | None = None
    status: TaskStatus | None = None
    search: str | None = None
    on_date: date | None = None
    open_only: bool = False
