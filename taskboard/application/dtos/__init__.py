"""Application DTOs (no dependency on persistence)."""

from taskboard.application.dtos.task import (
    ResolvedAssignees,
    SubmissionContent,
    TaskDraft,
    TaskFilter,
    TaskPatch,
    UploadFile,
)

__all__ = [
    "ResolvedAssignees",
    "SubmissionContent",
    "TaskDraft",
    "TaskFilter",
    "TaskPatch",
    "UploadFile",
]
