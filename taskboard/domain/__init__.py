"""Domain layer: entities, enums, exceptions and the lifecycle evaluator.

No dependencies on infrastructure. Used by application and
infrastructure layers.
"""

from taskboard.domain.entities import (
    CommentEntity,
    CommitteeEntity,
    MemberProfile,
    OrganizationDirectory,
    SubmissionEntity,
    TaskEntity,
)
from taskboard.domain.enums import TaskStatus
from taskboard.domain.exceptions import (
    OutOfWindowException,
    ResourceNotFoundException,
    SubmissionLimitReachedException,
    SubmissionNotFoundException,
    TaskboardException,
    ValidationException,
)
from taskboard.domain.lifecycle import evaluate, overdue_boundary, reconcile

__all__ = [
    # Entities
    "CommentEntity",
    "CommitteeEntity",
    "MemberProfile",
    "OrganizationDirectory",
    "SubmissionEntity",
    "TaskEntity",
    # Enums
    "TaskStatus",
    # Exceptions
    "OutOfWindowException",
    "ResourceNotFoundException",
    "SubmissionLimitReachedException",
    "SubmissionNotFoundException",
    "TaskboardException",
    "ValidationException",
    # Lifecycle
    "evaluate",
    "overdue_boundary",
    "reconcile",
]
