"""Domain entities and aggregates.

Pure domain models; no persistence concerns.
"""

from taskboard.domain.entities.organization import (
    CommitteeEntity,
    MemberProfile,
    OrganizationDirectory,
)
from taskboard.domain.entities.task import CommentEntity, SubmissionEntity, TaskEntity

__all__ = [
    "CommentEntity",
    "CommitteeEntity",
    "MemberProfile",
    "OrganizationDirectory",
    "SubmissionEntity",
    "TaskEntity",
]
