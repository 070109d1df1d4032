"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference domain entities only; no infrastructure imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from taskboard.domain.entities import (
        CommentEntity,
        CommitteeEntity,
        MemberProfile,
        SubmissionEntity,
        TaskEntity,
    )
    from taskboard.domain.enums import TaskStatus


class ITaskRepository(Protocol):
    """Protocol for task persistence, scoped by organization (DIP).

    Implementations raise StorageUnavailableException on transport failures.
    """

    async def create(self, task: TaskEntity) -> TaskEntity:
        """Persist a new task; return it as stored."""

    async def get(self, organization_id: str, task_id: str) -> TaskEntity | None:
        """Return task by id within the organization, or None."""

    async def list_by_organization(self, organization_id: str) -> list[TaskEntity]:
        """Return every task of the organization (no status reconciliation)."""

    async def update_fields(
        self, organization_id: str, task_id: str, changes: dict[str, Any]
    ) -> TaskEntity | None:
        """Write the given entity fields (single-document update); None if not found.

        `changes` keys are TaskEntity attribute names; `submissions` is never
        among them.
        """

    async def set_status(
        self,
        organization_id: str,
        task_id: str,
        status: TaskStatus,
        expected: TaskStatus | None = None,
    ) -> bool:
        """Status-only write.

        When `expected` is given the write only applies while the stored status
        still equals it. Return True only if this call changed the stored value.
        """

    async def append_submission(
        self,
        organization_id: str,
        task_id: str,
        submission: SubmissionEntity,
        limit: int,
    ) -> TaskEntity | None:
        """Atomically append a submission and set status COMPLETED.

        Raises SubmissionLimitReachedException when the task already holds
        `limit` submissions (nothing written). Returns None if not found.
        """

    async def append_comment(
        self,
        organization_id: str,
        task_id: str,
        submission_index: int,
        comment: CommentEntity,
    ) -> TaskEntity | None:
        """Append a comment to one submission. Raises SubmissionNotFoundException on bad index."""

    async def delete(self, organization_id: str, task_id: str) -> bool:
        """Hard delete; return True if deleted, False if not found."""


class IDirectory(Protocol):
    """Read-only organization directory (members and committees).

    Lookups of unknown ids return None; they never raise.
    """

    def get_member(self, member_id: str) -> MemberProfile | None:
        """Return member profile or None."""

    def get_committee(self, committee_id: str) -> CommitteeEntity | None:
        """Return committee or None."""

    def committees(self) -> list[CommitteeEntity]:
        """Return all committees of the organization."""


class IDirectoryProvider(Protocol):
    """Loads a directory snapshot for an organization."""

    async def load(self, organization_id: str) -> IDirectory:
        """Return the organization's directory (empty if the organization is unknown)."""
