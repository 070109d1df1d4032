"""Expands a task's member and committee references into effective recipients.

Pure projection over an already-loaded directory: no I/O, no retries.
Stale references degrade to placeholder names instead of failing.

Older documents kept committee ids inside the member list. An entry of the
member list that names a committee (and no member) is read as that committee.
"""

from __future__ import annotations

from taskboard.application.dtos.task import ResolvedAssignees
from taskboard.application.interfaces.repositories import IDirectory
from taskboard.core.constants import UNKNOWN_COMMITTEE_NAME, UNKNOWN_MEMBER_NAME


class AssigneeResolver:
    """Resolves recipients and display names for tasks."""

    def resolve_ids(
        self,
        member_ids: tuple[str, ...] | list[str],
        committee_ids: tuple[str, ...] | list[str],
        directory: IDirectory,
    ) -> ResolvedAssignees:
        """Resolve raw id lists (used for drafts and patches before a task exists)."""
        member_ids, committee_ids = self._split_references(
            member_ids, committee_ids, directory
        )
        recipients: set[str] = set()
        names: dict[str, str] = {}

        for member_id in member_ids:
            recipients.add(member_id)
            names[member_id] = self._member_name(member_id, directory)

        for committee_id in committee_ids:
            committee = directory.get_committee(committee_id)
            if committee is None:
                names[committee_id] = UNKNOWN_COMMITTEE_NAME
                continue
            names[committee_id] = committee.name
            for member_id in committee.member_set():
                recipients.add(member_id)
                names.setdefault(member_id, self._member_name(member_id, directory))

        return ResolvedAssignees(recipient_ids=frozenset(recipients), display_names=names)

    def resolve(self, task, directory: IDirectory) -> ResolvedAssignees:
        """Return the effective recipient set and display names for a task.

        Recipients are the union of direct members and every member (and
        head) of every referenced committee, deduplicated.
        """
        return self.resolve_ids(
            task.assigned_member_ids, task.assigned_committee_ids, directory
        )

    def is_assignee(self, task, member_id: str, directory: IDirectory) -> bool:
        """Return whether member_id is among the task's effective recipients."""
        member_ids, committee_ids = self._split_references(
            task.assigned_member_ids, task.assigned_committee_ids, directory
        )
        if member_id in member_ids:
            return True
        for committee_id in committee_ids:
            committee = directory.get_committee(committee_id)
            if committee is not None and committee.includes(member_id):
                return True
        return False

    @staticmethod
    def _split_references(
        member_ids: tuple[str, ...] | list[str],
        committee_ids: tuple[str, ...] | list[str],
        directory: IDirectory,
    ) -> tuple[list[str], list[str]]:
        """Move committee ids found among member ids to the committee list. Blanks are dropped."""
        members: list[str] = []
        committees = [c for c in committee_ids if c]
        for ref in member_ids:
            if not ref:
                continue
            if directory.get_member(ref) is None and directory.get_committee(ref) is not None:
                if ref not in committees:
                    committees.append(ref)
            else:
                members.append(ref)
        return members, committees

    @staticmethod
    def _member_name(member_id: str, directory: IDirectory) -> str:
        member = directory.get_member(member_id)
        return member.name if member is not None else UNKNOWN_MEMBER_NAME
