"""Organization directory entities (read-only from the task engine's side)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MemberProfile:
    """A member as listed in the organization directory."""

    id: str
    name: str
    profile_ref: str | None = None


@dataclass(frozen=True)
class CommitteeEntity:
    """A named group of members with an optional head."""

    id: str
    name: str
    head_id: str | None = None
    member_ids: tuple[str, ...] = ()

    def member_set(self) -> frozenset[str]:
        """Return every identity the committee stands for (members plus head)."""
        ids = set(self.member_ids)
        if self.head_id:
            ids.add(self.head_id)
        return frozenset(ids)

    def includes(self, member_id: str) -> bool:
        return member_id in self.member_set()


class OrganizationDirectory:
    """Immutable snapshot of an organization's members and committees.

    Lookups of unknown ids return None; callers degrade to placeholder names.
    """

    def __init__(
        self,
        members: list[MemberProfile] | tuple[MemberProfile, ...] = (),
        committees: list[CommitteeEntity] | tuple[CommitteeEntity, ...] = (),
    ) -> None:
        self._members = {m.id: m for m in members}
        self._committees = {c.id: c for c in committees}

    def get_member(self, member_id: str) -> MemberProfile | None:
        return self._members.get(member_id)

    def get_committee(self, committee_id: str) -> CommitteeEntity | None:
        return self._committees.get(committee_id)

    def committees(self) -> list[CommitteeEntity]:
        return list(self._committees.values())

    def members(self) -> list[MemberProfile]:
        return list(self._members.values())
