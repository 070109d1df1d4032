"""Tests for AssigneeResolver (recipient expansion, placeholders)."""

from taskboard.application.services.assignee_resolver import AssigneeResolver
from taskboard.domain.entities import CommitteeEntity, MemberProfile, OrganizationDirectory


def test_direct_members_only(make_task, directory) -> None:
    result = AssigneeResolver().resolve(make_task(assigned_member_ids=("m1", "m2")), directory)
    assert result.recipient_ids == frozenset({"m1", "m2"})
    assert result.display_names == {"m1": "Alice", "m2": "Bob"}


def test_committee_only_assignment_expands_members(make_task) -> None:
    """A task assigned only to a committee reaches its members."""
    directory = OrganizationDirectory(
        members=[MemberProfile(id="m1", name="Alice"), MemberProfile(id="m2", name="Bob")],
        committees=[CommitteeEntity(id="C", name="Finance", member_ids=("m1", "m2"))],
    )
    task = make_task(assigned_member_ids=(), assigned_committee_ids=("C",))
    result = AssigneeResolver().resolve(task, directory)
    assert result.recipient_ids == frozenset({"m1", "m2"})
    assert result.display_names == {"C": "Finance", "m1": "Alice", "m2": "Bob"}


def test_committee_head_included_and_union_deduplicated(make_task, directory) -> None:
    task = make_task(assigned_member_ids=("m1", "m2"), assigned_committee_ids=("c1",))
    result = AssigneeResolver().resolve(task, directory)
    assert result.recipient_ids == frozenset({"m1", "m2", "m3", "m4"})
    assert result.display_names["c1"] == "Logistics"
    assert result.display_names["m4"] == "Dave"


def test_unknown_ids_degrade_to_placeholders(make_task, directory) -> None:
    task = make_task(assigned_member_ids=("ghost",), assigned_committee_ids=("gone",))
    result = AssigneeResolver().resolve(task, directory)
    assert result.recipient_ids == frozenset({"ghost"})
    assert result.display_names == {"ghost": "Unknown Member", "gone": "Unknown Committee"}


def test_unknown_committee_alone_resolves_empty(directory) -> None:
    result = AssigneeResolver().resolve_ids((), ("gone",), directory)
    assert result.is_empty


def test_empty_committee_resolves_empty(directory) -> None:
    assert AssigneeResolver().resolve_ids((), ("c-empty",), directory).is_empty


def test_is_assignee(make_task, directory) -> None:
    resolver = AssigneeResolver()
    task = make_task(assigned_member_ids=("m1",), assigned_committee_ids=("c1",))
    assert resolver.is_assignee(task, "m1", directory)
    assert resolver.is_assignee(task, "m3", directory)
    assert resolver.is_assignee(task, "m4", directory)
    assert not resolver.is_assignee(task, "officer-1", directory)


def test_committee_id_in_member_list_is_read_as_committee(make_task, directory) -> None:
    """Older documents stored committee ids in the member list."""
    task = make_task(assigned_member_ids=("c1",), assigned_committee_ids=())
    resolver = AssigneeResolver()

    result = resolver.resolve(task, directory)

    assert result.recipient_ids == frozenset({"m2", "m3", "m4"})
    assert result.display_names == {"c1": "Logistics", "m2": "Bob", "m3": "Carol", "m4": "Dave"}
    assert resolver.is_assignee(task, "m2", directory)
    assert resolver.is_assignee(task, "m4", directory)
    assert not resolver.is_assignee(task, "m1", directory)


def test_member_id_wins_over_committee_with_same_id(make_task) -> None:
    directory = OrganizationDirectory(
        members=[MemberProfile(id="x", name="Xena"), MemberProfile(id="m1", name="Alice")],
        committees=[CommitteeEntity(id="x", name="Events", member_ids=("m1",))],
    )
    task = make_task(assigned_member_ids=("x",), assigned_committee_ids=())

    result = AssigneeResolver().resolve(task, directory)

    assert result.recipient_ids == frozenset({"x"})
    assert result.display_names == {"x": "Xena"}
