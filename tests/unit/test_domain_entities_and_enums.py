"""Tests for domain entities (TaskEntity, submissions, directory) and TaskStatus."""

from datetime import UTC, datetime, timedelta

import pytest

from taskboard.domain.entities import (
    CommentEntity,
    CommitteeEntity,
    MemberProfile,
    OrganizationDirectory,
    SubmissionEntity,
)
from taskboard.domain.enums import TaskStatus
from taskboard.domain.exceptions import (
    OutOfWindowException,
    SubmissionLimitReachedException,
    SubmissionNotFoundException,
    ValidationException,
)

START = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
DUE = datetime(2024, 3, 10, 17, 0, tzinfo=UTC)


def _submission(submitter_id: str = "m1", text: str | None = "work") -> SubmissionEntity:
    return SubmissionEntity(
        submitter_id=submitter_id,
        submitter_name="Alice",
        submitted_at=START + timedelta(hours=1),
        text=text,
    )


class TestTaskStatus:
    """TaskStatus enum values and helpers."""

    def test_values_are_display_strings(self) -> None:
        assert TaskStatus.values() == [
            "Started",
            "In-Progress",
            "Completed",
            "Overdue",
            "Extended",
            "Extended-Overdue",
        ]

    def test_lookup_by_stored_value(self) -> None:
        assert TaskStatus("Extended-Overdue") is TaskStatus.EXTENDED_OVERDUE

    def test_overdue_family(self) -> None:
        assert TaskStatus.OVERDUE.is_overdue_family
        assert TaskStatus.EXTENDED_OVERDUE.is_overdue_family
        assert not TaskStatus.EXTENDED.is_overdue_family


class TestTaskEntityValidation:
    def test_defaults(self, make_task) -> None:
        task = make_task()
        assert task.status == TaskStatus.STARTED
        assert task.submissions == ()
        assert not task.has_submissions

    def test_blank_title_raises(self, make_task) -> None:
        with pytest.raises(ValidationException) as exc_info:
            make_task(title="   ")
        assert exc_info.value.details["field"] == "title"

    def test_due_before_start_raises(self, make_task) -> None:
        with pytest.raises(ValidationException) as exc_info:
            make_task(due_time=START - timedelta(seconds=1))
        assert exc_info.value.error_code == "VALIDATION_ERROR"
        assert exc_info.value.details["field"] == "due_time"

    @pytest.mark.parametrize("field", ["start_time", "due_time"])
    @pytest.mark.parametrize("value", [None, "2024-03-01"])
    def test_missing_or_non_datetime_dates_raise(self, make_task, field, value) -> None:
        with pytest.raises(ValidationException) as exc_info:
            make_task(**{field: value})
        assert exc_info.value.details["field"] == field

    def test_due_equal_to_start_allowed(self, make_task) -> None:
        task = make_task(due_time=START)
        assert task.due_time == task.start_time

    def test_naive_datetimes_become_utc(self, make_task) -> None:
        task = make_task(start_time=datetime(2024, 3, 1, 9, 0), due_time=datetime(2024, 3, 2))
        assert task.start_time.tzinfo is UTC
        assert task.start_time == START

    def test_assignees_deduplicated_in_order(self, make_task) -> None:
        task = make_task(assigned_member_ids=("m2", "m1", "m2", ""), assigned_committee_ids=["c1", "c1"])
        assert task.assigned_member_ids == ("m2", "m1")
        assert task.assigned_committee_ids == ("c1",)

    def test_status_string_coerced(self, make_task) -> None:
        assert make_task(status="In-Progress").status is TaskStatus.IN_PROGRESS


class TestSubmissionWindow:
    """check_can_submit: inclusive window, then cap."""

    def test_before_start(self, make_task) -> None:
        with pytest.raises(OutOfWindowException) as exc_info:
            make_task().check_can_submit(START - timedelta(seconds=1))
        assert exc_info.value.message == "Submission before start date"
        assert exc_info.value.error_code == "OUT_OF_WINDOW"

    def test_after_due(self, make_task) -> None:
        with pytest.raises(OutOfWindowException) as exc_info:
            make_task().check_can_submit(DUE + timedelta(seconds=1))
        assert exc_info.value.message == "Deadline passed"

    def test_window_is_inclusive(self, make_task) -> None:
        task = make_task()
        task.check_can_submit(START)
        task.check_can_submit(DUE)

    def test_cap_reached(self, make_task) -> None:
        task = make_task(submissions=(_submission(), _submission(), _submission()))
        with pytest.raises(SubmissionLimitReachedException):
            task.check_can_submit(START)


class TestSubmissionsAndComments:
    def test_submission_requires_text_or_files(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            _submission(text="  ")
        assert exc_info.value.details["field"] == "content"

    def test_submission_with_files_only(self) -> None:
        sub = SubmissionEntity(
            submitter_id="m1",
            submitter_name="Alice",
            submitted_at=START,
            files=["https://files.example/report.pdf"],
        )
        assert sub.files == ("https://files.example/report.pdf",)
        assert sub.text is None

    def test_with_submission_completes(self, make_task) -> None:
        task = make_task(status=TaskStatus.OVERDUE)
        updated = task.with_submission(_submission())
        assert updated.status == TaskStatus.COMPLETED
        assert len(updated.submissions) == 1
        assert task.submissions == ()

    def test_with_submission_respects_cap(self, make_task) -> None:
        task = make_task(submissions=(_submission(),) * 3)
        with pytest.raises(SubmissionLimitReachedException):
            task.with_submission(_submission())

    def test_blank_comment_raises(self) -> None:
        with pytest.raises(ValidationException):
            CommentEntity(author_id="o1", author_name="Ana", text=" ", posted_at=START)

    def test_with_comment_appends(self, make_task) -> None:
        task = make_task(submissions=(_submission(), _submission("m2")))
        comment = CommentEntity(author_id="o1", author_name="Ana", text="Nice", posted_at=START)
        updated = task.with_comment(1, comment)
        assert updated.submissions[1].comments == (comment,)
        assert updated.submissions[0].comments == ()

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_with_comment_bad_index(self, make_task, index) -> None:
        task = make_task(submissions=(_submission(),))
        comment = CommentEntity(author_id="o1", author_name="Ana", text="Hi", posted_at=START)
        with pytest.raises(SubmissionNotFoundException) as exc_info:
            task.with_comment(index, comment)
        assert exc_info.value.details["submission_index"] == index


class TestOrganizationDirectory:
    def test_lookups(self) -> None:
        directory = OrganizationDirectory(
            members=[MemberProfile(id="m1", name="Alice")],
            committees=[CommitteeEntity(id="c1", name="Logistics", head_id="m9", member_ids=("m1",))],
        )
        assert directory.get_member("m1").name == "Alice"
        assert directory.get_member("nope") is None
        assert directory.get_committee("c1").name == "Logistics"
        assert directory.get_committee("nope") is None
        assert [c.id for c in directory.committees()] == ["c1"]

    def test_committee_member_set_includes_head(self) -> None:
        committee = CommitteeEntity(id="c1", name="Logistics", head_id="m9", member_ids=("m1", "m2"))
        assert committee.member_set() == frozenset({"m1", "m2", "m9"})
        assert committee.includes("m9")
        assert not committee.includes("m3")
