"""SubmissionManager unit tests: window, cap, completion, comments, concurrent submitters."""

import asyncio
import io
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from taskboard.application.dtos import SubmissionContent, UploadFile
from taskboard.application.services.attachment_gateway import AttachmentGateway
from taskboard.application.services.task_events import TaskEventPublisher
from taskboard.application.use_cases.tasks import SubmissionManager
from taskboard.domain.enums import TaskStatus
from taskboard.domain.exceptions import (
    OutOfWindowException,
    ResourceNotFoundException,
    SubmissionLimitReachedException,
    SubmissionNotFoundException,
    ValidationException,
)

ORG = "org-1"
START = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
DUE = datetime(2024, 3, 10, 17, 0, tzinfo=UTC)
NOW = datetime(2024, 3, 5, 12, 0, tzinfo=UTC)
TEXT = SubmissionContent(text="Hall booked, receipt attached")


class _FakeStorage:
    """Blob store double: remembers uploaded refs, URLs are deterministic."""

    def __init__(self) -> None:
        self.uploaded: list[str] = []

    async def upload(self, file_data, storage_ref, expected_checksum, content_type, metadata=None):
        self.uploaded.append(storage_ref)
        return {"storage_ref": storage_ref, "checksum": expected_checksum}

    async def delete(self, storage_ref: str) -> bool:
        return False

    async def exists(self, storage_ref: str) -> bool:
        return storage_ref in self.uploaded

    def get_url(self, storage_ref: str) -> str:
        return f"https://files.example/{storage_ref}"


class TestSubmit:
    async def test_submit_completes_task_and_fans_out(
        self, manager, task_repo, seeded_task, change_feed, activity_log, notifier
    ) -> None:
        changes: list[str] = []

        async def _listener(org_id: str) -> None:
            changes.append(org_id)

        await change_feed.subscribe(ORG, _listener)

        task = await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=NOW)

        assert task.status == TaskStatus.COMPLETED
        assert len(task.submissions) == 1
        sub = task.submissions[0]
        assert (sub.submitter_id, sub.submitter_name, sub.submitted_at) == ("m1", "Alice", NOW)
        assert sub.text == TEXT.text
        assert (await task_repo.get(ORG, seeded_task.id)).status == TaskStatus.COMPLETED
        assert changes == [ORG]
        assert activity_log.descriptions() == ["Alice submitted work for task 'Prepare venue'"]
        assert notifier.recipients() == {"officer-1"}

    async def test_before_start_rejected(self, manager, task_repo, seeded_task) -> None:
        with pytest.raises(OutOfWindowException) as exc_info:
            await manager.submit(
                ORG, seeded_task.id, "m1", "Alice", TEXT, now=START - timedelta(minutes=1)
            )
        assert exc_info.value.message == "Submission before start date"
        assert (await task_repo.get(ORG, seeded_task.id)).submissions == ()

    async def test_after_due_rejected(self, manager, task_repo, seeded_task) -> None:
        with pytest.raises(OutOfWindowException) as exc_info:
            await manager.submit(
                ORG, seeded_task.id, "m1", "Alice", TEXT, now=DUE + timedelta(seconds=1)
            )
        assert exc_info.value.message == "Deadline passed"
        assert (await task_repo.get(ORG, seeded_task.id)).status == TaskStatus.IN_PROGRESS

    @pytest.mark.parametrize("now", [START, DUE])
    async def test_window_bounds_inclusive(self, manager, seeded_task, now) -> None:
        task = await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=now)
        assert task.status == TaskStatus.COMPLETED

    async def test_empty_content_rejected(self, manager, task_repo, seeded_task) -> None:
        with pytest.raises(ValidationException):
            await manager.submit(ORG, seeded_task.id, "m1", "Alice", SubmissionContent(text=" "), now=NOW)
        assert (await task_repo.get(ORG, seeded_task.id)).submissions == ()

    async def test_missing_task(self, manager) -> None:
        with pytest.raises(ResourceNotFoundException):
            await manager.submit(ORG, "nope", "m1", "Alice", TEXT, now=NOW)

    async def test_extended_task_completes(self, manager, task_repo, make_task) -> None:
        await task_repo.create(make_task(id="ext", status=TaskStatus.EXTENDED_OVERDUE))
        task = await manager.submit(ORG, "ext", "m1", "Alice", TEXT, now=NOW)
        assert task.status == TaskStatus.COMPLETED

    async def test_cap_is_per_task_across_assignees(
        self, manager, task_repo, make_task
    ) -> None:
        """Different assignees share the three submissions of one task."""
        await task_repo.create(
            make_task(id="team", assigned_member_ids=("m1", "m2", "m3", "m4"), status=TaskStatus.IN_PROGRESS)
        )
        first = await manager.submit(ORG, "team", "m1", "Alice", TEXT, now=NOW)
        assert first.status == TaskStatus.COMPLETED

        await manager.submit(ORG, "team", "m2", "Bob", TEXT, now=NOW + timedelta(minutes=1))
        third = await manager.submit(ORG, "team", "m3", "Carol", TEXT, now=NOW + timedelta(minutes=2))
        assert [s.submitter_id for s in third.submissions] == ["m1", "m2", "m3"]

        with pytest.raises(SubmissionLimitReachedException) as exc_info:
            await manager.submit(ORG, "team", "m4", "Dave", TEXT, now=NOW + timedelta(minutes=3))
        assert exc_info.value.details["limit"] == 3
        assert len((await task_repo.get(ORG, "team")).submissions) == 3

    async def test_concurrent_submitters_never_exceed_cap(
        self, manager, task_repo, seeded_task
    ) -> None:
        await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=NOW)
        await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=NOW)

        results = await asyncio.gather(
            *(
                manager.submit(ORG, seeded_task.id, f"m{i}", "Member", TEXT, now=NOW)
                for i in range(5)
            ),
            return_exceptions=True,
        )

        accepted = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, SubmissionLimitReachedException)]
        assert len(accepted) == 1
        assert len(rejected) == 4
        assert len((await task_repo.get(ORG, seeded_task.id)).submissions) == 3

    async def test_creator_submitting_is_not_notified(self, manager, seeded_task, notifier) -> None:
        await manager.submit(ORG, seeded_task.id, "officer-1", "Ana Officer", TEXT, now=NOW)
        assert notifier.sent == []

    async def test_side_effect_failure_does_not_fail_submit(self, task_repo, seeded_task) -> None:
        failing = AsyncMock()
        failing.publish = AsyncMock(side_effect=RuntimeError("feed down"))
        failing.append = AsyncMock(side_effect=RuntimeError("log down"))
        failing.notify = AsyncMock(side_effect=RuntimeError("push down"))
        manager = SubmissionManager(task_repo, TaskEventPublisher(failing, failing, failing))

        task = await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=NOW)

        assert task.status == TaskStatus.COMPLETED
        failing.notify.assert_awaited_once()

    async def test_files_uploaded_through_gateway(self, task_repo, events, seeded_task) -> None:
        storage = _FakeStorage()
        manager = SubmissionManager(
            task_repo, events, attachment_gateway=AttachmentGateway(storage, max_upload_size=1024)
        )

        task = await manager.submit(
            ORG,
            seeded_task.id,
            "m1",
            "Alice",
            SubmissionContent(),
            now=NOW,
            files=[UploadFile("receipt.pdf", io.BytesIO(b"%PDF-1.4"), "application/pdf")],
        )

        (ref,) = storage.uploaded
        assert ref.startswith("organizations/org-1/submissions/")
        assert ref.endswith("-receipt.pdf")
        assert task.submissions[0].files == (f"https://files.example/{ref}",)

    async def test_files_without_gateway_rejected(self, manager, seeded_task) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await manager.submit(
                ORG,
                seeded_task.id,
                "m1",
                "Alice",
                TEXT,
                now=NOW,
                files=[UploadFile("a.txt", io.BytesIO(b"x"))],
            )
        assert exc_info.value.details["field"] == "files"


class TestComments:
    async def test_comment_appended_and_submitter_notified(
        self, manager, task_repo, seeded_task, notifier
    ) -> None:
        await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=NOW)
        notifier.sent.clear()

        task = await manager.add_comment(
            ORG, seeded_task.id, 0, "officer-1", "Ana Officer", "Thanks!", now=NOW
        )

        (comment,) = task.submissions[0].comments
        assert (comment.author_id, comment.text, comment.posted_at) == ("officer-1", "Thanks!", NOW)
        assert (await task_repo.get(ORG, seeded_task.id)).submissions[0].comments == (comment,)
        assert notifier.recipients() == {"m1"}

    async def test_comments_are_not_capped(self, manager, seeded_task) -> None:
        await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=NOW)
        for i in range(5):
            task = await manager.add_comment(ORG, seeded_task.id, 0, "m1", "Alice", f"note {i}")
        assert len(task.submissions[0].comments) == 5

    async def test_own_comment_not_notified(self, manager, seeded_task, notifier) -> None:
        await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=NOW)
        notifier.sent.clear()
        await manager.add_comment(ORG, seeded_task.id, 0, "m1", "Alice", "Follow-up")
        assert notifier.sent == []

    @pytest.mark.parametrize("index", [-1, 1])
    async def test_missing_submission(self, manager, seeded_task, index) -> None:
        await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=NOW)
        with pytest.raises(SubmissionNotFoundException):
            await manager.add_comment(ORG, seeded_task.id, index, "o1", "Ana", "Hi")

    async def test_blank_comment(self, manager, seeded_task) -> None:
        await manager.submit(ORG, seeded_task.id, "m1", "Alice", TEXT, now=NOW)
        with pytest.raises(ValidationException):
            await manager.add_comment(ORG, seeded_task.id, 0, "o1", "Ana", "   ")

    async def test_missing_task(self, manager) -> None:
        with pytest.raises(ResourceNotFoundException):
            await manager.add_comment(ORG, "nope", 0, "o1", "Ana", "Hi")
