"""Submission manager: accepts work against a task and comments on submissions.

Window and cap checks run against the freshly read task; the repository's
atomic append re-checks the cap so concurrent submitters cannot exceed it.
Accepting a submission always moves the task to COMPLETED.
"""

from __future__ import annotations

from datetime import datetime

from taskboard.application.dtos.task import SubmissionContent, UploadFile
from taskboard.application.interfaces.repositories import ITaskRepository
from taskboard.application.services.attachment_gateway import AttachmentGateway
from taskboard.application.services.task_events import TaskEventPublisher
from taskboard.core.constants import MAX_SUBMISSIONS_PER_TASK
from taskboard.domain.entities.task import CommentEntity, SubmissionEntity, TaskEntity
from taskboard.domain.exceptions import ResourceNotFoundException, ValidationException
from taskboard.shared.telemetry.logging import get_logger
from taskboard.shared.telemetry.tracing import traced
from taskboard.shared.utils.datetime import ensure_utc, utc_now

logger = get_logger(__name__)


class SubmissionManager:
    """Single responsibility: submission acceptance and submission comments."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        events: TaskEventPublisher,
        attachment_gateway: AttachmentGateway | None = None,
    ) -> None:
        self.task_repo = task_repo
        self.events = events
        self.attachment_gateway = attachment_gateway

    async def _load(self, organization_id: str, task_id: str) -> TaskEntity:
        task = await self.task_repo.get(organization_id, task_id)
        if task is None:
            raise ResourceNotFoundException("task", task_id)
        return task

    @traced("submission_manager.submit")
    async def submit(
        self,
        organization_id: str,
        task_id: str,
        submitter_id: str,
        submitter_name: str,
        content: SubmissionContent,
        now: datetime | None = None,
        files: list[UploadFile] | None = None,
    ) -> TaskEntity:
        """Append a submission at `now` and mark the task COMPLETED.

        Raises:
            ResourceNotFoundException: Task does not exist.
            OutOfWindowException: now < start_time or now > due_time.
            SubmissionLimitReachedException: Task already has 3 submissions.
            ValidationException: No text and no files.
        """
        now = ensure_utc(now) if now is not None else utc_now()
        task = await self._load(organization_id, task_id)
        task.check_can_submit(now)

        file_refs = tuple(content.files)
        if files:
            if self.attachment_gateway is None:
                raise ValidationException(
                    "File uploads are not configured", field="files"
                )
            uploaded = await self.attachment_gateway.upload_submission_files(
                organization_id, files
            )
            file_refs = (*file_refs, *uploaded)

        submission = SubmissionEntity(
            submitter_id=submitter_id,
            submitter_name=submitter_name,
            submitted_at=now,
            text=content.text or None,
            files=file_refs,
        )
        stored = await self.task_repo.append_submission(
            organization_id, task_id, submission, MAX_SUBMISSIONS_PER_TASK
        )
        if stored is None:
            raise ResourceNotFoundException("task", task_id)
        logger.info(
            "Submission accepted (organization_id=%s, task_id=%s, submitter_id=%s, count=%d)",
            organization_id,
            task_id,
            submitter_id,
            len(stored.submissions),
        )

        await self.events.changed(organization_id)
        await self.events.log(
            organization_id,
            f"{submitter_name} submitted work for task '{stored.title}'",
            submitter_name,
            now,
        )
        if stored.created_by_id and stored.created_by_id != submitter_id:
            await self.events.notify(
                [stored.created_by_id],
                f"New submission: {stored.title}",
                f"{submitter_name} submitted work for '{stored.title}'.",
            )
        return stored

    @traced("submission_manager.add_comment")
    async def add_comment(
        self,
        organization_id: str,
        task_id: str,
        submission_index: int,
        author_id: str,
        author_name: str,
        text: str,
        now: datetime | None = None,
    ) -> TaskEntity:
        """Append a comment to the submission at `submission_index`.

        Raises:
            ResourceNotFoundException: Task does not exist.
            SubmissionNotFoundException: Index out of range.
            ValidationException: Blank text.
        """
        now = ensure_utc(now) if now is not None else utc_now()
        comment = CommentEntity(
            author_id=author_id, author_name=author_name, text=text, posted_at=now
        )
        stored = await self.task_repo.append_comment(
            organization_id, task_id, submission_index, comment
        )
        if stored is None:
            raise ResourceNotFoundException("task", task_id)
        logger.info(
            "Comment added (organization_id=%s, task_id=%s, submission_index=%d)",
            organization_id,
            task_id,
            submission_index,
        )

        await self.events.changed(organization_id)
        submitter_id = stored.submissions[submission_index].submitter_id
        if submitter_id != author_id:
            await self.events.notify(
                [submitter_id],
                f"New comment on your submission: {stored.title}",
                f"{author_name}: {text}",
            )
        return stored
