"""Application services: assignee resolution, attachments, side-effect fan-out."""

from taskboard.application.services.assignee_resolver import AssigneeResolver
from taskboard.application.services.attachment_gateway import AttachmentGateway
from taskboard.application.services.task_events import TaskEventPublisher

__all__ = [
    "AssigneeResolver",
    "AttachmentGateway",
    "TaskEventPublisher",
]
