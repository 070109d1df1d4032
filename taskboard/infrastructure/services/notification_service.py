"""Task notifications: log-only sender and Firestore per-user inbox."""

from __future__ import annotations

import logging

from taskboard.infrastructure.firebase._rest_client import FirestoreRESTClient
from taskboard.infrastructure.firebase.collections import user_notifications_path
from taskboard.shared.telemetry.logging import get_logger
from taskboard.shared.utils.datetime import utc_now

logger = get_logger(__name__)

NOTIFICATION_TYPE_TASK = "task"


class LogOnlyNotificationService:
    """INotificationService implementation that logs instead of delivering.

    Use when no inbox is configured (tests, local runs).
    """

    async def notify(self, recipient_id: str, subject: str, body: str) -> None:
        logger.info(
            "Task notify: would deliver to %s (subject=%r)",
            recipient_id,
            (subject or "")[:80],
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Task notify body (first 500 chars): %s", (body or "")[:500])


class FirestoreNotificationService:
    """Writes one unread notification document per recipient.

    Documents land in notifications/{recipient_id}/userNotifications with
    `subject`, `message`, `timestamp`, `isRead` and `type` fields.
    """

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client

    async def notify(self, recipient_id: str, subject: str, body: str) -> None:
        doc_id = await self._client.collection(user_notifications_path(recipient_id)).add(
            {
                "subject": subject,
                "message": body,
                "timestamp": utc_now(),
                "isRead": False,
                "type": NOTIFICATION_TYPE_TASK,
            }
        )
        logger.debug("Notification stored (recipient_id=%s, id=%s)", recipient_id, doc_id)
