"""Best-effort side effects of task operations: change feed, activity log, notifications.

The primary write has already succeeded when these run. Failures are logged
and swallowed so they never make the operation appear failed to the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from taskboard.application.interfaces.services import (
    IActivityLog,
    IChangeFeed,
    INotificationService,
)
from taskboard.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class TaskEventPublisher:
    """Fans a task event out to the change feed, activity log and notification sink."""

    def __init__(
        self,
        change_feed: IChangeFeed,
        activity_log: IActivityLog,
        notifier: INotificationService,
    ) -> None:
        self.change_feed = change_feed
        self.activity_log = activity_log
        self.notifier = notifier

    async def changed(self, organization_id: str) -> None:
        """Publish an organization-scoped change to watchers."""
        try:
            await self.change_feed.publish(organization_id)
        except Exception:
            logger.exception(
                "Change feed publish failed (organization_id=%s)", organization_id
            )

    async def log(
        self,
        organization_id: str,
        description: str,
        actor_name: str,
        timestamp: datetime,
    ) -> None:
        """Append an activity log entry."""
        try:
            await self.activity_log.append(
                organization_id, description, actor_name, timestamp
            )
        except Exception:
            logger.exception(
                "Activity log append failed (organization_id=%s, description=%r)",
                organization_id,
                description[:80],
            )

    async def notify(
        self, recipient_ids: Iterable[str], subject: str, body: str
    ) -> int:
        """Notify each recipient independently; return how many deliveries succeeded."""
        delivered = 0
        for recipient_id in sorted(set(recipient_ids)):
            try:
                await self.notifier.notify(recipient_id, subject, body)
            except Exception:
                logger.exception(
                    "Notification failed (recipient_id=%s, subject=%r)",
                    recipient_id,
                    subject[:80],
                )
            else:
                delivered += 1
        return delivered
