"""Notification sink and activity log adapters (log-only and Firestore)."""

from taskboard.infrastructure.services.activity_log_service import (
    FirestoreActivityLog,
    LogOnlyActivityLog,
)
from taskboard.infrastructure.services.notification_service import (
    FirestoreNotificationService,
    LogOnlyNotificationService,
)

__all__ = [
    "FirestoreActivityLog",
    "FirestoreNotificationService",
    "LogOnlyActivityLog",
    "LogOnlyNotificationService",
]
