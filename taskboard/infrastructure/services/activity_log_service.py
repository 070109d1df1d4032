"""Organization activity log: log-only and Firestore-backed implementations."""

from __future__ import annotations

from datetime import datetime

from taskboard.infrastructure.firebase._rest_client import FirestoreRESTClient
from taskboard.infrastructure.firebase.collections import activity_logs_path
from taskboard.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class LogOnlyActivityLog:
    """IActivityLog that writes entries to the application log only."""

    async def append(
        self,
        organization_id: str,
        description: str,
        actor_name: str,
        timestamp: datetime,
    ) -> None:
        logger.info(
            "Activity (organization_id=%s, actor=%s, at=%s): %s",
            organization_id,
            actor_name,
            timestamp.isoformat(),
            description,
        )


class FirestoreActivityLog:
    """Appends entries to studentlogs/{organization_id}/activitylogs."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client

    async def append(
        self,
        organization_id: str,
        description: str,
        actor_name: str,
        timestamp: datetime,
    ) -> None:
        await self._client.collection(activity_logs_path(organization_id)).add(
            {
                "userName": actor_name,
                "description": description,
                "timestamp": timestamp,
            }
        )
