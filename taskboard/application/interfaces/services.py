"""Service interfaces (ports) for side effects and change fan-out."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Protocol

ChangeListener = Callable[[str], Awaitable[None]]
"""Called with the organization id whose task set changed."""


class INotificationService(Protocol):
    """Protocol for delivering a notification to one member (fire-and-forget)."""

    async def notify(self, recipient_id: str, subject: str, body: str) -> None:
        """Deliver a notification. Callers log and swallow failures."""


class IActivityLog(Protocol):
    """Protocol for the organization activity log."""

    async def append(
        self,
        organization_id: str,
        description: str,
        actor_name: str,
        timestamp: datetime,
    ) -> None:
        """Append an entry to the organization's activity log."""


class IChangeFeed(Protocol):
    """Protocol for organization-scoped change notification (coarse invalidation)."""

    async def publish(self, organization_id: str) -> None:
        """Signal that some task in the organization changed."""

    async def subscribe(
        self, organization_id: str, listener: ChangeListener
    ) -> Callable[[], Awaitable[None]]:
        """Register listener; return an async callable that unsubscribes it."""
