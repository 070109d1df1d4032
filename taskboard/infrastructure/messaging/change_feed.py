"""In-process change feed (implements IChangeFeed).

Holds listeners per organization and calls each one on publish. Listeners
are isolated by organization_id; a listener that raises is logged and does
not stop delivery to the others.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Awaitable, Callable

from taskboard.application.interfaces.services import ChangeListener
from taskboard.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class InProcessChangeFeed:
    """Per-organization listener registry with lock-protected bookkeeping."""

    def __init__(self) -> None:
        self._listeners_by_org: dict[str, dict[int, ChangeListener]] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def subscribe(
        self, organization_id: str, listener: ChangeListener
    ) -> Callable[[], Awaitable[None]]:
        """Register listener for the organization; return its unsubscribe coroutine function."""
        async with self._lock:
            listener_id = next(self._ids)
            self._listeners_by_org.setdefault(organization_id, {})[listener_id] = listener

        async def unsubscribe() -> None:
            await self._remove(organization_id, listener_id)

        return unsubscribe

    async def _remove(self, organization_id: str, listener_id: int) -> None:
        async with self._lock:
            listeners = self._listeners_by_org.get(organization_id)
            if listeners is None:
                return
            listeners.pop(listener_id, None)
            if not listeners:
                del self._listeners_by_org[organization_id]

    async def publish(self, organization_id: str) -> None:
        """Call every listener of the organization (in subscription order)."""
        await self.dispatch(organization_id)

    async def dispatch(self, organization_id: str) -> int:
        """Deliver a change to local listeners; return how many completed without error."""
        async with self._lock:
            snapshot = list(self._listeners_by_org.get(organization_id, {}).values())
        delivered = 0
        for listener in snapshot:
            try:
                await listener(organization_id)
            except Exception:
                logger.exception(
                    "Change listener failed (organization_id=%s)", organization_id
                )
            else:
                delivered += 1
        return delivered

    async def listener_count(self, organization_id: str | None = None) -> int:
        """Return active listeners for one organization, or for all (lock-safe)."""
        async with self._lock:
            if organization_id is not None:
                return len(self._listeners_by_org.get(organization_id, {}))
            return sum(len(v) for v in self._listeners_by_org.values())
