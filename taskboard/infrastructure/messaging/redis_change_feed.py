"""Redis pub/sub change feed (implements IChangeFeed) for multi-process watchers.

Each organization has a channel task_changes:{organization_id}. publish()
sends a small JSON message there; one reader task per process listens on
the channels that have local listeners and fans each message out through an
InProcessChangeFeed.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable

import redis.asyncio as redis

from taskboard.application.interfaces.services import ChangeListener
from taskboard.core.config import Settings, get_settings
from taskboard.core.constants import CHANGE_FEED_CHANNEL_PREFIX
from taskboard.infrastructure.exceptions import StorageUnavailableException
from taskboard.infrastructure.messaging.change_feed import InProcessChangeFeed
from taskboard.shared.telemetry.logging import get_logger
from taskboard.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class RedisChangeFeed:
    """Publishes changes to Redis and delivers them to listeners in this process."""

    CHANNEL_PREFIX = CHANGE_FEED_CHANNEL_PREFIX
    RECONNECT_DELAY = 1.0
    MAX_RECONNECT_DELAY = 30.0

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        self.redis = redis_client
        self.settings = settings or get_settings()
        self._local = InProcessChangeFeed()
        self._pubsub = None
        self._reader: asyncio.Task | None = None
        self._channel_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Establish the Redis connection. Raises StorageUnavailableException if unreachable."""
        if self.redis is not None:
            return
        client = redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=self.settings.redis_password.get_secret_value()
            if self.settings.redis_password
            else None,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            await client.aclose()
            raise StorageUnavailableException("redis_connect", str(e)) from e
        self.redis = client
        logger.info("Redis change feed connected")

    async def disconnect(self) -> None:
        """Stop the reader task and close the Redis connection."""
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        if self._pubsub is not None:
            await self._pubsub.aclose()
            self._pubsub = None
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            logger.info("Redis change feed disconnected")

    def _get_channel(self, organization_id: str) -> str:
        return f"{self.CHANNEL_PREFIX}:{organization_id}"

    def _organization_from_channel(self, channel: str) -> str | None:
        prefix = f"{self.CHANNEL_PREFIX}:"
        if not channel.startswith(prefix):
            return None
        return channel[len(prefix):]

    async def publish(self, organization_id: str) -> None:
        """Publish a change for the organization to every process."""
        if self.redis is None:
            await self.connect()
        message = json.dumps(
            {"organization_id": organization_id, "published_at": utc_now().isoformat()}
        )
        try:
            await self.redis.publish(self._get_channel(organization_id), message)
        except redis.RedisError as e:
            raise StorageUnavailableException("publish_change", str(e)) from e
        logger.debug("Published task change to %s", self._get_channel(organization_id))

    async def subscribe(
        self, organization_id: str, listener: ChangeListener
    ) -> Callable[[], Awaitable[None]]:
        """Register a local listener and make sure its channel is subscribed."""
        if self.redis is None:
            await self.connect()
        local_unsubscribe = await self._local.subscribe(organization_id, listener)
        channel = self._get_channel(organization_id)
        async with self._channel_lock:
            if self._pubsub is None:
                self._pubsub = self.redis.pubsub()
            try:
                await self._pubsub.subscribe(channel)
            except redis.RedisError as e:
                await local_unsubscribe()
                raise StorageUnavailableException("subscribe_changes", str(e)) from e
            if self._reader is None or self._reader.done():
                self._reader = asyncio.create_task(self._read_loop())

        async def unsubscribe() -> None:
            await local_unsubscribe()
            if await self._local.listener_count(organization_id):
                return
            async with self._channel_lock:
                if self._pubsub is not None:
                    await self._pubsub.unsubscribe(channel)

        return unsubscribe

    async def _read_loop(self) -> None:
        """Fan Redis messages out to local listeners until cancelled.

        A failed read (dropped connection, server restart) is logged and the
        reader listens again after a capped exponential delay. The loop ends
        when listen() finishes because no channel is subscribed any more.
        """
        delay = self.RECONNECT_DELAY
        while True:
            pubsub = self._pubsub
            if pubsub is None:
                return
            try:
                async for message in pubsub.listen():
                    delay = self.RECONNECT_DELAY
                    if message["type"] != "message":
                        continue
                    channel = message.get("channel") or ""
                    if isinstance(channel, bytes):
                        channel = channel.decode()
                    organization_id = self._organization_from_channel(channel)
                    if organization_id is None:
                        continue
                    await self._local.dispatch(organization_id)
                return
            except asyncio.CancelledError:
                logger.info("Change feed reader cancelled")
                raise
            except Exception:
                logger.exception("Change feed reader failed; listening again in %.1fs", delay)
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.MAX_RECONNECT_DELAY)
