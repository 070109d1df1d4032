"""Change feeds: organization-scoped "tasks changed" signals for watchers."""

from taskboard.infrastructure.messaging.change_feed import InProcessChangeFeed
from taskboard.infrastructure.messaging.redis_change_feed import RedisChangeFeed

__all__ = [
    "InProcessChangeFeed",
    "RedisChangeFeed",
]
