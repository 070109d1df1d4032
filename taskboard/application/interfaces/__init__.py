"""Ports (Protocols) the application layer depends on (DIP)."""

from taskboard.application.interfaces.repositories import (
    IDirectory,
    IDirectoryProvider,
    ITaskRepository,
)
from taskboard.application.interfaces.services import (
    ChangeListener,
    IActivityLog,
    IChangeFeed,
    INotificationService,
)
from taskboard.application.interfaces.storage import IStorageService

__all__ = [
    "ChangeListener",
    "IActivityLog",
    "IChangeFeed",
    "IDirectory",
    "IDirectoryProvider",
    "INotificationService",
    "IStorageService",
    "ITaskRepository",
]
