"""Blob storage for task attachments and submission files."""

from taskboard.infrastructure.external.storage.factory import StorageFactory
from taskboard.infrastructure.external.storage.local_storage import LocalStorageService

__all__ = [
    "LocalStorageService",
    "StorageFactory",
]
