"""Storage service factory: creates the blob storage backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskboard.application.interfaces.storage import IStorageService

if TYPE_CHECKING:
    from taskboard.core.config import Settings


class StorageFactory:
    """Factory for storage service instances based on configuration."""

    @staticmethod
    def create_storage_service(settings: Settings | None = None) -> IStorageService:
        """Create storage service from settings.

        Raises:
            ValueError: Unknown backend or missing required config.
        """
        from taskboard.core.config import get_settings

        s = settings or get_settings()
        backend = s.storage_backend.lower()
        if backend == "local":
            from taskboard.infrastructure.external.storage.local_storage import (
                LocalStorageService,
            )

            if not s.storage_root:
                raise ValueError("STORAGE_ROOT required for local backend")
            return LocalStorageService(
                storage_root=s.storage_root,
                base_url=s.storage_base_url,
            )
        raise ValueError(f"Unknown storage backend: {backend}. Supported: 'local'")
