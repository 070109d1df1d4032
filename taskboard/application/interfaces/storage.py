"""Blob storage interface (DIP). Implementation: LocalStorageService."""

from __future__ import annotations

from typing import Any, BinaryIO, Protocol


class IStorageService(Protocol):
    """Protocol for object storage used by task attachments and submission files."""

    async def upload(
        self,
        file_data: BinaryIO,
        storage_ref: str,
        expected_checksum: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Upload file with checksum verification. Idempotent if same checksum."""
        ...

    async def delete(self, storage_ref: str) -> bool:
        """Delete file. Returns True if deleted, False if not found."""
        ...

    async def exists(self, storage_ref: str) -> bool:
        """Return True if file exists."""
        ...

    def get_url(self, storage_ref: str) -> str:
        """Return the stable reference URL for a stored object."""
        ...
