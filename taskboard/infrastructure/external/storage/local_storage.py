"""Local filesystem blob storage with path validation and atomic writes."""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, BinaryIO

import aiofiles
import aiofiles.os

from taskboard.infrastructure.exceptions import (
    StorageAlreadyExistsError,
    StorageChecksumMismatchError,
    StorageDeleteError,
    StoragePermissionError,
    StorageUploadError,
)
from taskboard.shared.telemetry.logging import get_logger
from taskboard.shared.utils.datetime import utc_now

logger = get_logger(__name__)

_META_SUFFIX = ".meta.json"


class LocalStorageService:
    """Stores blobs under storage_root; references resolve to base_url or file:// URLs.

    Paths are validated against storage_root. Writes go to a temp file in the
    target directory, are checksummed, then renamed into place. Upload
    metadata is kept in a .meta.json sidecar.
    """

    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(self, storage_root: str, base_url: str | None = None) -> None:
        """Initialize local storage.

        Args:
            storage_root: Base directory for all files (created if missing).
            base_url: Public URL prefix that serves storage_root, if any.
        """
        self.storage_root = Path(storage_root).resolve()
        self.base_url = base_url.rstrip("/") if base_url else None
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, storage_ref: str) -> Path:
        """Resolve and validate path under storage_root. Raises StoragePermissionError if traversal."""
        full_path = (self.storage_root / storage_ref).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(storage_ref, "path_validation") from e
        return full_path

    async def _compute_checksum(self, file_path: Path) -> str:
        sha256 = hashlib.sha256()
        async with aiofiles.open(file_path, "rb") as f:
            while chunk := await f.read(self.CHUNK_SIZE):
                sha256.update(chunk)
        return sha256.hexdigest()

    async def upload(
        self,
        file_data: BinaryIO,
        storage_ref: str,
        expected_checksum: str,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Write file_data at storage_ref after verifying its SHA-256.

        Re-uploading identical content is a no-op; different content at an
        existing reference raises StorageAlreadyExistsError.
        """
        target_path = self._get_full_path(storage_ref)
        try:
            if target_path.exists():
                existing = await self._compute_checksum(target_path)
                if existing != expected_checksum:
                    raise StorageAlreadyExistsError(storage_ref)
                return {
                    "storage_ref": storage_ref,
                    "checksum": existing,
                    "size": target_path.stat().st_size,
                }

            target_path.parent.mkdir(parents=True, exist_ok=True, mode=0o750)
            content = file_data.read()
            fd, temp_path = tempfile.mkstemp(
                dir=target_path.parent, prefix=".tmp_", suffix=target_path.suffix
            )
            os.close(fd)
            try:
                async with aiofiles.open(temp_path, "wb") as f:
                    await f.write(content)
                computed = await self._compute_checksum(Path(temp_path))
                if computed != expected_checksum:
                    raise StorageChecksumMismatchError(
                        storage_ref, expected_checksum, computed
                    )
                os.replace(temp_path, target_path)
            finally:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)

            meta = {
                "storage_ref": storage_ref,
                "checksum": computed,
                "size": len(content),
                "content_type": content_type,
                "uploaded_at": utc_now().isoformat(),
                "custom": metadata or {},
            }
            meta_path = target_path.with_name(target_path.name + _META_SUFFIX)
            async with aiofiles.open(meta_path, "w") as f:
                await f.write(json.dumps(meta, indent=2))
            logger.debug("Stored %s (%d bytes)", storage_ref, len(content))
            return {key: meta[key] for key in ("storage_ref", "checksum", "size")}
        except (StorageChecksumMismatchError, StorageAlreadyExistsError):
            raise
        except OSError as e:
            raise StorageUploadError(storage_ref, str(e)) from e

    async def delete(self, storage_ref: str) -> bool:
        """Delete file and its metadata sidecar. Returns True if deleted."""
        file_path = self._get_full_path(storage_ref)
        if not file_path.exists():
            return False
        try:
            await aiofiles.os.remove(file_path)
            meta_path = file_path.with_name(file_path.name + _META_SUFFIX)
            if meta_path.exists():
                await aiofiles.os.remove(meta_path)
        except OSError as e:
            raise StorageDeleteError(storage_ref, str(e)) from e
        return True

    async def exists(self, storage_ref: str) -> bool:
        try:
            return self._get_full_path(storage_ref).is_file()
        except StoragePermissionError:
            return False

    def get_url(self, storage_ref: str) -> str:
        """Stable URL for the object: base_url/storage_ref, else a file:// URI."""
        if self.base_url:
            return f"{self.base_url}/{storage_ref}"
        return self._get_full_path(storage_ref).as_uri()
