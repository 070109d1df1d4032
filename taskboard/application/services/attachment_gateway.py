"""Attachment gateway: uploads task attachments and submission files to blob storage.

Thin adapter with no business logic; returns stable reference URLs that are
stored on the task (attachments) or on a submission (files).
"""

from __future__ import annotations

import asyncio
import hashlib
import os
import re
from typing import BinaryIO

from taskboard.application.dtos.task import UploadFile
from taskboard.application.interfaces.storage import IStorageService
from taskboard.core.constants import ATTACHMENT_FOLDER_SUBMISSIONS, ATTACHMENT_FOLDER_TASKS
from taskboard.domain.exceptions import ValidationException
from taskboard.shared.telemetry.logging import get_logger
from taskboard.shared.utils.generators import generate_cuid

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def _rewind_if_seekable(file_data: BinaryIO) -> None:
    """Reset file position to start if stream is seekable."""
    seekable = getattr(file_data, "seekable", None)
    if seekable is not None and seekable():
        file_data.seek(0)


def _sanitize_filename(filename: str) -> str:
    """Keep the basename and replace anything but letters, digits, dot and dash with '_'."""
    name = os.path.basename(filename.replace("\\", "/"))
    name = name.replace("\x00", "").strip(". ")
    if not name:
        raise ValueError("Filename is empty or invalid after sanitization")
    return _UNSAFE_CHARS.sub("_", name)


def _compute_checksum_and_size_sync(file_data: BinaryIO) -> tuple[str, int]:
    """Blocking: one pass over file_data (run in a thread). Returns (hexdigest, byte_count)."""
    sha256 = hashlib.sha256()
    total = 0
    while chunk := file_data.read(65536):
        sha256.update(chunk)
        total += len(chunk)
    _rewind_if_seekable(file_data)
    return sha256.hexdigest(), total


class AttachmentGateway:
    """Uploads files for task creation/editing and for submissions."""

    def __init__(self, storage: IStorageService, max_upload_size: int) -> None:
        self.storage = storage
        self.max_upload_size = max_upload_size

    def _storage_ref(self, organization_id: str, folder: str, filename: str) -> str:
        safe = _sanitize_filename(filename)
        org = _UNSAFE_CHARS.sub("_", organization_id)
        return f"organizations/{org}/{folder}/{generate_cuid()}-{safe}"

    async def upload(self, organization_id: str, upload: UploadFile, folder: str) -> str:
        """Upload one file; return its reference URL."""
        try:
            storage_ref = self._storage_ref(organization_id, folder, upload.filename)
        except ValueError as e:
            raise ValidationException(str(e), field="filename") from e

        _rewind_if_seekable(upload.data)
        checksum, size = await asyncio.to_thread(
            _compute_checksum_and_size_sync, upload.data
        )
        if size > self.max_upload_size:
            raise ValidationException(
                f"File exceeds maximum upload size of {self.max_upload_size} bytes",
                field="filename",
            )
        await self.storage.upload(
            file_data=upload.data,
            storage_ref=storage_ref,
            expected_checksum=checksum,
            content_type=upload.content_type,
            metadata={"organization_id": organization_id, "folder": folder},
        )
        logger.debug("Uploaded %s (%d bytes) to %s", upload.filename, size, storage_ref)
        return self.storage.get_url(storage_ref)

    async def upload_task_attachments(
        self, organization_id: str, files: list[UploadFile]
    ) -> tuple[str, ...]:
        """Upload task attachments in order; return their URLs."""
        return tuple(
            [await self.upload(organization_id, f, ATTACHMENT_FOLDER_TASKS) for f in files]
        )

    async def upload_submission_files(
        self, organization_id: str, files: list[UploadFile]
    ) -> tuple[str, ...]:
        """Upload submission files in order; return their URLs."""
        return tuple(
            [await self.upload(organization_id, f, ATTACHMENT_FOLDER_SUBMISSIONS) for f in files]
        )
