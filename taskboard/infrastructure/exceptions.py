"""Infrastructure exceptions for storage and external operations.

These extend TaskboardException so callers can handle every engine error
through one base class.
"""

from taskboard.domain.exceptions import TaskboardException


class StorageException(TaskboardException):
    """Base exception for storage operations."""


class StorageUnavailableException(StorageException):
    """Task store or change transport unreachable (network error, timeout, 5xx).

    Reads may be retried freely by callers; writes are not retried here.
    """

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Storage unavailable during {operation}",
            "STORAGE_UNAVAILABLE",
            {"operation": operation, "reason": reason},
        )


class StorageNotFoundError(StorageException):
    """File or object not found in blob storage."""

    def __init__(self, file_path: str) -> None:
        super().__init__(
            f"File not found: {file_path}",
            "STORAGE_NOT_FOUND",
            {"file_path": file_path},
        )


class StorageUploadError(StorageException):
    """File upload failed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to upload file: {file_path}",
            "STORAGE_UPLOAD_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StorageDeleteError(StorageException):
    """File deletion failed."""

    def __init__(self, file_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to delete file: {file_path}",
            "STORAGE_DELETE_ERROR",
            {"file_path": file_path, "reason": reason},
        )


class StorageChecksumMismatchError(StorageException):
    """Checksum validation failed (corrupted or truncated upload)."""

    def __init__(self, file_path: str, expected: str, actual: str) -> None:
        super().__init__(
            f"Checksum mismatch for file: {file_path}",
            "STORAGE_CHECKSUM_ERROR",
            {"file_path": file_path, "expected": expected, "actual": actual},
        )


class StorageAlreadyExistsError(StorageException):
    """File already exists with different checksum."""

    def __init__(self, file_path: str) -> None:
        super().__init__(
            f"File already exists: {file_path}",
            "STORAGE_EXISTS_ERROR",
            {"file_path": file_path},
        )


class StoragePermissionError(StorageException):
    """Path escapes the storage root or is otherwise not writable."""

    def __init__(self, file_path: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {file_path}",
            "STORAGE_PERMISSION_ERROR",
            {"file_path": file_path, "operation": operation},
        )
