"""Domain exceptions for the task engine.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns; callers map
them to their own responses using message, error_code and details.
"""

from typing import Any


class TaskboardException(Exception):
    """Base exception for all task engine errors.

    All custom exceptions inherit from this class to allow consistent
    error handling and logging.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, task_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(TaskboardException):
    """Raised when input validation fails (date invariant, empty recipients, blank text)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(TaskboardException):
    """Raised when a requested resource (e.g. a task) is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'task').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class OutOfWindowException(TaskboardException):
    """Raised when a submission is attempted outside [start_time, due_time]."""

    def __init__(self, task_id: str, reason: str) -> None:
        """Initialize with task id and reason.

        Args:
            task_id: Task the submission targeted.
            reason: 'before_start' or 'after_due'.
        """
        message = (
            "Submission before start date"
            if reason == "before_start"
            else "Deadline passed"
        )
        super().__init__(
            message,
            "OUT_OF_WINDOW",
            {"task_id": task_id, "reason": reason},
        )


class SubmissionLimitReachedException(TaskboardException):
    """Raised when a task already holds the maximum number of submissions."""

    def __init__(self, task_id: str, limit: int) -> None:
        super().__init__(
            f"Task {task_id} already has {limit} submissions",
            "SUBMISSION_LIMIT_REACHED",
            {"task_id": task_id, "limit": limit},
        )


class SubmissionNotFoundException(TaskboardException):
    """Raised when commenting on a submission index that does not exist."""

    def __init__(self, task_id: str, submission_index: int) -> None:
        super().__init__(
            f"Submission {submission_index} not found on task {task_id}",
            "SUBMISSION_NOT_FOUND",
            {"task_id": task_id, "submission_index": submission_index},
        )
