"""Domain enumerations for the task engine.

Enums represent fixed sets of domain values (e.g. task status). Values are
the display strings stored in task documents.
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Task lifecycle status.

    COMPLETED is terminal and sticky: once a submission is accepted no
    time-based recomputation changes it.
    """

    STARTED = "Started"
    IN_PROGRESS = "In-Progress"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"
    EXTENDED = "Extended"
    EXTENDED_OVERDUE = "Extended-Overdue"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings.

        Returns:
            List of enum value strings (e.g. for validation or serialization).
        """
        return [status.value for status in cls]

    @property
    def is_overdue_family(self) -> bool:
        """Whether the task has been overdue at some point (OVERDUE or EXTENDED_OVERDUE)."""
        return self in (TaskStatus.OVERDUE, TaskStatus.EXTENDED_OVERDUE)
