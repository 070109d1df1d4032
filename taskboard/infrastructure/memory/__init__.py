"""Process-local adapters for tests and single-process deployments."""

from taskboard.infrastructure.memory.directory_memory import StaticDirectoryProvider
from taskboard.infrastructure.memory.task_repo_memory import InMemoryTaskRepository

__all__ = [
    "InMemoryTaskRepository",
    "StaticDirectoryProvider",
]
