"""Firestore-backed repository implementations (swappable with the in-memory ones)."""

from taskboard.infrastructure.firebase.repositories.directory_firestore import (
    FirestoreDirectoryProvider,
)
from taskboard.infrastructure.firebase.repositories.task_repo_firestore import (
    FirestoreTaskRepository,
)

__all__ = [
    "FirestoreDirectoryProvider",
    "FirestoreTaskRepository",
]
