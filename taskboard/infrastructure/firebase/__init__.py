"""Firestore (REST) persistence for tasks, directories, notifications and activity logs."""

from taskboard.infrastructure.firebase.client import (
    close_firestore,
    init_firestore,
)

__all__ = [
    "close_firestore",
    "init_firestore",
]
