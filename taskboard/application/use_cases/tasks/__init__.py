"""Task use cases: store, submissions, read-model queries."""

from taskboard.application.use_cases.tasks.submission_manager import SubmissionManager
from taskboard.application.use_cases.tasks.task_queries import (
    filter_tasks,
    sort_tasks,
    status_summary,
    tasks_for_member,
)
from taskboard.application.use_cases.tasks.task_store import TaskStore, TaskSubscription

__all__ = [
    "SubmissionManager",
    "TaskStore",
    "TaskSubscription",
    "filter_tasks",
    "sort_tasks",
    "status_summary",
    "tasks_for_member",
]
