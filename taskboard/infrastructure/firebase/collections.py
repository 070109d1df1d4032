"""Firestore document paths (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when the first document is written. These helpers are the single source of
truth for where each record lives:

    tasks/{organization_id}/AllTasks/{task_id}
    organizations/{organization_id}
    studentlogs/{organization_id}/activitylogs/{auto_id}
    notifications/{user_id}/userNotifications/{auto_id}
"""

COLLECTION_TASKS = "tasks"
SUBCOLLECTION_ALL_TASKS = "AllTasks"

COLLECTION_ORGANIZATIONS = "organizations"

COLLECTION_ACTIVITY_LOGS = "studentlogs"
SUBCOLLECTION_ACTIVITY_LOGS = "activitylogs"

COLLECTION_NOTIFICATIONS = "notifications"
SUBCOLLECTION_USER_NOTIFICATIONS = "userNotifications"


def tasks_path(organization_id: str) -> str:
    return f"{COLLECTION_TASKS}/{organization_id}/{SUBCOLLECTION_ALL_TASKS}"


def organization_path(organization_id: str) -> str:
    return f"{COLLECTION_ORGANIZATIONS}/{organization_id}"


def activity_logs_path(organization_id: str) -> str:
    return f"{COLLECTION_ACTIVITY_LOGS}/{organization_id}/{SUBCOLLECTION_ACTIVITY_LOGS}"


def user_notifications_path(user_id: str) -> str:
    return f"{COLLECTION_NOTIFICATIONS}/{user_id}/{SUBCOLLECTION_USER_NOTIFICATIONS}"
