"""Core constants: lifecycle rules and shared literal values.

Single source of truth for the submission cap, the overdue grace window and
placeholder names used when directory records are missing.
"""

from datetime import time

# Submissions accepted per task (all assignees combined)
MAX_SUBMISSIONS_PER_TASK = 3

# Overdue boundary: due date + 1 calendar day, at 00:01
OVERDUE_GRACE_DAYS = 1
OVERDUE_GRACE_TIME = time(hour=0, minute=1)

# Display-name placeholders for stale references
UNKNOWN_MEMBER_NAME = "Unknown Member"
UNKNOWN_COMMITTEE_NAME = "Unknown Committee"

# Change feed channel prefix (Redis)
CHANGE_FEED_CHANNEL_PREFIX = "task_changes"

# Blob storage folders
ATTACHMENT_FOLDER_TASKS = "tasks"
ATTACHMENT_FOLDER_SUBMISSIONS = "submissions"
