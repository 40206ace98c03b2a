"""
Constants for task status, priority, roles and field limits.
"""
from __future__ import annotations

# Task status values (stored in tasks.status)
TASK_STATUS_TODO = "todo"
TASK_STATUS_IN_PROGRESS = "in-progress"
TASK_STATUS_REVIEW = "review"
TASK_STATUS_COMPLETED = "completed"

# Task priority values (stored in tasks.priority)
TASK_PRIORITY_LOW = "low"
TASK_PRIORITY_MEDIUM = "medium"
TASK_PRIORITY_HIGH = "high"
TASK_PRIORITY_URGENT = "urgent"

# User roles (stored in users.role)
ROLE_USER = "user"
ROLE_ADMIN = "admin"

# Progress percentage shown for each status
STATUS_PROGRESS = {
    TASK_STATUS_TODO: 0,
    TASK_STATUS_IN_PROGRESS: 50,
    TASK_STATUS_REVIEW: 75,
    TASK_STATUS_COMPLETED: 100,
}

# Field limits
TITLE_MAX_LEN = 200
DESCRIPTION_MAX_LEN = 2000
COMMENT_MAX_LEN = 1000
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 30
PASSWORD_MIN_LEN = 6

# Pagination
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
MAX_PAGE = 1_000_000
