from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from taskhub import constants as c


class Role(str, Enum):
    USER = c.ROLE_USER
    ADMIN = c.ROLE_ADMIN


class TaskStatus(str, Enum):
    TODO = c.TASK_STATUS_TODO
    IN_PROGRESS = c.TASK_STATUS_IN_PROGRESS
    REVIEW = c.TASK_STATUS_REVIEW
    COMPLETED = c.TASK_STATUS_COMPLETED


class TaskPriority(str, Enum):
    LOW = c.TASK_PRIORITY_LOW
    MEDIUM = c.TASK_PRIORITY_MEDIUM
    HIGH = c.TASK_PRIORITY_HIGH
    URGENT = c.TASK_PRIORITY_URGENT


@dataclass(frozen=True)
class User:
    id: str
    username: str
    email: str
    password_hash: str
    role: Role
    is_active: bool
    avatar: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserProjection:
    """Display view of a user. Never carries the password hash."""

    id: str
    username: str
    email: str
    avatar: Optional[str]


@dataclass(frozen=True)
class Comment:
    id: int
    user_id: str
    text: str
    created_at: datetime
    user: Optional[UserProjection] = None


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    assigned_to: str
    created_by: str
    due_date: Optional[datetime]
    tags: List[str]
    attachments: List[str]
    estimated_hours: Optional[float]
    actual_hours: Optional[float]
    created_at: datetime
    updated_at: datetime
    comments: List[Comment] = field(default_factory=list)
    assignee: Optional[UserProjection] = None
    creator: Optional[UserProjection] = None

    def is_overdue(self, now: datetime) -> bool:
        if self.due_date is None:
            return False
        return self.due_date < now and self.status != TaskStatus.COMPLETED

    @property
    def progress(self) -> int:
        return c.STATUS_PROGRESS[self.status.value]


@dataclass(frozen=True)
class TaskFilter:
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[str] = None
    search: Optional[str] = None
    # restrict to tasks where this user is assignee OR creator
    involving: Optional[str] = None


@dataclass(frozen=True)
class TaskPage:
    tasks: List[Task]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit)


@dataclass(frozen=True)
class TaskStats:
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    overdue: int
    total: int
    completed: int

    @property
    def completion_rate(self) -> float:
        if self.total == 0:
            return 0
        return self.completed / self.total * 100


@dataclass(frozen=True)
class NewTask:
    title: str
    assigned_to: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    # ISO 8601 strings are accepted and coerced on validation
    due_date: Union[datetime, str, None] = None
    tags: List[str] = field(default_factory=list)
    attachments: List[str] = field(default_factory=list)
    estimated_hours: Optional[float] = None


# Mutable task fields; a TaskChanges carries only the ones a caller supplied.
TASK_MUTABLE_FIELDS = (
    "title",
    "description",
    "status",
    "priority",
    "assigned_to",
    "due_date",
    "tags",
    "attachments",
    "estimated_hours",
    "actual_hours",
)


@dataclass(frozen=True)
class TaskChanges:
    values: Dict[str, object]

    def __post_init__(self) -> None:
        unknown = set(self.values) - set(TASK_MUTABLE_FIELDS)
        if unknown:
            raise ValueError(f"not mutable: {sorted(unknown)}")

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def get(self, name: str, default: object = None) -> object:
        return self.values.get(name, default)
