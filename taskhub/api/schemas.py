from __future__ import annotations

from typing import Annotated, List, Optional

from pydantic import BaseModel, EmailStr, Field, StrictBool, StringConstraints

from taskhub import constants as c
from taskhub.domain.models import Role, TaskChanges, TaskPriority, TaskStatus

# request bodies; field names follow the JSON the client sends

_UPDATE_FIELDS = {
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "assignedTo": "assigned_to",
    "dueDate": "due_date",
    "tags": "tags",
    "attachments": "attachments",
    "estimatedHours": "estimated_hours",
    "actualHours": "actual_hours",
}

# lengths are checked after trimming, like the domain rules do
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=c.TITLE_MAX_LEN)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=c.DESCRIPTION_MAX_LEN)]
CommentText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=c.COMMENT_MAX_LEN)]


class TaskCreateIn(BaseModel):
    title: Title
    description: Description = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assignedTo: str
    dueDate: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    attachments: List[str] = Field(default_factory=list)
    estimatedHours: Optional[float] = Field(None, ge=0)


class TaskUpdateIn(BaseModel):
    title: Optional[Title] = None
    description: Optional[Description] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignedTo: Optional[str] = None
    dueDate: Optional[str] = None
    tags: Optional[List[str]] = None
    attachments: Optional[List[str]] = None
    estimatedHours: Optional[float] = Field(None, ge=0)
    actualHours: Optional[float] = Field(None, ge=0)

    def to_changes(self) -> TaskChanges:
        """Only the fields the client actually sent."""
        return TaskChanges(
            {_UPDATE_FIELDS[name]: getattr(self, name) for name in self.model_fields_set}
        )


class CommentIn(BaseModel):
    text: CommentText


class RegisterIn(BaseModel):
    username: str = Field(..., min_length=c.USERNAME_MIN_LEN, max_length=c.USERNAME_MAX_LEN)
    email: EmailStr
    password: str = Field(..., min_length=c.PASSWORD_MIN_LEN)


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdateIn(BaseModel):
    username: Optional[str] = Field(None, min_length=c.USERNAME_MIN_LEN, max_length=c.USERNAME_MAX_LEN)
    email: Optional[EmailStr] = None
    avatar: Optional[str] = None


class ChangePasswordIn(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str


class RoleIn(BaseModel):
    role: Role


class StatusIn(BaseModel):
    isActive: StrictBool
