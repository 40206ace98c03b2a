from __future__ import annotations

import math
import re
import uuid
from dataclasses import replace
from typing import Any, Iterable, List, Optional
from urllib.parse import urlparse

from taskhub import constants as c
from taskhub.domain.common.errors import ValidationError
from taskhub.domain.common.time import parse_due_date
from taskhub.domain.models import NewTask, Role, TaskChanges, TaskPriority, TaskStatus

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PASSWORD_CLASSES_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def _clean_text(field: str, value: Any, max_len: int, required: bool) -> str:
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError.for_field(field, f"{field} must be a string")
    value = value.strip()
    if required and not value:
        raise ValidationError.for_field(field, f"{field} is required")
    if len(value) > max_len:
        raise ValidationError.for_field(field, f"{field} is too long (max {max_len} chars)")
    return value


def clean_title(value: Any) -> str:
    return _clean_text("title", value, c.TITLE_MAX_LEN, required=True)


def clean_description(value: Any) -> str:
    return _clean_text("description", value, c.DESCRIPTION_MAX_LEN, required=False)


def clean_comment_text(value: Any) -> str:
    return _clean_text("text", value, c.COMMENT_MAX_LEN, required=True)


def parse_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError.for_field("status", f"Invalid status: {value!r}") from None


def parse_priority(value: Any) -> TaskPriority:
    try:
        return TaskPriority(value)
    except ValueError:
        raise ValidationError.for_field("priority", f"Invalid priority: {value!r}") from None


def parse_role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError.for_field("role", f"Invalid role: {value!r}") from None


def check_identifier(field: str, value: Any) -> str:
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise ValidationError.for_field(field, f"{field} is not a valid identifier") from None


def _clean_string_list(field: str, value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ValidationError.for_field(field, f"{field} must be a list")
    out: List[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValidationError.for_field(field, f"{field} must contain strings")
        item = item.strip()
        if item:
            out.append(item)
    return out


def clean_tags(value: Any) -> List[str]:
    return _clean_string_list("tags", value)


def clean_attachments(value: Any) -> List[str]:
    return _clean_string_list("attachments", value)


def check_hours(field: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError.for_field(field, f"{field} must be a number")
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field(field, f"{field} must be a number") from None
    if math.isnan(hours) or hours < 0:
        raise ValidationError.for_field(field, f"{field} cannot be negative")
    return hours


def check_due_date(value: Any):
    try:
        return parse_due_date(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError.for_field("dueDate", "dueDate must be an ISO 8601 date") from None


def check_password_strength(password: Any, field: str = "newPassword") -> str:
    if not isinstance(password, str) or len(password) < c.PASSWORD_MIN_LEN:
        raise ValidationError.for_field(
            field, f"Password must be at least {c.PASSWORD_MIN_LEN} characters long"
        )
    if not _PASSWORD_CLASSES_RE.match(password):
        raise ValidationError.for_field(
            field,
            "Password must contain at least one uppercase letter, one lowercase letter, and one number",
        )
    return password


def clean_username(value: Any) -> str:
    value = _clean_text("username", value, c.USERNAME_MAX_LEN, required=True)
    if len(value) < c.USERNAME_MIN_LEN:
        raise ValidationError.for_field(
            "username", f"username must be at least {c.USERNAME_MIN_LEN} characters"
        )
    return value


def clean_email(value: Any) -> str:
    if not isinstance(value, str) or not _EMAIL_RE.match(value.strip()):
        raise ValidationError.for_field("email", "email must be a valid email address")
    return value.strip().lower()


def clean_avatar(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError.for_field("avatar", "avatar must be a URL")
    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError.for_field("avatar", "avatar must be a URL")
    return value.strip()


def check_pagination(page: int, limit: int) -> None:
    if not 1 <= page <= c.MAX_PAGE:
        raise ValidationError.for_field("page", f"page must be between 1 and {c.MAX_PAGE}")
    if not 1 <= limit <= c.MAX_LIMIT:
        raise ValidationError.for_field("limit", f"limit must be between 1 and {c.MAX_LIMIT}")


def validate_new_task(req: NewTask) -> NewTask:
    """Normalize and validate a task before it is first written."""
    return replace(
        req,
        title=clean_title(req.title),
        description=clean_description(req.description),
        status=parse_status(req.status),
        priority=parse_priority(req.priority),
        assigned_to=check_identifier("assignedTo", req.assigned_to),
        due_date=check_due_date(req.due_date),
        tags=clean_tags(req.tags),
        attachments=clean_attachments(req.attachments),
        estimated_hours=check_hours("estimatedHours", req.estimated_hours),
    )


def validate_changes(changes: TaskChanges) -> TaskChanges:
    """Same field constraints as creation, applied only to supplied fields."""
    checks = {
        "title": clean_title,
        "description": clean_description,
        "status": parse_status,
        "priority": parse_priority,
        "assigned_to": lambda v: check_identifier("assignedTo", v),
        "due_date": check_due_date,
        "tags": clean_tags,
        "attachments": clean_attachments,
        "estimated_hours": lambda v: check_hours("estimatedHours", v),
        "actual_hours": lambda v: check_hours("actualHours", v),
    }
    return TaskChanges({name: checks[name](value) for name, value in changes.values.items()})
