"""
Authorization rules.

Pure functions over the acting user and the target resource; nothing is
cached between requests. `can_*` answer the question, `require_*` raise
ForbiddenError when the answer is no.
"""
from __future__ import annotations

import logging
from typing import Optional

from taskhub.domain.common.errors import ForbiddenError, UnauthenticatedError
from taskhub.domain.models import Role, Task, User

logger = logging.getLogger(__name__)


def is_admin(user: User) -> bool:
    return user.role is Role.ADMIN


def can_modify_task(user: User, task: Task) -> bool:
    """Creator or admin may update/delete a task."""
    return task.created_by == user.id or is_admin(user)


def can_administer_users(user: User) -> bool:
    return is_admin(user)


def require_authenticated(user: Optional[User]) -> User:
    if user is None:
        raise UnauthenticatedError("Authentication required")
    if not user.is_active:
        raise UnauthenticatedError("Account is deactivated")
    return user


def require_task_modify(user: User, task: Task, action: str) -> None:
    if not can_modify_task(user, task):
        logger.warning("user %s denied %s on task %s", user.id, action, task.id)
        raise ForbiddenError(f"Not authorized to {action} this task")


def require_admin(user: User) -> None:
    if not can_administer_users(user):
        logger.warning("user %s denied admin access", user.id)
        raise ForbiddenError("Admin access required")
