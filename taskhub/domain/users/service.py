from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from taskhub.domain import access
from taskhub.domain.common.errors import ConflictError, NotFoundError, ValidationError
from taskhub.domain.common.time import to_iso
from taskhub.domain.models import (
    TaskFilter,
    TaskPage,
    TaskPriority,
    TaskStats,
    TaskStatus,
    User,
)
from taskhub.domain.ports import Clock, PasswordHasher, SessionRepository, TaskRepository, UserRepository
from taskhub.domain.rules import (
    check_pagination,
    check_password_strength,
    clean_avatar,
    clean_email,
    clean_username,
    parse_role,
)

logger = logging.getLogger(__name__)


async def ensure_unique(
    users: UserRepository,
    username: Optional[str],
    email: Optional[str],
    exclude_id: Optional[str] = None,
) -> None:
    existing = await users.find_conflict(username, email, exclude_id=exclude_id)
    if existing is None:
        return
    if username is not None and existing.username == username:
        raise ConflictError("Username already taken", field="username")
    raise ConflictError("Email already registered", field="email")


class UserService:
    """Profiles, password rotation, per-user stats and admin user management."""

    def __init__(
        self,
        users: UserRepository,
        tasks: TaskRepository,
        sessions: SessionRepository,
        hasher: PasswordHasher,
        clock: Clock,
    ) -> None:
        self._users = users
        self._tasks = tasks
        self._sessions = sessions
        self._hasher = hasher
        self._clock = clock

    async def list_users(self, actor: User) -> Sequence[User]:
        access.require_admin(actor)
        return await self._users.list_all()

    async def get_profile(self, actor: User) -> User:
        return await self._load(actor.id)

    async def update_profile(
        self,
        actor: User,
        username: Optional[str] = None,
        email: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> User:
        values: Dict[str, Any] = {}
        if username:
            values["username"] = clean_username(username)
        if email:
            values["email"] = clean_email(email)
        if avatar:
            values["avatar"] = clean_avatar(avatar)

        if "username" in values or "email" in values:
            await ensure_unique(self._users, values.get("username"), values.get("email"), exclude_id=actor.id)

        if values:
            await self._users.update_fields(actor.id, values, to_iso(self._clock.now()))
            logger.info("user %s updated profile: %s", actor.id, sorted(values))
        return await self._load(actor.id)

    async def change_password(self, actor: User, current_password: str, new_password: str) -> None:
        if not current_password:
            raise ValidationError.for_field("currentPassword", "Current password is required")
        check_password_strength(new_password)

        user = await self._load(actor.id)
        if not self._hasher.verify(current_password, user.password_hash):
            raise ValidationError.for_field("currentPassword", "Current password is incorrect")

        await self._users.update_fields(
            user.id, {"password_hash": self._hasher.hash(new_password)}, to_iso(self._clock.now())
        )
        logger.info("user %s changed password", user.id)

    async def user_stats(self, actor: User) -> TaskStats:
        return await self._tasks.stats(to_iso(self._clock.now()), involving=actor.id)

    async def user_tasks(
        self,
        actor: User,
        page: int = 1,
        limit: int = 10,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
    ) -> TaskPage:
        check_pagination(page, limit)
        flt = TaskFilter(status=status, priority=priority, involving=actor.id)
        return await self._tasks.list_page(flt, page, limit)

    async def set_role(self, actor: User, user_id: str, role: Any) -> User:
        access.require_admin(actor)
        role = parse_role(role)
        if not await self._users.update_fields(user_id, {"role": role}, to_iso(self._clock.now())):
            raise NotFoundError("User not found")
        logger.info("admin %s set role of %s to %s", actor.id, user_id, role.value)
        return await self._load(user_id)

    async def set_active(self, actor: User, user_id: str, is_active: bool) -> User:
        access.require_admin(actor)
        if not isinstance(is_active, bool):
            raise ValidationError.for_field("isActive", "isActive must be a boolean")
        if not await self._users.update_fields(user_id, {"is_active": is_active}, to_iso(self._clock.now())):
            raise NotFoundError("User not found")
        if not is_active:
            await self._sessions.revoke_user(user_id)
        logger.info("admin %s %s user %s", actor.id, "activated" if is_active else "deactivated", user_id)
        return await self._load(user_id)

    async def _load(self, user_id: str) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
