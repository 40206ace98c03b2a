from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional, Tuple

from taskhub.domain.auth.tokens import hash_token, new_token
from taskhub.domain.common.errors import UnauthenticatedError, ValidationError
from taskhub.domain.common.time import to_iso
from taskhub.domain.models import Role, User
from taskhub.domain.ports import Clock, IdGenerator, PasswordHasher, SessionRepository, UserRepository
from taskhub.domain.rules import check_password_strength, clean_email, clean_username
from taskhub.domain.users.service import ensure_unique

logger = logging.getLogger(__name__)


class AuthService:
    """
    Account registration and bearer-token sessions.

    Identity is looked up from the presented token on every request; nothing
    about the caller is kept in process memory.
    """

    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        hasher: PasswordHasher,
        clock: Clock,
        ids: IdGenerator,
        token_ttl: timedelta,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._hasher = hasher
        self._clock = clock
        self._ids = ids
        self._token_ttl = token_ttl

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> Tuple[str, User]:
        user = await self._create_user(username, email, password, role)
        return await self._issue(user), user

    async def _create_user(self, username: str, email: str, password: str, role: Role) -> User:
        username = clean_username(username)
        email = clean_email(email)
        check_password_strength(password, field="password")
        await ensure_unique(self._users, username, email)

        now = self._clock.now()
        user = User(
            id=self._ids.new_id(),
            username=username,
            email=email,
            password_hash=self._hasher.hash(password),
            role=role,
            is_active=True,
            avatar=None,
            created_at=now,
            updated_at=now,
        )
        await self._users.insert(user)
        logger.info("registered user %s (%s)", user.id, role.value)
        return user

    async def login(self, email: str, password: str) -> Tuple[str, User]:
        if not email or not password:
            raise ValidationError("Email and password are required")
        user = await self._users.get_by_email(email.strip().lower())
        if user is None or not self._hasher.verify(password, user.password_hash):
            raise UnauthenticatedError("Invalid credentials")
        if not user.is_active:
            raise UnauthenticatedError("Account is deactivated")
        return await self._issue(user), user

    async def authenticate(self, token: Optional[str]) -> User:
        if not token:
            raise UnauthenticatedError("Authentication required")
        user_id = await self._sessions.resolve(hash_token(token), to_iso(self._clock.now()))
        if user_id is None:
            raise UnauthenticatedError("Invalid or expired token")
        user = await self._users.get(user_id)
        if user is None:
            raise UnauthenticatedError("Invalid or expired token")
        if not user.is_active:
            raise UnauthenticatedError("Account is deactivated")
        return user

    async def logout(self, token: str) -> None:
        await self._sessions.revoke(hash_token(token))

    async def bootstrap_admin(self, username: str, email: str, password: str) -> None:
        """Create the configured admin account once; no-op if the email is taken."""
        if await self._users.get_by_email(clean_email(email)) is not None:
            logger.info("admin account %s already exists", email)
            return
        await self._create_user(username, email, password, Role.ADMIN)

    async def _issue(self, user: User) -> str:
        token = new_token()
        now = self._clock.now()
        await self._sessions.create(
            hash_token(token), user.id, to_iso(now), to_iso(now + self._token_ttl)
        )
        return token
