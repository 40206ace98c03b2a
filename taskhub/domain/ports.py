from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from taskhub.domain.models import Task, TaskFilter, TaskPage, TaskStats, User, UserProjection


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime: ...


class IdGenerator(ABC):
    @abstractmethod
    def new_id(self) -> str: ...


class PasswordHasher(ABC):
    @abstractmethod
    def hash(self, password: str) -> str: ...

    @abstractmethod
    def verify(self, password: str, password_hash: str) -> bool: ...


class UserRepository(ABC):
    @abstractmethod
    async def get(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def exists(self, user_id: str) -> bool: ...

    @abstractmethod
    async def find_conflict(
        self,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> Optional[User]: ...

    @abstractmethod
    async def insert(self, user: User) -> None: ...

    @abstractmethod
    async def update_fields(self, user_id: str, values: Dict[str, Any], updated_at_iso: str) -> bool: ...

    @abstractmethod
    async def list_all(self) -> Sequence[User]: ...

    @abstractmethod
    async def projections(self, user_ids: Iterable[str]) -> Dict[str, UserProjection]: ...


class TaskRepository(ABC):
    @abstractmethod
    async def insert(self, task: Task) -> None: ...

    @abstractmethod
    async def get(self, task_id: str) -> Optional[Task]: ...

    @abstractmethod
    async def update_fields(self, task_id: str, values: Dict[str, Any], updated_at_iso: str) -> bool: ...

    @abstractmethod
    async def delete(self, task_id: str) -> bool: ...

    @abstractmethod
    async def add_comment(self, task_id: str, user_id: str, text: str, created_at_iso: str) -> int: ...

    @abstractmethod
    async def list_page(self, flt: TaskFilter, page: int, limit: int) -> TaskPage: ...

    @abstractmethod
    async def stats(self, now_iso: str, involving: Optional[str] = None) -> TaskStats: ...


class SessionRepository(ABC):
    @abstractmethod
    async def create(self, token_hash: str, user_id: str, created_at_iso: str, expires_at_iso: str) -> None: ...

    @abstractmethod
    async def resolve(self, token_hash: str, now_iso: str) -> Optional[str]: ...

    @abstractmethod
    async def revoke(self, token_hash: str) -> None: ...

    @abstractmethod
    async def revoke_user(self, user_id: str) -> None: ...
