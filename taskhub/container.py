from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from taskhub.domain.auth.service import AuthService
from taskhub.domain.ports import Clock, IdGenerator, PasswordHasher
from taskhub.domain.tasks.service import TaskService
from taskhub.domain.users.service import UserService
from taskhub.infra.clock.system_clock import SystemClock
from taskhub.infra.db.connection import Database
from taskhub.infra.db.repo.sessions_sqlite import SessionSqliteRepo
from taskhub.infra.db.repo.tasks_sqlite import TaskSqliteRepo
from taskhub.infra.db.repo.users_sqlite import UserSqliteRepo
from taskhub.infra.db.schema import init_schema
from taskhub.infra.ids.uuid_gen import UuidGenerator
from taskhub.infra.security.passwords import Pbkdf2Hasher


@dataclass(frozen=True)
class Services:
    db: Database
    clock: Clock
    auth: AuthService
    tasks: TaskService
    users: UserService

    async def init(self) -> None:
        await init_schema(self.db)


def build_services(
    db_path: Path,
    token_ttl: timedelta = timedelta(hours=168),
    clock: Optional[Clock] = None,
    ids: Optional[IdGenerator] = None,
    hasher: Optional[PasswordHasher] = None,
) -> Services:
    """Wire repositories and services over one SQLite file."""
    db = Database(str(db_path))
    clock = clock or SystemClock()
    ids = ids or UuidGenerator()
    hasher = hasher or Pbkdf2Hasher()

    users_repo = UserSqliteRepo(db)
    tasks_repo = TaskSqliteRepo(db, users_repo)
    sessions_repo = SessionSqliteRepo(db)

    return Services(
        db=db,
        clock=clock,
        auth=AuthService(users_repo, sessions_repo, hasher, clock, ids, token_ttl),
        tasks=TaskService(tasks_repo, users_repo, clock, ids),
        users=UserService(users_repo, tasks_repo, sessions_repo, hasher, clock),
    )
