# -*- coding: utf-8 -*-
"""SQLite implementations of the domain repository ports."""

from taskhub.infra.db.repo.sessions_sqlite import SessionSqliteRepo
from taskhub.infra.db.repo.tasks_sqlite import TaskSqliteRepo
from taskhub.infra.db.repo.users_sqlite import UserSqliteRepo

__all__ = [
    "SessionSqliteRepo",
    "TaskSqliteRepo",
    "UserSqliteRepo",
]
