from __future__ import annotations

import sqlite3
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence

from taskhub.domain.common.errors import ConflictError
from taskhub.domain.common.time import from_iso, to_iso
from taskhub.domain.models import Role, User, UserProjection
from taskhub.domain.ports import UserRepository
from taskhub.infra.db.connection import Database

_UPDATABLE = ("username", "email", "password_hash", "role", "is_active", "avatar")


def _unique_conflict(exc: sqlite3.IntegrityError) -> Optional[ConflictError]:
    """Map a UNIQUE violation that slipped past `find_conflict` (a concurrent write)."""
    if "users.username" in str(exc):
        return ConflictError("Username already taken", field="username")
    if "users.email" in str(exc):
        return ConflictError("Email already registered", field="email")
    return None


class UserSqliteRepo(UserRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, user_id: str) -> Optional[User]:
        row = await self._db.fetchone("SELECT * FROM users WHERE id = ?;", (user_id,))
        return self._row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        row = await self._db.fetchone("SELECT * FROM users WHERE email = ?;", (email,))
        return self._row_to_user(row) if row else None

    async def exists(self, user_id: str) -> bool:
        row = await self._db.fetchone("SELECT 1 FROM users WHERE id = ?;", (user_id,))
        return row is not None

    async def find_conflict(
        self,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> Optional[User]:
        clauses = []
        params: list[Any] = []
        if username is not None:
            clauses.append("username = ?")
            params.append(username)
        if email is not None:
            clauses.append("email = ?")
            params.append(email)
        if not clauses:
            return None
        sql = f"SELECT * FROM users WHERE ({' OR '.join(clauses)})"
        if exclude_id is not None:
            sql += " AND id != ?"
            params.append(exclude_id)
        # a username clash is reported ahead of an email clash
        if username is not None:
            sql += " ORDER BY username = ? DESC"
            params.append(username)
        row = await self._db.fetchone(sql + " LIMIT 1;", params)
        return self._row_to_user(row) if row else None

    async def insert(self, user: User) -> None:
        try:
            await self._db.execute(
                """
                INSERT INTO users(id, username, email, password_hash, role, is_active, avatar, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    user.id,
                    user.username,
                    user.email,
                    user.password_hash,
                    user.role.value,
                    int(user.is_active),
                    user.avatar,
                    to_iso(user.created_at),
                    to_iso(user.updated_at),
                ),
            )
        except sqlite3.IntegrityError as exc:
            conflict = _unique_conflict(exc)
            if conflict is None:
                raise
            raise conflict from None

    async def update_fields(self, user_id: str, values: Dict[str, Any], updated_at_iso: str) -> bool:
        unknown = set(values) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"cannot update user columns: {sorted(unknown)}")
        cols = list(values)
        params = [self._to_db(values[c]) for c in cols]
        assignments = ", ".join(f"{c} = ?" for c in cols + ["updated_at"])
        try:
            changed = await self._db.execute(
                f"UPDATE users SET {assignments} WHERE id = ?;",
                (*params, updated_at_iso, user_id),
            )
        except sqlite3.IntegrityError as exc:
            conflict = _unique_conflict(exc)
            if conflict is None:
                raise
            raise conflict from None
        return changed > 0

    async def list_all(self) -> Sequence[User]:
        rows = await self._db.fetchall("SELECT * FROM users ORDER BY created_at ASC;")
        return [self._row_to_user(r) for r in rows]

    async def projections(self, user_ids: Iterable[str]) -> Dict[str, UserProjection]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        marks = ", ".join("?" for _ in ids)
        rows = await self._db.fetchall(
            f"SELECT id, username, email, avatar FROM users WHERE id IN ({marks});", ids
        )
        return {
            r["id"]: UserProjection(id=r["id"], username=r["username"], email=r["email"], avatar=r["avatar"])
            for r in rows
        }

    @staticmethod
    def _to_db(value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, bool):
            return int(value)
        return value

    def _row_to_user(self, row) -> User:
        return User(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=Role(row["role"]),
            is_active=bool(row["is_active"]),
            avatar=row["avatar"],
            created_at=from_iso(row["created_at"]),
            updated_at=from_iso(row["updated_at"]),
        )
