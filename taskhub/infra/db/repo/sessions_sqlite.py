from __future__ import annotations

from typing import Optional

from taskhub.domain.ports import SessionRepository
from taskhub.infra.db.connection import Database


class SessionSqliteRepo(SessionRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(self, token_hash: str, user_id: str, created_at_iso: str, expires_at_iso: str) -> None:
        # expired rows are swept whenever a new session is issued
        await self._db.execute("DELETE FROM sessions WHERE expires_at <= ?;", (created_at_iso,))
        await self._db.execute(
            "INSERT INTO sessions(token_hash, user_id, created_at, expires_at) VALUES (?, ?, ?, ?);",
            (token_hash, user_id, created_at_iso, expires_at_iso),
        )

    async def resolve(self, token_hash: str, now_iso: str) -> Optional[str]:
        row = await self._db.fetchone(
            "SELECT user_id FROM sessions WHERE token_hash = ? AND expires_at > ?;",
            (token_hash, now_iso),
        )
        return row["user_id"] if row else None

    async def revoke(self, token_hash: str) -> None:
        await self._db.execute("DELETE FROM sessions WHERE token_hash = ?;", (token_hash,))

    async def revoke_user(self, user_id: str) -> None:
        await self._db.execute("DELETE FROM sessions WHERE user_id = ?;", (user_id,))
