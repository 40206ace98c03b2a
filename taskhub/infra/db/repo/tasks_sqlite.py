# -*- coding: utf-8 -*-
"""Tasks and their comments: filtering, pagination, stats rollups."""
from __future__ import annotations

import json
import sqlite3
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from taskhub.constants import TASK_STATUS_COMPLETED
from taskhub.domain.common.errors import NotFoundError
from taskhub.domain.common.time import from_iso, to_iso
from taskhub.domain.models import (
    Comment,
    Task,
    TaskFilter,
    TaskPage,
    TaskPriority,
    TaskStats,
    TaskStatus,
    UserProjection,
)
from taskhub.domain.ports import TaskRepository, UserRepository
from taskhub.infra.db.connection import Database

_COLUMNS = {
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "assigned_to": "assigned_to",
    "due_date": "due_date",
    "tags": "tags",
    "attachments": "attachments",
    "estimated_hours": "estimated_hours",
    "actual_hours": "actual_hours",
}


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_where(flt: TaskFilter) -> Tuple[str, List[Any]]:
    """All supplied filters are ANDed; search ORs over title, description and tags."""
    clauses: List[str] = []
    params: List[Any] = []
    if flt.status is not None:
        clauses.append("status = ?")
        params.append(TaskStatus(flt.status).value)
    if flt.priority is not None:
        clauses.append("priority = ?")
        params.append(TaskPriority(flt.priority).value)
    if flt.assigned_to is not None:
        clauses.append("assigned_to = ?")
        params.append(flt.assigned_to)
    if flt.involving is not None:
        clauses.append("(assigned_to = ? OR created_by = ?)")
        params.extend([flt.involving, flt.involving])
    if flt.search:
        # both sides folded in Python; `casefold` is registered by Database
        pattern = _like_pattern(flt.search.casefold())
        clauses.append(
            "(casefold(title) LIKE ? ESCAPE '\\'"
            " OR casefold(description) LIKE ? ESCAPE '\\'"
            " OR EXISTS (SELECT 1 FROM json_each(tasks.tags) AS t WHERE casefold(t.value) LIKE ? ESCAPE '\\'))"
        )
        params.extend([pattern, pattern, pattern])
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


class TaskSqliteRepo(TaskRepository):
    """tasks + task_comments tables. Resolves user references through the user repo."""

    def __init__(self, db: Database, users: UserRepository) -> None:
        self._db = db
        self._users = users

    async def insert(self, task: Task) -> None:
        await self._db.execute(
            """
            INSERT INTO tasks(
              id, title, description, status, priority, assigned_to, created_by,
              due_date, tags, attachments, estimated_hours, actual_hours,
              created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                task.id,
                task.title,
                task.description,
                task.status.value,
                task.priority.value,
                task.assigned_to,
                task.created_by,
                to_iso(task.due_date) if task.due_date else None,
                json.dumps(task.tags, ensure_ascii=False),
                json.dumps(task.attachments, ensure_ascii=False),
                task.estimated_hours,
                task.actual_hours,
                to_iso(task.created_at),
                to_iso(task.updated_at),
            ),
        )

    async def get(self, task_id: str) -> Optional[Task]:
        row = await self._db.fetchone("SELECT * FROM tasks WHERE id = ?;", (task_id,))
        if not row:
            return None
        tasks = await self._hydrate([row])
        return tasks[0]

    async def update_fields(self, task_id: str, values: Dict[str, Any], updated_at_iso: str) -> bool:
        unknown = set(values) - set(_COLUMNS)
        if unknown:
            raise ValueError(f"cannot update task columns: {sorted(unknown)}")
        cols = list(values)
        params = [self._to_db(name, values[name]) for name in cols]
        assignments = ", ".join(f"{_COLUMNS[name]} = ?" for name in cols)
        changed = await self._db.execute(
            f"UPDATE tasks SET {assignments}, updated_at = ? WHERE id = ?;",
            (*params, updated_at_iso, task_id),
        )
        return changed > 0

    async def delete(self, task_id: str) -> bool:
        # comments go with the task (ON DELETE CASCADE)
        changed = await self._db.execute("DELETE FROM tasks WHERE id = ?;", (task_id,))
        return changed > 0

    async def add_comment(self, task_id: str, user_id: str, text: str, created_at_iso: str) -> int:
        try:
            return await self._db.insert(
                "INSERT INTO task_comments(task_id, user_id, text, created_at) VALUES (?, ?, ?, ?);",
                (task_id, user_id, text, created_at_iso),
            )
        except sqlite3.IntegrityError:
            # the task row went away after the caller loaded it
            raise NotFoundError("Task not found") from None

    async def list_page(self, flt: TaskFilter, page: int, limit: int) -> TaskPage:
        where, params = build_where(flt)
        row = await self._db.fetchone(f"SELECT COUNT(*) AS count FROM tasks{where};", params)
        total = row["count"] if row else 0
        rows = await self._db.fetchall(
            f"""
            SELECT * FROM tasks{where}
            ORDER BY created_at DESC, rowid DESC
            LIMIT ? OFFSET ?;
            """,
            (*params, limit, (page - 1) * limit),
        )
        return TaskPage(tasks=await self._hydrate(rows), page=page, limit=limit, total=total)

    async def stats(self, now_iso: str, involving: Optional[str] = None) -> TaskStats:
        where, params = build_where(TaskFilter(involving=involving))
        joiner = " AND " if where else " WHERE "

        status_rows = await self._db.fetchall(
            f"SELECT status, COUNT(*) AS count FROM tasks{where} GROUP BY status;", params
        )
        priority_rows = await self._db.fetchall(
            f"SELECT priority, COUNT(*) AS count FROM tasks{where} GROUP BY priority;", params
        )
        overdue_row = await self._db.fetchone(
            f"""
            SELECT COUNT(*) AS count FROM tasks{where}{joiner}
            due_date IS NOT NULL AND due_date < ? AND status != ?;
            """,
            (*params, now_iso, TASK_STATUS_COMPLETED),
        )

        by_status = {r["status"]: r["count"] for r in status_rows}
        by_priority = {r["priority"]: r["count"] for r in priority_rows}
        return TaskStats(
            by_status=by_status,
            by_priority=by_priority,
            overdue=overdue_row["count"] if overdue_row else 0,
            total=sum(by_status.values()),
            completed=by_status.get(TASK_STATUS_COMPLETED, 0),
        )

    async def _hydrate(self, rows: Sequence[Any]) -> List[Task]:
        """Attach comments and user projections to task rows."""
        if not rows:
            return []
        task_ids = [r["id"] for r in rows]
        marks = ", ".join("?" for _ in task_ids)
        comment_rows = await self._db.fetchall(
            f"SELECT * FROM task_comments WHERE task_id IN ({marks}) ORDER BY id ASC;",
            task_ids,
        )

        user_ids = {r["assigned_to"] for r in rows} | {r["created_by"] for r in rows}
        user_ids |= {r["user_id"] for r in comment_rows}
        people = await self._users.projections(user_ids)

        comments: Dict[str, List[Comment]] = {tid: [] for tid in task_ids}
        for r in comment_rows:
            comments[r["task_id"]].append(
                Comment(
                    id=r["id"],
                    user_id=r["user_id"],
                    text=r["text"],
                    created_at=from_iso(r["created_at"]),
                    user=people.get(r["user_id"]),
                )
            )
        return [self._row_to_task(r, comments[r["id"]], people) for r in rows]

    @staticmethod
    def _to_db(name: str, value: Any) -> Any:
        if value is None:
            return None
        if name in ("tags", "attachments"):
            return json.dumps(list(value), ensure_ascii=False)
        if name == "due_date":
            return to_iso(value)
        if isinstance(value, Enum):
            return value.value
        return value

    def _row_to_task(
        self,
        row,
        comments: List[Comment],
        people: Dict[str, UserProjection],
    ) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            status=TaskStatus(row["status"]),
            priority=TaskPriority(row["priority"]),
            assigned_to=row["assigned_to"],
            created_by=row["created_by"],
            due_date=from_iso(row["due_date"]) if row["due_date"] else None,
            tags=json.loads(row["tags"] or "[]"),
            attachments=json.loads(row["attachments"] or "[]"),
            estimated_hours=row["estimated_hours"],
            actual_hours=row["actual_hours"],
            created_at=from_iso(row["created_at"]),
            updated_at=from_iso(row["updated_at"]),
            comments=comments,
            assignee=people.get(row["assigned_to"]),
            creator=people.get(row["created_by"]),
        )
