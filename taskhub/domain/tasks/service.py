from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from taskhub.domain import access
from taskhub.domain.common.errors import NotFoundError, ValidationError
from taskhub.domain.common.time import to_iso
from taskhub.domain.models import (
    NewTask,
    Task,
    TaskChanges,
    TaskFilter,
    TaskPage,
    TaskStats,
    User,
)
from taskhub.domain.ports import Clock, IdGenerator, TaskRepository, UserRepository
from taskhub.domain.rules import (
    check_pagination,
    clean_comment_text,
    validate_changes,
    validate_new_task,
)

logger = logging.getLogger(__name__)


class TaskService:
    """
    Task CRUD and comments. No FastAPI. No sqlite.

    Every method takes the acting user; authentication has already happened
    upstream, authorization happens here.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        clock: Clock,
        ids: IdGenerator,
    ) -> None:
        self._tasks = tasks
        self._users = users
        self._clock = clock
        self._ids = ids

    async def list_tasks(self, actor: User, flt: TaskFilter, page: int = 1, limit: int = 10) -> TaskPage:
        check_pagination(page, limit)
        if flt.search is not None and not flt.search.strip():
            flt = replace(flt, search=None)
        return await self._tasks.list_page(flt, page, limit)

    async def get_task(self, actor: User, task_id: str) -> Task:
        return await self._load(task_id)

    async def create_task(self, actor: User, req: NewTask) -> Task:
        req = validate_new_task(req)
        if not await self._users.exists(req.assigned_to):
            raise ValidationError.for_field("assignedTo", "Assigned user not found")

        now = self._clock.now()
        task = Task(
            id=self._ids.new_id(),
            title=req.title,
            description=req.description,
            status=req.status,
            priority=req.priority,
            assigned_to=req.assigned_to,
            created_by=actor.id,
            due_date=req.due_date,
            tags=req.tags,
            attachments=req.attachments,
            estimated_hours=req.estimated_hours,
            actual_hours=None,
            created_at=now,
            updated_at=now,
        )
        await self._tasks.insert(task)
        logger.info("task %s created by %s (assignee %s)", task.id, actor.id, task.assigned_to)
        return await self._load(task.id)

    async def update_task(self, actor: User, task_id: str, changes: TaskChanges) -> Task:
        task = await self._load(task_id)
        access.require_task_modify(actor, task, "update")

        changes = validate_changes(changes)
        assignee = changes.get("assigned_to")
        if "assigned_to" in changes and assignee != task.assigned_to:
            if not await self._users.exists(assignee):
                raise ValidationError.for_field("assignedTo", "Assigned user not found")

        if changes.values:
            updated = await self._tasks.update_fields(
                task_id, dict(changes.values), to_iso(self._clock.now())
            )
            if not updated:
                # deleted between the read and the write
                raise NotFoundError("Task not found")
            logger.info("task %s updated by %s: %s", task_id, actor.id, sorted(changes.values))
        return await self._load(task_id)

    async def delete_task(self, actor: User, task_id: str) -> None:
        task = await self._load(task_id)
        access.require_task_modify(actor, task, "delete")
        if not await self._tasks.delete(task_id):
            raise NotFoundError("Task not found")
        logger.info("task %s deleted by %s", task_id, actor.id)

    async def add_comment(self, actor: User, task_id: str, text: str) -> Task:
        text = clean_comment_text(text)
        await self._load(task_id)
        await self._tasks.add_comment(task_id, actor.id, text, to_iso(self._clock.now()))
        return await self._load(task_id)

    async def overview_stats(self, actor: User, scope: Optional[str] = None) -> TaskStats:
        return await self._tasks.stats(to_iso(self._clock.now()), involving=scope)

    async def _load(self, task_id: str) -> Task:
        task = await self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task
