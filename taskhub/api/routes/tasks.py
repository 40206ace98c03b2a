from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from taskhub import constants as c
from taskhub.api import serializers as out
from taskhub.api.deps import current_user, get_services
from taskhub.api.schemas import CommentIn, TaskCreateIn, TaskUpdateIn
from taskhub.container import Services
from taskhub.domain.models import NewTask, TaskFilter, TaskPriority, TaskStatus, User
from taskhub.domain.rules import check_identifier

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(
    page: int = Query(c.DEFAULT_PAGE, ge=1, le=c.MAX_PAGE),
    limit: int = Query(c.DEFAULT_LIMIT, ge=1, le=c.MAX_LIMIT),
    status_: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    assignedTo: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    flt = TaskFilter(
        status=status_,
        priority=priority,
        assigned_to=check_identifier("assignedTo", assignedTo) if assignedTo else None,
        search=search,
    )
    result = await services.tasks.list_tasks(user, flt, page=page, limit=limit)
    return out.page_out(result, services.clock.now())


@router.get("/stats/overview")
async def stats_overview(
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    stats = await services.tasks.overview_stats(user)
    return out.overview_out(stats)


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    task = await services.tasks.get_task(user, task_id)
    return {"task": out.task_out(task, services.clock.now())}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    body: TaskCreateIn,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    req = NewTask(
        title=body.title,
        description=body.description,
        status=body.status,
        priority=body.priority,
        assigned_to=body.assignedTo,
        due_date=body.dueDate,
        tags=body.tags,
        attachments=body.attachments,
        estimated_hours=body.estimatedHours,
    )
    task = await services.tasks.create_task(user, req)
    return {"message": "Task created successfully", "task": out.task_out(task, services.clock.now())}


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    body: TaskUpdateIn,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    task = await services.tasks.update_task(user, task_id, body.to_changes())
    return {"message": "Task updated successfully", "task": out.task_out(task, services.clock.now())}


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    await services.tasks.delete_task(user, task_id)
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/comments")
async def add_comment(
    task_id: str,
    body: CommentIn,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    task = await services.tasks.add_comment(user, task_id, body.text)
    return {"message": "Comment added successfully", "task": out.task_out(task, services.clock.now())}
