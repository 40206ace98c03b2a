"""Domain objects -> JSON-ready dicts (camelCase keys, never a password hash)."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from taskhub.domain.common.time import to_iso
from taskhub.domain.models import Comment, Task, TaskPage, TaskStats, User, UserProjection


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return to_iso(dt) if dt else None


def projection_out(p: Optional[UserProjection]) -> Optional[Dict[str, Any]]:
    if p is None:
        return None
    return {"id": p.id, "username": p.username, "email": p.email, "avatar": p.avatar}


def user_out(u: User) -> Dict[str, Any]:
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "role": u.role.value,
        "isActive": u.is_active,
        "avatar": u.avatar,
        "createdAt": _iso(u.created_at),
        "updatedAt": _iso(u.updated_at),
    }


def comment_out(cm: Comment) -> Dict[str, Any]:
    return {
        "id": cm.id,
        "user": projection_out(cm.user),
        "text": cm.text,
        "createdAt": _iso(cm.created_at),
    }


def task_out(t: Task, now: datetime) -> Dict[str, Any]:
    return {
        "id": t.id,
        "title": t.title,
        "description": t.description,
        "status": t.status.value,
        "priority": t.priority.value,
        "assignedTo": projection_out(t.assignee),
        "createdBy": projection_out(t.creator),
        "dueDate": _iso(t.due_date),
        "tags": list(t.tags),
        "attachments": list(t.attachments),
        "comments": [comment_out(cm) for cm in t.comments],
        "estimatedHours": t.estimated_hours,
        "actualHours": t.actual_hours,
        "createdAt": _iso(t.created_at),
        "updatedAt": _iso(t.updated_at),
        "isOverdue": t.is_overdue(now),
        "progress": t.progress,
    }


def page_out(p: TaskPage, now: datetime) -> Dict[str, Any]:
    return {
        "tasks": [task_out(t, now) for t in p.tasks],
        "pagination": {"page": p.page, "limit": p.limit, "total": p.total, "pages": p.pages},
    }


def overview_out(s: TaskStats) -> Dict[str, Any]:
    return {
        "statusStats": dict(s.by_status),
        "priorityStats": dict(s.by_priority),
        "overdueTasks": s.overdue,
        "totalTasks": s.total,
    }


def user_stats_out(s: TaskStats) -> Dict[str, Any]:
    return {
        "totalTasks": s.total,
        "completedTasks": s.completed,
        "overdueTasks": s.overdue,
        "completionRate": s.completion_rate,
        "tasksByStatus": dict(s.by_status),
        "tasksByPriority": dict(s.by_priority),
    }
