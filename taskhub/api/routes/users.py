from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from taskhub import constants as c
from taskhub.api import serializers as out
from taskhub.api.deps import current_user, get_services
from taskhub.api.schemas import ChangePasswordIn, ProfileUpdateIn, RoleIn, StatusIn
from taskhub.container import Services
from taskhub.domain.models import TaskPriority, TaskStatus, User

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    users = await services.users.list_users(user)
    return {"users": [out.user_out(u) for u in users]}


@router.get("/profile")
async def get_profile(
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    profile = await services.users.get_profile(user)
    return {"user": out.user_out(profile)}


@router.put("/profile")
async def update_profile(
    body: ProfileUpdateIn,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    profile = await services.users.update_profile(
        user, username=body.username, email=body.email, avatar=body.avatar
    )
    return {"message": "Profile updated successfully", "user": out.user_out(profile)}


@router.put("/change-password")
async def change_password(
    body: ChangePasswordIn,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    await services.users.change_password(user, body.currentPassword, body.newPassword)
    return {"message": "Password changed successfully"}


@router.get("/stats")
async def user_stats(
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    stats = await services.users.user_stats(user)
    return out.user_stats_out(stats)


@router.get("/tasks")
async def user_tasks(
    page: int = Query(c.DEFAULT_PAGE, ge=1, le=c.MAX_PAGE),
    limit: int = Query(c.DEFAULT_LIMIT, ge=1, le=c.MAX_LIMIT),
    status_: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    result = await services.users.user_tasks(user, page=page, limit=limit, status=status_, priority=priority)
    return out.page_out(result, services.clock.now())


@router.put("/{user_id}/role")
async def set_role(
    user_id: str,
    body: RoleIn,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    updated = await services.users.set_role(user, user_id, body.role)
    return {"message": "User role updated successfully", "user": out.user_out(updated)}


@router.put("/{user_id}/status")
async def set_status(
    user_id: str,
    body: StatusIn,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    updated = await services.users.set_active(user, user_id, body.isActive)
    verb = "activated" if body.isActive else "deactivated"
    return {"message": f"User {verb} successfully", "user": out.user_out(updated)}
