from __future__ import annotations

from fastapi import APIRouter, Depends, status

from taskhub.api import serializers as out
from taskhub.api.deps import bearer_token, current_user, get_services
from taskhub.api.schemas import LoginIn, RegisterIn
from taskhub.container import Services
from taskhub.domain.models import User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterIn, services: Services = Depends(get_services)):
    token, user = await services.auth.register(body.username, body.email, body.password)
    return {"message": "User registered successfully", "token": token, "user": out.user_out(user)}


@router.post("/login")
async def login(body: LoginIn, services: Services = Depends(get_services)):
    token, user = await services.auth.login(body.email, body.password)
    return {"message": "Login successful", "token": token, "user": out.user_out(user)}


@router.get("/me")
async def me(user: User = Depends(current_user)):
    return {"user": out.user_out(user)}


@router.post("/logout")
async def logout(
    token: str = Depends(bearer_token),
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
):
    await services.auth.logout(token)
    return {"message": "Logged out"}
