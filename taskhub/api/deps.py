from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskhub.container import Services
from taskhub.domain.access import require_authenticated
from taskhub.domain.common.errors import UnauthenticatedError
from taskhub.domain.models import User

_bearer = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Authentication required")
    return credentials.credentials


async def current_user(
    token: str = Depends(bearer_token),
    services: Services = Depends(get_services),
) -> User:
    """Rebuilt from the bearer token on every request."""
    user = await services.auth.authenticate(token)
    return require_authenticated(user)
