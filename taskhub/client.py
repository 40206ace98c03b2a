"""
Async HTTP client for the taskhub API.

Credentials are passed explicitly on every call that needs them; the client
never installs a default Authorization header, so one client instance can
serve several users side by side.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx


class ApiError(Exception):
    def __init__(self, status: int, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message
        self.errors = errors or []


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TaskHubClient:
    def __init__(self, base_url: str = "", http: Optional[httpx.AsyncClient] = None) -> None:
        self._http = http or httpx.AsyncClient(base_url=base_url)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "TaskHubClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = auth_headers(token) if token else None
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        resp = await self._http.request(method, path, headers=headers, json=json, params=params)
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.is_error:
            raise ApiError(resp.status_code, data.get("error", resp.reason_phrase), data.get("errors"))
        return data

    # --- auth ---

    async def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/auth/register", json={"username": username, "email": email, "password": password}
        )

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/login", json={"email": email, "password": password})

    async def me(self, token: str) -> Dict[str, Any]:
        return (await self._request("GET", "/auth/me", token=token))["user"]

    async def logout(self, token: str) -> None:
        await self._request("POST", "/auth/logout", token=token)

    # --- tasks ---

    async def list_tasks(
        self,
        token: str,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = {
            "page": page,
            "limit": limit,
            "status": status,
            "priority": priority,
            "assignedTo": assigned_to,
            "search": search,
        }
        return await self._request("GET", "/tasks", token=token, params=params)

    async def get_task(self, token: str, task_id: str) -> Dict[str, Any]:
        return (await self._request("GET", f"/tasks/{task_id}", token=token))["task"]

    async def create_task(self, token: str, **fields: Any) -> Dict[str, Any]:
        return (await self._request("POST", "/tasks", token=token, json=fields))["task"]

    async def update_task(self, token: str, task_id: str, **fields: Any) -> Dict[str, Any]:
        return (await self._request("PUT", f"/tasks/{task_id}", token=token, json=fields))["task"]

    async def delete_task(self, token: str, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}", token=token)

    async def add_comment(self, token: str, task_id: str, text: str) -> Dict[str, Any]:
        return (await self._request("POST", f"/tasks/{task_id}/comments", token=token, json={"text": text}))["task"]

    async def stats_overview(self, token: str) -> Dict[str, Any]:
        return await self._request("GET", "/tasks/stats/overview", token=token)

    # --- users ---

    async def profile(self, token: str) -> Dict[str, Any]:
        return (await self._request("GET", "/users/profile", token=token))["user"]

    async def update_profile(self, token: str, **fields: Any) -> Dict[str, Any]:
        return (await self._request("PUT", "/users/profile", token=token, json=fields))["user"]

    async def change_password(self, token: str, current_password: str, new_password: str) -> None:
        await self._request(
            "PUT",
            "/users/change-password",
            token=token,
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    async def user_stats(self, token: str) -> Dict[str, Any]:
        return await self._request("GET", "/users/stats", token=token)

    async def my_tasks(self, token: str, page: int = 1, limit: int = 10, **filters: Any) -> Dict[str, Any]:
        return await self._request("GET", "/users/tasks", token=token, params={"page": page, "limit": limit, **filters})

    async def list_users(self, token: str) -> List[Dict[str, Any]]:
        return (await self._request("GET", "/users", token=token))["users"]

    async def set_role(self, token: str, user_id: str, role: str) -> Dict[str, Any]:
        return (await self._request("PUT", f"/users/{user_id}/role", token=token, json={"role": role}))["user"]

    async def set_active(self, token: str, user_id: str, is_active: bool) -> Dict[str, Any]:
        return (await self._request("PUT", f"/users/{user_id}/status", token=token, json={"isActive": is_active}))["user"]
