# tests/conftest.py

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from taskhub.container import Services, build_services
from taskhub.domain.models import Role
from taskhub.domain.ports import Clock
from taskhub.infra.security.passwords import Pbkdf2Hasher

STRONG_PASSWORD = "Passw0rd"


class TickingClock(Clock):
    """Deterministic clock: starts at a fixed instant and moves one second per read."""

    def __init__(self, start: datetime) -> None:
        self._now = start

    def now(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now

    def peek(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now += delta


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def services(tmp_path: Path, clock: TickingClock) -> Services:
    """
    Real SQLite-backed services on a temp file.

    A low PBKDF2 iteration count keeps registration fast.
    """
    svc = build_services(
        tmp_path / "taskhub.db",
        token_ttl=timedelta(hours=1),
        clock=clock,
        hasher=Pbkdf2Hasher(iterations=1_000),
    )
    asyncio.run(svc.init())
    return svc


@pytest.fixture()
def make_user(services: Services):
    """Factory: make_user("alice", admin=False) -> (token, user)."""

    def _make(username: str, admin: bool = False):
        role = Role.ADMIN if admin else Role.USER
        return asyncio.run(
            services.auth.register(username, f"{username}@example.com", STRONG_PASSWORD, role=role)
        )

    return _make
