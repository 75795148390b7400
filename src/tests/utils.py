"""Shared helpers for tests (user creation, fake Redis, audit log files)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, Optional

from django.contrib.auth import get_user_model

from access_control.roles import Role
from authentication.managers import UserManager

User = get_user_model()

DEFAULT_PASSWORD = "Kq7-vintage-Lamp"


class FakeRedis:
    """Minimal Redis stub supporting the commands used by TokenService."""

    def __init__(self):
        self._store: Dict[str, str] = {}

    def setex(self, key: str, ttl_seconds: int, value: str) -> None:
        """Mimic Redis SETEX; TTL is ignored in tests, value stored in-memory."""
        self._store[key] = value

    def get(self, key: str):
        """Return stored value for key or None, matching Redis GET semantics."""
        return self._store.get(key)


def create_user(email: str, password: str = DEFAULT_PASSWORD, role: Role = Role.USER, **extra):
    """Create a user with a bcrypt-hashed password for tests."""

    extra.setdefault("name", email.split("@")[0].title())
    return User.objects.create(
        email=email,
        password_hash=UserManager.hash_password(password),
        role=role,
        **extra,
    )


def log_line(level: str, message: str, context: Optional[dict] = None, timestamp: str = "2024-01-15 10:00:00") -> str:
    """Render one audit line the way AuditLogFormatter does."""

    line = f"[{timestamp}] [{level}] {message}"
    if context is not None:
        line += " " + json.dumps(context, separators=(",", ":"))
    return line


def write_log(directory: Path, day: str, lines: Iterable[str]) -> Path:
    """Write ``lines`` to ``<directory>/<day>.log`` and return the path."""

    path = Path(directory) / f"{day}.log"
    with path.open("a", encoding="utf-8") as handle:
        for line in lines:
            handle.write(line + "\n")
    return path
