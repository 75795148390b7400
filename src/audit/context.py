"""Who did what, and from where: the actor half of every audit line."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from django.conf import settings


@dataclass(frozen=True)
class AuditContext:
    user_id: Optional[int] = None
    username: Optional[str] = None
    email: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request) -> "AuditContext":
        """Build a context from the request's user and client metadata."""
        user = getattr(request, "user", None)
        if user is None or not getattr(user, "is_authenticated", False):
            user = None

        meta = getattr(request, "META", {})
        return cls(
            user_id=getattr(user, "id", None),
            username=getattr(user, "name", None) or None,
            email=getattr(user, "email", None),
            ip_address=client_ip(meta),
            user_agent=meta.get("HTTP_USER_AGENT") or None,
        )

    @classmethod
    def system(cls, **extra: Any) -> "AuditContext":
        """Context for operations not triggered by a user (CLI, cron)."""
        return cls(username="SYSTEM", user_agent="manage.py", extra=extra)

    def as_dict(self) -> dict[str, Any]:
        data = {
            "actor_user_id": self.user_id,
            "actor_username": self.username,
            "actor_email": self.email,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            **self.extra,
        }
        return {key: value for key, value in data.items() if value is not None}


def client_ip(meta) -> Optional[str]:
    """Client address, honouring X-Forwarded-For only when configured to."""
    if getattr(settings, "AUDIT_TRUST_X_FORWARDED_FOR", False):
        forwarded = meta.get("HTTP_X_FORWARDED_FOR", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return meta.get("REMOTE_ADDR") or None


__all__ = ["AuditContext", "client_ip"]
