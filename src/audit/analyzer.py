"""Read-side analysis of date-partitioned audit log files.

Each calendar date maps to ``<log_directory>/<YYYY-MM-DD>.log``. Every query
is a fresh, read-only scan of the relevant files: a missing file contributes
nothing and malformed lines are skipped, so sparse or partially corrupt logs
never abort a query.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Iterator, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from . import dates
from .dates import date_range, parse_date
from .events import FAILURE_LEVELS, LogEvent, parse_line

MODIFICATION_ACTIONS = frozenset({"USER_UPDATED", "USER_DELETED"})


class InvalidConfiguration(ImproperlyConfigured):
    """Raised when the analyzer's log directory is unusable."""


@dataclass
class AuditReport:
    """Aggregate view over a date range; built per query, never persisted."""

    start: str
    end: str
    total_events: int = 0
    unique_users: int = 0
    modifications: int = 0
    failed_attempts: int = 0
    top_users: list[dict[str, Any]] = field(default_factory=list)
    recent_events: list[dict[str, Any]] = field(default_factory=list)
    by_action: dict[str, int] = field(default_factory=dict)
    by_user: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """JSON-serializable representation using the public report keys."""
        return {
            "period": {"start": self.start, "end": self.end},
            "totalEvents": self.total_events,
            "uniqueUsers": self.unique_users,
            "modifications": self.modifications,
            "failedAttempts": self.failed_attempts,
            "topUsers": [dict(entry) for entry in self.top_users],
            "recentEvents": [dict(entry) for entry in self.recent_events],
            "byAction": dict(self.by_action),
            "byUser": dict(self.by_user),
        }


class AuditLogAnalyzer:
    """Answer per-user, per-target, suspicious-activity and report queries."""

    SUSPICIOUS_THRESHOLD = 5
    TOP_USERS_LIMIT = 10
    DEFAULT_HISTORY_DAYS = 7

    def __init__(self, log_directory):
        path = Path(log_directory)
        if not path.exists():
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise InvalidConfiguration(f"Audit log directory cannot be created: {path}") from exc
        if not path.is_dir():
            raise InvalidConfiguration(f"Audit log path is not a directory: {path}")
        self.log_directory = path.resolve()

    def log_file(self, day: date) -> Path:
        return self.log_directory / f"{day.isoformat()}.log"

    def _read_events(self, day: date) -> Iterator[LogEvent]:
        """Yield parsed events for ``day`` in file order; nothing if no file."""
        path = self.log_file(day)
        if not path.is_file():
            return
        day_str = day.isoformat()
        with path.open("r", encoding="utf-8", errors="replace") as handle:
            for line in handle:
                event = parse_line(line, date=day_str)
                if event is not None:
                    yield event

    def _resolve_range(self, start_date: Optional[str], end_date: Optional[str]) -> tuple[date, date]:
        if start_date:
            start = parse_date(start_date)
        else:
            start = dates.today() - timedelta(days=self.DEFAULT_HISTORY_DAYS)
        end = parse_date(end_date) if end_date else dates.today()
        return start, end

    def get_user_actions(self, actor_user_id: int, date: Optional[str] = None) -> list[LogEvent]:
        """Events on ``date`` (default today) initiated by ``actor_user_id``."""
        day = parse_date(date)
        return [event for event in self._read_events(day) if event.context_int("actor_user_id") == actor_user_id]

    def get_target_user_history(
        self,
        target_user_id: int,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[LogEvent]:
        """Events touching ``target_user_id`` across the range, chronologically.

        Missing bounds default to the last ``DEFAULT_HISTORY_DAYS`` days up to
        today.
        """
        start, end = self._resolve_range(start_date, end_date)
        history: list[LogEvent] = []
        for day in date_range(start, end):
            history.extend(
                event for event in self._read_events(day) if event.context_int("target_user_id") == target_user_id
            )
        return history

    def detect_suspicious_activity(self, date: Optional[str] = None) -> dict[str, int]:
        """Map IP -> WARNING/ERROR count for IPs above the threshold on one day."""
        day = parse_date(date)
        attempts: dict[str, int] = {}
        for event in self._read_events(day):
            if event.level not in FAILURE_LEVELS:
                continue
            ip = event.context.get("ip_address")
            if ip is None:
                continue
            ip = str(ip)
            attempts[ip] = attempts.get(ip, 0) + 1
        return {ip: count for ip, count in attempts.items() if count > self.SUSPICIOUS_THRESHOLD}

    def generate_audit_report(self, start_date: str, end_date: str) -> AuditReport:
        """Aggregate completed operations and failed attempts over a range."""
        start = parse_date(start_date)
        end = parse_date(end_date)
        report = AuditReport(start=start.isoformat(), end=end.isoformat())

        users: dict[Any, dict[str, Any]] = {}
        events: list[dict[str, Any]] = []

        for day in date_range(start, end):
            for event in self._read_events(day):
                if not event.context:
                    continue
                context = event.context
                completed = event.is_completed

                if completed:
                    report.total_events += 1

                actor_id = context.get("actor_user_id")
                if isinstance(actor_id, (dict, list)):
                    actor_id = None
                actor_key = None
                if actor_id is not None:
                    # "1" and 1 are the same actor.
                    actor_key = event.context_int("actor_user_id")
                    if actor_key is None:
                        actor_key = str(actor_id)
                    tally = users.get(actor_key)
                    if tally is None:
                        tally = users[actor_key] = {
                            "userId": actor_id,
                            "username": _first_present(context, "actor_username", default=f"User {actor_id}"),
                            "count": 0,
                            "lastActivity": event.timestamp,
                        }
                    if completed:
                        tally["count"] += 1
                        tally["lastActivity"] = event.timestamp

                if completed:
                    action = str(context["action"])
                    report.by_action[action] = report.by_action.get(action, 0) + 1
                    if action in MODIFICATION_ACTIONS:
                        report.modifications += 1
                    if actor_key is not None:
                        key = str(actor_key)
                        report.by_user[key] = report.by_user.get(key, 0) + 1
                    events.append(
                        {
                            "timestamp": event.timestamp,
                            "userId": _first_present(context, "actor_username", "actor_user_id", default="N/A"),
                            "action": action,
                            "target": _first_present(context, "target_email", "target_user_id", default="-"),
                            "success": True,
                        }
                    )

                if event.is_failed_attempt:
                    report.failed_attempts += 1

        report.unique_users = len(users)
        # sorted() is stable, so tied counts keep first-seen order.
        report.top_users = sorted(users.values(), key=lambda entry: entry["count"], reverse=True)[
            : self.TOP_USERS_LIMIT
        ]
        report.recent_events = sorted(events, key=lambda entry: entry["timestamp"], reverse=True)
        return report


def _first_present(context: dict[str, Any], *keys: str, default: Any) -> Any:
    for key in keys:
        value = context.get(key)
        if value is not None:
            return value
    return default


def get_audit_log_analyzer() -> AuditLogAnalyzer:
    """Build an analyzer for ``settings.AUDIT_LOG_DIR``."""
    return AuditLogAnalyzer(settings.AUDIT_LOG_DIR)


__all__ = [
    "AuditLogAnalyzer",
    "AuditReport",
    "InvalidConfiguration",
    "MODIFICATION_ACTIONS",
    "get_audit_log_analyzer",
]
