"""Typed audit log events and the single-line parser.

Line grammar::

    [<timestamp>] [<LEVEL>] <message> <context-json>

The message group is greedy, so the context is the last `` {``-prefixed
brace group that runs to the end of the line. A message that itself contains
`` {`` followed by a ``}`` later on the line confuses the split; such lines
either decode to the wrong object or are skipped. Writers emit compact JSON
(no ``", "`` / ``": "`` separators) to keep nested objects intact.
"""

import json
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

LINE_RE = re.compile(r"^\[(?P<timestamp>.*?)\] \[(?P<level>.*?)\] (?P<message>.*) (?P<context>\{.*\})$")

INFO = "INFO"
WARNING = "WARNING"
ERROR = "ERROR"
DEBUG = "DEBUG"

FAILURE_LEVELS = frozenset({WARNING, ERROR})


@dataclass(frozen=True)
class LogEvent:
    """One parsed audit log line."""

    timestamp: str
    level: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    date: Optional[str] = None

    @property
    def action(self) -> Optional[str]:
        return self.context.get("action")

    @property
    def is_completed(self) -> bool:
        """A line carrying an ``action`` records a completed operation."""
        return "action" in self.context and self.context["action"] is not None

    @property
    def is_failed_attempt(self) -> bool:
        """WARNING/ERROR lines without an ``action`` are failed attempts."""
        return self.level in FAILURE_LEVELS and not self.is_completed

    def context_int(self, key: str) -> Optional[int]:
        """Return ``context[key]`` coerced to int, or None if absent/non-numeric."""
        value = self.context.get(key)
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_line(line: str, date: Optional[str] = None) -> Optional[LogEvent]:
    """Parse one raw line; return None for anything that does not match."""
    match = LINE_RE.match(line.rstrip("\r\n"))
    if match is None:
        return None

    try:
        context = json.loads(match.group("context"))
    except ValueError:
        return None
    if not isinstance(context, dict):
        return None

    return LogEvent(
        timestamp=match.group("timestamp"),
        level=match.group("level"),
        message=match.group("message"),
        context=context,
        date=date,
    )


__all__ = [
    "LogEvent",
    "parse_line",
    "LINE_RE",
    "INFO",
    "WARNING",
    "ERROR",
    "DEBUG",
    "FAILURE_LEVELS",
]
