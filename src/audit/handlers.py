"""Logging formatter and handler that write the audit log line format.

Configure through ``settings.LOGGING``; emit with::

    logger = logging.getLogger("audit")
    logger.info("User created", extra={"context": {"action": "USER_CREATED", ...}})
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path


def _render_value(value) -> str:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return str(value)
    return json.dumps(value, separators=(",", ":"), default=str)


class AuditLogFormatter(logging.Formatter):
    """Render ``[timestamp] [LEVEL] message {context}`` in UTC.

    ``{key}`` placeholders in the message are filled from the context; the
    remaining context keys are appended as compact JSON.
    """

    default_time_format = "%Y-%m-%d %H:%M:%S"

    def formatTime(self, record, datefmt=None):  # noqa: N802 - logging API
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return created.strftime(datefmt or self.default_time_format)

    def format(self, record):
        context = dict(getattr(record, "context", None) or {})
        message = record.getMessage()

        unused = {}
        for key, value in context.items():
            placeholder = "{" + key + "}"
            if placeholder in message:
                message = message.replace(placeholder, _render_value(value))
            else:
                unused[key] = value

        # One record per line, including text filled in from the context.
        message = message.replace("\r", " ").replace("\n", " ")

        line = f"[{self.formatTime(record)}] [{record.levelname}] {message}"
        if unused:
            line += " " + json.dumps(unused, separators=(",", ":"), default=str)
        return line


class DailyAuditFileHandler(logging.Handler):
    """Append each record to ``<directory>/<UTC date>.log``.

    Every emit opens the file in append mode, writes one line and closes it,
    so readers never see a partially written line from a buffered stream.
    """

    def __init__(self, directory, level=logging.NOTSET, encoding="utf-8"):
        super().__init__(level)
        self.directory = Path(directory)
        self.encoding = encoding

    def path_for(self, record) -> Path:
        day = datetime.fromtimestamp(record.created, tz=timezone.utc).date()
        return self.directory / f"{day.isoformat()}.log"

    def emit(self, record):
        try:
            line = self.format(record)
            self.directory.mkdir(parents=True, exist_ok=True)
            with self.path_for(record).open("a", encoding=self.encoding) as handle:
                handle.write(line + "\n")
                handle.flush()
        except Exception:
            self.handleError(record)


__all__ = ["AuditLogFormatter", "DailyAuditFileHandler"]
