"""
Log formatting: JSON lines for production, a compact human format for a TTY.

Every record emitted inside a request carries that request's ID.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from .context import get_request_id

# LogRecord attributes that are plumbing, not payload
_RESERVED = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line:

    {"timestamp": "2026-01-15T10:30:00.000Z", "level": "INFO",
     "logger": "kustoc.repository", "message": "client created: CLI001",
     "request_id": "req-abc123", ...extra fields}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3]
            + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_obj["request_id"] = request_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in log_obj:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


class HumanFormatter(logging.Formatter):
    """Readable single-line format for local development."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        request_id = get_request_id()
        rid_str = f"[{request_id[:12]}] " if request_id else ""
        line = f"{timestamp} [{record.levelname}] {record.name}: {rid_str}{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "INFO", json_format: bool | None = None) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: force JSON on/off; None picks JSON when stderr is not a TTY
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    root_logger.addHandler(handler)
