"""JSON structured logging for textforensics.

Modules log through ``logging.getLogger(__name__)`` and attach structured
fields via ``extra``:

    logger.info(
        "Analysis completed",
        extra={"event_type": "analysis_completed", "metrics": {...}},
    )

``configure_logging`` installs ``JSONFormatter`` (or a plain text formatter)
on the ``textforensics`` package logger. Analyzed text must only reach logs
through ``payload_scrubber``.
"""

from __future__ import annotations

import json
import logging
import re
import sys
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

PACKAGE_LOGGER = "textforensics"

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Standard LogRecord attributes that are not extras
_RESERVED_ATTRS = frozenset(
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
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "event_type",
        "correlation_id",
        "metrics",
    }
)


def payload_scrubber(
    text: str,
    max_length: int = 50,
    mask_char: str = "*",
) -> str:
    """Scrub analyzed text for safe logging.

    Args:
        text: The text to scrub
        max_length: Maximum length of text to show (rest is masked)
        mask_char: Character to use for masking

    Returns:
        Scrubbed text safe for logging
    """
    if not text:
        return "[empty]"

    if not isinstance(text, str):
        return f"[non-string:{type(text).__name__}]"

    clean = re.sub(r"[\n\r\t]+", " ", text)
    # Hidden codepoints would reorder or hide parts of the log line itself
    clean = clean.encode("ascii", "backslashreplace").decode("ascii")

    if len(clean) > max_length:
        visible_chars = max_length // 2
        return (
            f"{clean[:visible_chars]}{mask_char * 3}[{len(text)} chars]"
            f"{mask_char * 3}{clean[-visible_chars:]}"
        )

    return clean


class EventType(Enum):
    """Structured event types emitted by textforensics."""

    CAPABILITIES_DETECTED = "capabilities_detected"
    ANALYSIS_COMPLETED = "analysis_completed"
    REQUEST_COMPLETED = "request_completed"
    REQUEST_REJECTED = "request_rejected"
    CONFIG_LOADED = "config_loaded"
    SERVER_STARTUP = "server_startup"
    INTERNAL_ERROR = "internal_error"


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Fixed fields: timestamp, level, logger, event_type, correlation_id,
    message, metrics. Any other ``extra`` keys are appended as-is.
    """

    def format(self, record: logging.LogRecord) -> str:
        event_type = getattr(record, "event_type", "unknown")
        if isinstance(event_type, EventType):
            event_type = event_type.value

        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "timestamp_unix": record.created,
            "level": record.levelname,
            "logger": record.name,
            "event_type": event_type,
            "correlation_id": getattr(record, "correlation_id", str(uuid.uuid4())),
            "message": record.getMessage(),
            "metrics": getattr(record, "metrics", {}),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def configure_logging(
    level: str | int = "INFO",
    json_logging: bool = False,
    stream: Any = None,
) -> logging.Logger:
    """Install a single stream handler on the package logger.

    Calling it again replaces the handler instead of stacking a second one.

    Args:
        level: Level name or number for the package logger.
        json_logging: Use ``JSONFormatter`` instead of plain text.
        stream: Target stream (stderr by default).

    Returns:
        The configured package logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_textforensics_handler", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if json_logging else logging.Formatter(_TEXT_FORMAT))
    handler._textforensics_handler = True  # type: ignore[attr-defined]

    package_logger.addHandler(handler)
    package_logger.setLevel(level.upper() if isinstance(level, str) else level)
    package_logger.propagate = False
    return package_logger


__all__ = [
    "EventType",
    "JSONFormatter",
    "PACKAGE_LOGGER",
    "configure_logging",
    "payload_scrubber",
]
