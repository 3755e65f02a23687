"""Python logging adapter rendering restopulse events as JSON lines.

Bridges the standard library ``logging`` module to the structured event
format used across the service, so request and alert events can be shipped
to any line-oriented log collector.
"""

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from typing import Any, TextIO

from restopulse.core.logs import LOGGER_NAME

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# Fields promoted to the top level of the JSON object
_ENVELOPE_ATTRS = frozenset(
    {"event", "request_id", "actor_user_id", "restaurant_id", "metadata"}
)


class JsonLineFormatter(logging.Formatter):
    """Formatter that renders each record as a single JSON object.

    Example:
        ```python
        handler = logging.StreamHandler()
        handler.setFormatter(JsonLineFormatter())
        logging.getLogger("restopulse").addHandler(handler)
        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        metadata: dict[str, Any] = {}
        record_metadata = getattr(record, "metadata", None)
        if isinstance(record_metadata, dict):
            metadata.update(record_metadata)

        # Add any extra attributes passed via logging call
        for key, value in record.__dict__.items():
            if key in _STANDARD_LOGRECORD_ATTRS or key in _ENVELOPE_ATTRS:
                continue
            if isinstance(value, (str, int, float, bool)):
                metadata[key] = value

        # Extract exception info if present
        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                metadata["exc_type"] = exc_type.__name__
            if exc_value is not None:
                metadata["exc_message"] = str(exc_value)
            if exc_tb is not None:
                metadata["exc_traceback"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )

        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "event": getattr(record, "event", None) or record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            "actor_user_id": getattr(record, "actor_user_id", None),
            "restaurant_id": getattr(record, "restaurant_id", None),
            "metadata": metadata,
        }
        return json.dumps(payload, default=str)


def configure_logging(
    level: str = "INFO", stream: TextIO | None = None
) -> logging.Logger:
    """Install a JSON line handler on the restopulse logger.

    Calling this more than once replaces the previously installed handler
    instead of stacking a second one.

    Args:
        level: Logger level name.
        stream: Destination stream (default: stderr).

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, "_restopulse_json", False):
            logger.removeHandler(existing)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonLineFormatter())
    handler._restopulse_json = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
