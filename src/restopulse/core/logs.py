"""Structured event logging helpers.

Events go through the standard library ``logging`` module on the
``restopulse`` logger. Structured fields travel in ``extra`` so any handler
can pick them up; ``restopulse.adapters.logging.JsonLineFormatter`` renders
them as one JSON object per line.
"""

import logging
from typing import Any

LOGGER_NAME = "restopulse"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def level_for_status(status_code: int) -> str:
    """Map an HTTP status code to a log level name.

    - 500 and above -> "ERROR"
    - 400-499 -> "WARNING"
    - anything else -> "INFO"
    """
    if status_code >= 500:
        return "ERROR"
    if status_code >= 400:
        return "WARNING"
    return "INFO"


def log_event(
    event: str,
    level: str = "INFO",
    request_id: str | None = None,
    actor_user_id: str | None = None,
    restaurant_id: str | None = None,
    **metadata: Any,
) -> None:
    """Log a structured event.

    Args:
        event: Event name (e.g., "api_response", "ops_alert_check").
        level: Level name; "WARN" is accepted as an alias of "WARNING".
            Unknown names log at INFO.
        request_id: Correlation ID of the request being handled.
        actor_user_id: Authenticated user behind the request, if any.
        restaurant_id: Tenant the request is scoped to, if any.
        **metadata: Additional structured fields.
    """
    get_logger().log(
        _LEVELS.get(level.upper(), logging.INFO),
        event,
        extra={
            "event": event,
            "request_id": request_id,
            "actor_user_id": actor_user_id,
            "restaurant_id": restaurant_id,
            "metadata": metadata,
        },
    )


def log_exception(message: str, **attributes: Any) -> None:
    """Log the exception currently being handled at ERROR level.

    Must be called from inside an ``except`` block so the traceback is
    captured.

    Args:
        message: Description of what failed.
        **attributes: Additional structured fields.
    """
    get_logger().error(
        message,
        exc_info=True,
        extra={"event": "exception", "metadata": attributes},
    )
