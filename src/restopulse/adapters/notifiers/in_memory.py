"""In-memory alert notifier."""

from collections.abc import Mapping
from typing import Any


class InMemoryAlertNotifier:
    """In-memory implementation of AlertNotifierPort.

    Keeps every alert in a list and reports it as sent. Meant for tests.
    """

    def __init__(self) -> None:
        self.alerts: list[dict[str, Any]] = []

    async def send(
        self, title: str, severity: str, details: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Store the alert."""
        self.alerts.append(
            {"title": title, "severity": severity, "details": dict(details)}
        )
        return {"sent": True}
