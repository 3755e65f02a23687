"""Port interfaces for runtime metrics collaborators.

These protocols define the contracts between the aggregator, the layers that
feed or read it, and the external systems the alert check talks to. The core
depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from restopulse.core.models import ProbeResult, RuntimeSnapshot


@runtime_checkable
class RequestRecorderPort(Protocol):
    """Port used by response-finalization middleware.

    Implementations must accept every completed request exactly once,
    regardless of status.
    """

    def record(self, method: str, path: str, status: int, duration_ms: float) -> None:
        """Record one completed request."""
        ...


@runtime_checkable
class SnapshotSourcePort(Protocol):
    """Port used by health/metrics endpoints and the alert check."""

    def snapshot(self) -> RuntimeSnapshot:
        """Return a point-in-time metrics view."""
        ...

    def uptime_seconds(self) -> int:
        """Return seconds since the source started collecting."""
        ...


@runtime_checkable
class DatabaseProbePort(Protocol):
    """Port for checking that the backing database answers queries.

    Examples: SQLiteDatabaseProbe.
    """

    async def check(self) -> ProbeResult:
        """Run a trivial query and report reachability. Must not raise."""
        ...


@runtime_checkable
class AlertNotifierPort(Protocol):
    """Port for delivering operational alerts.

    Examples: SlackWebhookNotifier, InMemoryAlertNotifier.
    """

    async def send(
        self, title: str, severity: str, details: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Deliver one alert.

        Returns:
            Delivery outcome, at least ``{"sent": bool}``.
        """
        ...
