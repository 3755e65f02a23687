"""Threshold-based alerting over runtime metrics snapshots.

The aggregator only supplies numbers. This module compares them against
configured thresholds, turns breaches into incidents and hands each incident
to a notifier.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from restopulse.core.logs import log_event
from restopulse.core.models import Incident, RuntimeSnapshot
from restopulse.core.ports import (
    AlertNotifierPort,
    DatabaseProbePort,
    SnapshotSourcePort,
)

DEFAULT_MIN_SUCCESS_RATE_PERCENT = 99.0
DEFAULT_MAX_P95_LATENCY_MS = 800.0


@dataclass(frozen=True)
class AlertThresholds:
    """Limits that turn a snapshot into incidents.

    Attributes:
        min_success_rate_percent: Lifetime success rate below this is critical.
        max_p95_latency_ms: Trailing-window p95 above this is a warning.
    """

    min_success_rate_percent: float = DEFAULT_MIN_SUCCESS_RATE_PERCENT
    max_p95_latency_ms: float = DEFAULT_MAX_P95_LATENCY_MS


@dataclass(frozen=True)
class AlertCheckResult:
    """Outcome of one alert check run."""

    checked_at: str
    incidents: tuple[Incident, ...] = ()
    notifications: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "checked_at": self.checked_at,
            "incidents": [i.to_dict() for i in self.incidents],
            "notifications": list(self.notifications),
        }


def evaluate_incidents(
    snapshot: RuntimeSnapshot,
    thresholds: AlertThresholds,
    db_error: str | None = None,
) -> list[Incident]:
    """Compare a snapshot against thresholds.

    Args:
        snapshot: Metrics to evaluate.
        thresholds: Limits to compare against.
        db_error: Error from the database probe, if it failed.

    Returns:
        Incidents in a fixed order: database, success rate, latency.
    """
    incidents: list[Incident] = []

    if db_error:
        incidents.append(
            Incident(
                severity="critical",
                title="Database Health Check Failed",
                details={"error": db_error},
            )
        )

    if snapshot.success_rate_percent < thresholds.min_success_rate_percent:
        incidents.append(
            Incident(
                severity="critical",
                title="API Success Rate Breach",
                details={
                    "threshold_percent": thresholds.min_success_rate_percent,
                    "actual_percent": snapshot.success_rate_percent,
                },
            )
        )

    if snapshot.p95_latency_ms_1m > thresholds.max_p95_latency_ms:
        incidents.append(
            Incident(
                severity="warning",
                title="API Latency Breach",
                details={
                    "threshold_ms": thresholds.max_p95_latency_ms,
                    "actual_p95_ms": snapshot.p95_latency_ms_1m,
                },
            )
        )

    return incidents


async def run_alert_check(
    source: SnapshotSourcePort,
    thresholds: AlertThresholds,
    notifier: AlertNotifierPort,
    probe: DatabaseProbePort | None = None,
    request_id: str | None = None,
) -> AlertCheckResult:
    """Probe, evaluate and notify once.

    Each incident is sent with its own details plus the request ID, the
    generation time and the current ``rpm_1m`` and ``requests_5xx`` values.
    Notifier failures propagate to the caller.
    """
    db_error = None
    if probe is not None:
        probe_result = await probe.check()
        if not probe_result.ok:
            db_error = probe_result.error or "database unreachable"

    snapshot = source.snapshot()
    incidents = evaluate_incidents(snapshot, thresholds, db_error=db_error)

    notifications: list[dict[str, Any]] = []
    for incident in incidents:
        result = await notifier.send(
            title=incident.title,
            severity=incident.severity,
            details={
                **incident.details,
                "request_id": request_id,
                "generated_at": _utc_now_iso(),
                "rpm_1m": snapshot.rpm_1m,
                "requests_5xx": snapshot.requests_5xx,
            },
        )
        notifications.append({**incident.to_dict(), "alert": result})

    log_event(
        "ops_alert_check",
        request_id=request_id,
        incidents=len(incidents),
        sent=len(notifications),
        runtime=snapshot.to_dict(),
    )

    return AlertCheckResult(
        checked_at=_utc_now_iso(),
        incidents=tuple(incidents),
        notifications=tuple(notifications),
    )


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()
