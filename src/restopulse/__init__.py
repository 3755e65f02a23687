"""restopulse - runtime request metrics, health and alerting for the POS API.

Public API:
    RuntimeMetricsAggregator: records requests and produces snapshots.
    RequestMetricsMiddleware: ASGI middleware feeding an aggregator.
    create_asgi_app / create_system_router: health and metrics endpoints.
    run_alert_check / evaluate_incidents: threshold alerting.
"""

from restopulse.adapters.frameworks.asgi import (
    RequestMetricsMiddleware,
    create_asgi_app,
)
from restopulse.adapters.logging import JsonLineFormatter, configure_logging
from restopulse.adapters.notifiers import InMemoryAlertNotifier, SlackWebhookNotifier
from restopulse.adapters.probes import SQLiteDatabaseProbe
from restopulse.config import Settings
from restopulse.core.aggregator import RuntimeMetricsAggregator
from restopulse.core.alerts import (
    AlertCheckResult,
    AlertThresholds,
    evaluate_incidents,
    run_alert_check,
)
from restopulse.core.logs import log_event, log_exception
from restopulse.core.models import (
    EndpointCount,
    Incident,
    LifetimeCounters,
    ProbeResult,
    RequestSample,
    RuntimeSnapshot,
)
from restopulse.core.ports import (
    AlertNotifierPort,
    DatabaseProbePort,
    RequestRecorderPort,
    SnapshotSourcePort,
)

__all__ = [
    "AlertCheckResult",
    "AlertNotifierPort",
    "AlertThresholds",
    "DatabaseProbePort",
    "EndpointCount",
    "InMemoryAlertNotifier",
    "Incident",
    "JsonLineFormatter",
    "LifetimeCounters",
    "ProbeResult",
    "RequestMetricsMiddleware",
    "RequestRecorderPort",
    "RequestSample",
    "RuntimeMetricsAggregator",
    "RuntimeSnapshot",
    "SQLiteDatabaseProbe",
    "Settings",
    "SlackWebhookNotifier",
    "SnapshotSourcePort",
    "configure_logging",
    "create_asgi_app",
    "evaluate_incidents",
    "log_event",
    "log_exception",
    "run_alert_check",
]
