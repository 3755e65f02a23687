"""Core domain models for runtime request metrics."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RequestSample:
    """One observation of a completed HTTP request.

    Attributes:
        timestamp: Unix timestamp in seconds when the response was produced.
        method: HTTP verb (e.g., GET, POST).
        path: Route template or literal request path.
        status: HTTP status code.
        duration_ms: Response latency in whole milliseconds, never negative.
    """

    timestamp: float
    method: str
    path: str
    status: int
    duration_ms: int

    @property
    def route(self) -> str:
        """Label used to group samples per endpoint (e.g. "GET /api/orders")."""
        return f"{self.method} {self.path}"


@dataclass(frozen=True)
class LifetimeCounters:
    """Totals since process start (or the last reset), split by status class.

    Attributes:
        total: Count of all recorded requests.
        success_2xx: Requests with status below 400.
        client_4xx: Requests with status in [400, 500).
        server_5xx: Requests with status of 500 or above.
    """

    total: int = 0
    success_2xx: int = 0
    client_4xx: int = 0
    server_5xx: int = 0


@dataclass(frozen=True)
class EndpointCount:
    """Request count for one "METHOD path" label inside the trailing window."""

    route: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"route": self.route, "count": self.count}


@dataclass(frozen=True)
class RuntimeSnapshot:
    """Point-in-time view of request health.

    Lifetime fields are copies of the counters. Fields suffixed ``_1m`` and
    ``rpm_1m`` are computed over the trailing window only.
    """

    requests_total: int
    requests_2xx: int
    requests_4xx: int
    requests_5xx: int
    success_rate_percent: float
    rpm_1m: int
    p50_latency_ms_1m: int
    p95_latency_ms_1m: int
    p99_latency_ms_1m: int
    top_endpoints_1m: tuple[EndpointCount, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape served by the metrics endpoints."""
        return {
            "requests_total": self.requests_total,
            "requests_2xx": self.requests_2xx,
            "requests_4xx": self.requests_4xx,
            "requests_5xx": self.requests_5xx,
            "success_rate_percent": self.success_rate_percent,
            "rpm_1m": self.rpm_1m,
            "p50_latency_ms_1m": self.p50_latency_ms_1m,
            "p95_latency_ms_1m": self.p95_latency_ms_1m,
            "p99_latency_ms_1m": self.p99_latency_ms_1m,
            "top_endpoints_1m": [e.to_dict() for e in self.top_endpoints_1m],
        }


@dataclass(frozen=True)
class Incident:
    """An operational incident raised by the alert check.

    Attributes:
        severity: One of "info", "warning", "critical".
        title: Short human readable summary.
        details: Measured values and thresholds behind the incident.
    """

    severity: str
    title: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "title": self.title,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a database reachability probe.

    Attributes:
        ok: True when the database answered.
        latency_ms: Round-trip time of the probe in milliseconds.
        error: Error message when ``ok`` is False.
    """

    ok: bool
    latency_ms: int
    error: str | None = None
