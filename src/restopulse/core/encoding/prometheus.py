"""Prometheus text format encoder for runtime snapshots."""

from restopulse.core.models import RuntimeSnapshot

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _escape_label_value(value: str) -> str:
    """Escape a label value per the Prometheus exposition format."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def encode_snapshot(snapshot: RuntimeSnapshot, prefix: str = "restopulse") -> str:
    """Encode a snapshot in Prometheus text exposition format.

    Args:
        snapshot: Snapshot to encode.
        prefix: Prepended to every metric name.

    Returns:
        Exposition text ending with a newline.
    """
    lines: list[str] = []

    def header(name: str, kind: str, help_text: str) -> str:
        full = f"{prefix}_{name}"
        lines.append(f"# HELP {full} {help_text}")
        lines.append(f"# TYPE {full} {kind}")
        return full

    name = header(
        "http_requests_total", "counter", "Completed HTTP requests by status class."
    )
    for status_class, value in (
        ("2xx", snapshot.requests_2xx),
        ("4xx", snapshot.requests_4xx),
        ("5xx", snapshot.requests_5xx),
    ):
        lines.append(f'{name}{{class="{status_class}"}} {value}')

    name = header(
        "http_success_rate_percent", "gauge", "Share of requests below status 400."
    )
    lines.append(f"{name} {_format_value(snapshot.success_rate_percent)}")

    name = header(
        "http_requests_1m", "gauge", "Requests completed in the trailing window."
    )
    lines.append(f"{name} {snapshot.rpm_1m}")

    name = header(
        "http_request_duration_ms_1m",
        "gauge",
        "Nearest-rank latency quantiles in the trailing window.",
    )
    for quantile, value in (
        ("0.5", snapshot.p50_latency_ms_1m),
        ("0.95", snapshot.p95_latency_ms_1m),
        ("0.99", snapshot.p99_latency_ms_1m),
    ):
        lines.append(f'{name}{{quantile="{quantile}"}} {value}')

    name = header(
        "http_endpoint_requests_1m",
        "gauge",
        "Busiest endpoints in the trailing window.",
    )
    for endpoint in snapshot.top_endpoints_1m:
        route = _escape_label_value(endpoint.route)
        lines.append(f'{name}{{route="{route}"}} {endpoint.count}')

    return "\n".join(lines) + "\n"
