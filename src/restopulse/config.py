"""Environment-driven settings.

Every value has a default so the service starts with an empty environment.
Numbers that fail to parse, or parse to NaN/infinity, fall back to their
defaults instead of failing startup.
"""

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass

from restopulse.adapters.notifiers.slack import SlackWebhookNotifier
from restopulse.adapters.probes.sqlite import SQLiteDatabaseProbe
from restopulse.core.aggregator import (
    DEFAULT_MAX_SAMPLES,
    DEFAULT_TOP_ENDPOINTS,
    DEFAULT_WINDOW_SECONDS,
    RuntimeMetricsAggregator,
)
from restopulse.core.alerts import (
    DEFAULT_MAX_P95_LATENCY_MS,
    DEFAULT_MIN_SUCCESS_RATE_PERCENT,
    AlertThresholds,
)


def _parse_number(value: str | None, fallback: float) -> float:
    if value is None or not value.strip():
        return fallback
    try:
        parsed = float(value)
    except ValueError:
        return fallback
    return parsed if math.isfinite(parsed) else fallback


def _parse_positive_int(value: str | None, fallback: int) -> int:
    parsed = int(_parse_number(value, fallback))
    return parsed if parsed >= 1 else fallback


def _parse_list(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for metrics collection, health and alerting."""

    max_samples: int = DEFAULT_MAX_SAMPLES
    window_seconds: float = DEFAULT_WINDOW_SECONDS
    top_endpoints: int = DEFAULT_TOP_ENDPOINTS
    exclude_paths: tuple[str, ...] = ()
    db_path: str | None = None
    min_success_rate_percent: float = DEFAULT_MIN_SUCCESS_RATE_PERCENT
    max_p95_latency_ms: float = DEFAULT_MAX_P95_LATENCY_MS
    cron_alert_secret: str | None = None
    slack_alert_webhook_url: str | None = None
    app_version: str = "dev"
    app_env: str = "unknown"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Read settings from ``environ`` (default: ``os.environ``)."""
        env = os.environ if environ is None else environ
        window = _parse_number(
            env.get("RESTOPULSE_WINDOW_SECONDS"), DEFAULT_WINDOW_SECONDS
        )
        return cls(
            max_samples=_parse_positive_int(
                env.get("RESTOPULSE_MAX_SAMPLES"), DEFAULT_MAX_SAMPLES
            ),
            window_seconds=window if window > 0 else DEFAULT_WINDOW_SECONDS,
            top_endpoints=_parse_positive_int(
                env.get("RESTOPULSE_TOP_ENDPOINTS"), DEFAULT_TOP_ENDPOINTS
            ),
            exclude_paths=_parse_list(env.get("RESTOPULSE_EXCLUDE_PATHS")),
            db_path=_optional(env.get("RESTOPULSE_DB_PATH")),
            min_success_rate_percent=_parse_number(
                env.get("ALERT_MIN_SUCCESS_RATE_PERCENT"),
                DEFAULT_MIN_SUCCESS_RATE_PERCENT,
            ),
            max_p95_latency_ms=_parse_number(
                env.get("ALERT_MAX_P95_LATENCY_MS"), DEFAULT_MAX_P95_LATENCY_MS
            ),
            cron_alert_secret=_optional(env.get("CRON_ALERT_SECRET")),
            slack_alert_webhook_url=_optional(env.get("SLACK_ALERT_WEBHOOK_URL")),
            app_version=_optional(env.get("APP_VERSION")) or "dev",
            app_env=_optional(env.get("APP_ENV")) or "unknown",
            log_level=(_optional(env.get("RESTOPULSE_LOG_LEVEL")) or "INFO").upper(),
        )

    def build_aggregator(self) -> RuntimeMetricsAggregator:
        return RuntimeMetricsAggregator(
            max_samples=self.max_samples,
            window_seconds=self.window_seconds,
            top_endpoints=self.top_endpoints,
        )

    def thresholds(self) -> AlertThresholds:
        return AlertThresholds(
            min_success_rate_percent=self.min_success_rate_percent,
            max_p95_latency_ms=self.max_p95_latency_ms,
        )

    def build_notifier(self) -> SlackWebhookNotifier:
        return SlackWebhookNotifier(self.slack_alert_webhook_url)

    def build_probe(self) -> SQLiteDatabaseProbe | None:
        if self.db_path is None:
            return None
        return SQLiteDatabaseProbe(self.db_path)
