"""In-process runtime request metrics.

Keeps lifetime counters partitioned by status class plus a bounded ring
buffer of recent request samples. Rate, latency percentiles and the busiest
endpoints are computed from the buffer over a trailing window each time a
snapshot is taken; the window is a query-time filter, samples only leave the
buffer when capacity forces the oldest out.
"""

import math
import threading
import time
from collections import Counter, deque
from collections.abc import Callable

from restopulse.core.models import (
    EndpointCount,
    LifetimeCounters,
    RequestSample,
    RuntimeSnapshot,
)
from restopulse.core.quantiles import nearest_rank

DEFAULT_MAX_SAMPLES = 1000
DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_TOP_ENDPOINTS = 5


def _normalize_duration(duration_ms: float) -> int:
    """Clamp to zero and round half up to a whole millisecond."""
    if not math.isfinite(duration_ms) or duration_ms <= 0:
        return 0
    return int(math.floor(duration_ms + 0.5))


class RuntimeMetricsAggregator:
    """Thread-safe aggregator of completed HTTP requests.

    One instance is meant to be created per process and handed to both the
    middleware that records requests and the endpoints that read snapshots.

    Args:
        max_samples: Ring buffer capacity.
        window_seconds: Length of the trailing window used by snapshots.
        top_endpoints: Maximum number of entries in ``top_endpoints_1m``.
        clock: Returns the current Unix time in seconds.
    """

    def __init__(
        self,
        max_samples: int = DEFAULT_MAX_SAMPLES,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        top_endpoints: int = DEFAULT_TOP_ENDPOINTS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_samples < 1:
            raise ValueError("max_samples must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if top_endpoints < 1:
            raise ValueError("top_endpoints must be at least 1")
        self._max_samples = max_samples
        self._window_seconds = float(window_seconds)
        self._top_endpoints = top_endpoints
        self._clock = clock
        self._lock = threading.Lock()
        self._samples: deque[RequestSample] = deque(maxlen=max_samples)
        self._total = 0
        self._success_2xx = 0
        self._client_4xx = 0
        self._server_5xx = 0
        self._started_at = clock()

    @property
    def max_samples(self) -> int:
        return self._max_samples

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def samples(self) -> tuple[RequestSample, ...]:
        """Copy of the ring buffer, oldest first."""
        with self._lock:
            return tuple(self._samples)

    @property
    def counters(self) -> LifetimeCounters:
        with self._lock:
            return self._counters_unlocked()

    def uptime_seconds(self) -> int:
        """Whole seconds since the aggregator was created."""
        return max(0, int(self._clock() - self._started_at))

    def record(self, method: str, path: str, status: int, duration_ms: float) -> None:
        """Record one completed request.

        Never raises. The status is only compared against the 500 and 400
        thresholds, so out-of-range codes are still counted.

        Args:
            method: HTTP verb.
            path: Route template or literal path.
            status: HTTP status code sent to the client.
            duration_ms: Latency in milliseconds; negatives count as zero.
        """
        sample = RequestSample(
            timestamp=self._clock(),
            method=method,
            path=path,
            status=status,
            duration_ms=_normalize_duration(duration_ms),
        )
        with self._lock:
            self._total += 1
            if status >= 500:
                self._server_5xx += 1
            elif status >= 400:
                self._client_4xx += 1
            else:
                self._success_2xx += 1
            # deque(maxlen=...) drops the oldest sample on overflow
            self._samples.append(sample)

    def snapshot(self) -> RuntimeSnapshot:
        """Compute the current metrics view without mutating state."""
        with self._lock:
            counters = self._counters_unlocked()
            samples = list(self._samples)
        now = self._clock()
        window = [s for s in samples if now - s.timestamp <= self._window_seconds]
        durations = sorted(s.duration_ms for s in window)

        if counters.total:
            success_rate = round(counters.success_2xx / counters.total * 100, 2)
        else:
            success_rate = 100.0

        return RuntimeSnapshot(
            requests_total=counters.total,
            requests_2xx=counters.success_2xx,
            requests_4xx=counters.client_4xx,
            requests_5xx=counters.server_5xx,
            success_rate_percent=success_rate,
            rpm_1m=len(window),
            p50_latency_ms_1m=nearest_rank(durations, 0.50),
            p95_latency_ms_1m=nearest_rank(durations, 0.95),
            p99_latency_ms_1m=nearest_rank(durations, 0.99),
            top_endpoints_1m=self._top_endpoints_of(window),
        )

    def reset(self) -> None:
        """Zero all counters and empty the ring buffer."""
        with self._lock:
            self._total = 0
            self._success_2xx = 0
            self._client_4xx = 0
            self._server_5xx = 0
            self._samples.clear()

    def _counters_unlocked(self) -> LifetimeCounters:
        return LifetimeCounters(
            total=self._total,
            success_2xx=self._success_2xx,
            client_4xx=self._client_4xx,
            server_5xx=self._server_5xx,
        )

    def _top_endpoints_of(
        self, window: list[RequestSample]
    ) -> tuple[EndpointCount, ...]:
        per_route = Counter(s.route for s in window)
        # Equal counts are ordered by route label
        ranked = sorted(per_route.items(), key=lambda item: (-item[1], item[0]))
        return tuple(
            EndpointCount(route=route, count=count)
            for route, count in ranked[: self._top_endpoints]
        )
