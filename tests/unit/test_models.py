"""Tests for core domain models."""

import dataclasses

import pytest

from restopulse.core.models import (
    EndpointCount,
    Incident,
    RequestSample,
    RuntimeSnapshot,
)

pytestmark = [pytest.mark.core, pytest.mark.tier(0)]


def _snapshot(**overrides) -> RuntimeSnapshot:
    values = {
        "requests_total": 3,
        "requests_2xx": 1,
        "requests_4xx": 1,
        "requests_5xx": 1,
        "success_rate_percent": 33.33,
        "rpm_1m": 3,
        "p50_latency_ms_1m": 12,
        "p95_latency_ms_1m": 20,
        "p99_latency_ms_1m": 20,
        "top_endpoints_1m": (EndpointCount("POST /api/test", 2),),
    }
    values.update(overrides)
    return RuntimeSnapshot(**values)


class TestRequestSample:
    def test_route_joins_method_and_path(self) -> None:
        sample = RequestSample(1.0, "GET", "/api/orders", 200, 4)
        assert sample.route == "GET /api/orders"

    def test_is_immutable(self) -> None:
        sample = RequestSample(1.0, "GET", "/api/orders", 200, 4)
        with pytest.raises(dataclasses.FrozenInstanceError):
            sample.status = 500  # type: ignore[misc]


class TestRuntimeSnapshot:
    def test_to_dict_uses_serialized_field_names(self) -> None:
        assert _snapshot().to_dict() == {
            "requests_total": 3,
            "requests_2xx": 1,
            "requests_4xx": 1,
            "requests_5xx": 1,
            "success_rate_percent": 33.33,
            "rpm_1m": 3,
            "p50_latency_ms_1m": 12,
            "p95_latency_ms_1m": 20,
            "p99_latency_ms_1m": 20,
            "top_endpoints_1m": [{"route": "POST /api/test", "count": 2}],
        }

    def test_to_dict_with_no_endpoints(self) -> None:
        assert _snapshot(top_endpoints_1m=()).to_dict()["top_endpoints_1m"] == []


class TestIncident:
    def test_to_dict_copies_details(self) -> None:
        incident = Incident("warning", "API Latency Breach", {"threshold_ms": 800})
        data = incident.to_dict()
        data["details"]["threshold_ms"] = 1

        assert incident.details == {"threshold_ms": 800}
        assert data["severity"] == "warning"
        assert data["title"] == "API Latency Breach"
