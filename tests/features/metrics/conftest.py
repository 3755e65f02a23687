"""BDD step definitions for runtime metrics features."""

import pytest
from pytest_bdd import given, parsers, then, when
from tests.features.metrics.steps_helpers import (
    MetricsScenarioContext,
    run_async,
    simulate_request,
)

from restopulse.adapters.frameworks.asgi import Receive, Scope, Send
from restopulse.core.aggregator import RuntimeMetricsAggregator


@pytest.fixture
def ctx() -> MetricsScenarioContext:
    """Fresh scenario context for each test."""
    return MetricsScenarioContext()


def _aggregator(ctx: MetricsScenarioContext) -> RuntimeMetricsAggregator:
    assert ctx.aggregator is not None, "Background step did not run"
    return ctx.aggregator


def _record(ctx: MetricsScenarioContext, route: str, status: int, ms: int) -> None:
    method, path = route.split(" ", 1)
    _aggregator(ctx).record(method, path, status, ms)


# === Background Steps ===
@given(parsers.parse("a fresh aggregator with a {seconds:d} second window"))
def step_fresh_aggregator(ctx: MetricsScenarioContext, seconds: int) -> None:
    ctx.aggregator = RuntimeMetricsAggregator(
        window_seconds=seconds, clock=ctx.clock
    )


# === Recording Steps ===
@when(parsers.parse('"{route}" responds {status:d} in {duration:d} ms'))
def step_record_once(
    ctx: MetricsScenarioContext, route: str, status: int, duration: int
) -> None:
    _record(ctx, route, status, duration)


@when(parsers.parse('"{route}" responds {status:d} in {duration:d} ms {n:d} times'))
def step_record_many(
    ctx: MetricsScenarioContext, route: str, status: int, duration: int, n: int
) -> None:
    for _ in range(n):
        _record(ctx, route, status, duration)


@when(parsers.parse("{seconds:d} seconds pass"))
def step_time_passes(ctx: MetricsScenarioContext, seconds: int) -> None:
    ctx.clock.advance(seconds)


@when("the aggregator is reset")
def step_reset(ctx: MetricsScenarioContext) -> None:
    _aggregator(ctx).reset()


# === Middleware Steps ===
@given("an endpoint that raises an error")
def step_failing_endpoint(ctx: MetricsScenarioContext) -> None:
    async def endpoint(scope: Scope, receive: Receive, send: Send) -> None:
        raise RuntimeError("receipt printer jammed")

    ctx.endpoint = endpoint


@when(
    parsers.parse(
        'a "{method}" request is sent to "{path}" through the middleware'
    )
)
def step_send_request(ctx: MetricsScenarioContext, method: str, path: str) -> None:
    try:
        run_async(simulate_request(ctx, method, path))
    except Exception as e:
        ctx.exception_raised = e


# === Assertions ===
@then(parsers.parse("the lifetime total is {total:d}"))
def step_check_total(ctx: MetricsScenarioContext, total: int) -> None:
    assert _aggregator(ctx).snapshot().requests_total == total


@then(
    parsers.parse(
        "the status counts are {ok:d} 2xx, {client:d} 4xx and {server:d} 5xx"
    )
)
def step_check_classes(
    ctx: MetricsScenarioContext, ok: int, client: int, server: int
) -> None:
    snapshot = _aggregator(ctx).snapshot()
    assert (snapshot.requests_2xx, snapshot.requests_4xx, snapshot.requests_5xx) == (
        ok,
        client,
        server,
    )


@then(parsers.parse("the success rate is {rate} percent"))
def step_check_success_rate(ctx: MetricsScenarioContext, rate: str) -> None:
    assert _aggregator(ctx).snapshot().success_rate_percent == float(rate)


@then(parsers.parse("the p95 latency is {ms:d} ms"))
def step_check_p95(ctx: MetricsScenarioContext, ms: int) -> None:
    assert _aggregator(ctx).snapshot().p95_latency_ms_1m == ms


@then(parsers.parse("the requests per minute is {rpm:d}"))
def step_check_rpm(ctx: MetricsScenarioContext, rpm: int) -> None:
    assert _aggregator(ctx).snapshot().rpm_1m == rpm


@then(parsers.parse('the top endpoints are "{expected}"'))
def step_check_top(ctx: MetricsScenarioContext, expected: str) -> None:
    actual = ", ".join(
        f"{e.route}={e.count}" for e in _aggregator(ctx).snapshot().top_endpoints_1m
    )
    assert actual == expected


@then("the error propagates to the server")
def step_check_error(ctx: MetricsScenarioContext) -> None:
    assert isinstance(ctx.exception_raised, RuntimeError)
    assert ctx.sent == []


@then(parsers.parse('the last sample is "{route}" with status {status:d}'))
def step_check_last_sample(
    ctx: MetricsScenarioContext, route: str, status: int
) -> None:
    sample = _aggregator(ctx).samples[-1]
    assert sample.route == route
    assert sample.status == status
