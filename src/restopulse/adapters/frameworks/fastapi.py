"""FastAPI adapter for the system health, metrics and alerting endpoints."""

from collections.abc import Callable

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse

from restopulse.adapters.frameworks import handlers
from restopulse.adapters.frameworks.query_params import _parse_since_param
from restopulse.config import Settings
from restopulse.core.aggregator import RuntimeMetricsAggregator
from restopulse.core.encoding.ndjson import encode_samples
from restopulse.core.encoding.prometheus import CONTENT_TYPE, encode_snapshot
from restopulse.core.envelope import (
    EnvelopeResponse,
    RequestContext,
    create_request_context,
    from_error,
)
from restopulse.core.logs import log_exception
from restopulse.core.ports import AlertNotifierPort, DatabaseProbePort


def _context(request: Request) -> RequestContext:
    """Build a context, reusing the ID assigned by RequestMetricsMiddleware."""
    state = request.scope.get("state") or {}
    return create_request_context(
        request.method,
        request.url.path,
        headers=request.headers,
        request_id=state.get("request_id"),
    )


def _to_response(envelope: EnvelopeResponse) -> JSONResponse:
    return JSONResponse(
        content=envelope.body, status_code=envelope.status, headers=envelope.headers
    )


def _text_response(
    ctx: RequestContext,
    render: Callable[[], str],
    media_type: str,
    log_message: str,
) -> Response:
    """Render a plain-text body, answering with a 500 envelope on failure."""
    try:
        body = render()
    except Exception as exc:
        log_exception(log_message, request_id=ctx.request_id)
        return _to_response(from_error(ctx, exc, log_message))
    return Response(content=body, media_type=media_type, headers=ctx.headers)


def create_system_router(
    aggregator: RuntimeMetricsAggregator,
    settings: Settings | None = None,
    probe: DatabaseProbePort | None = None,
    notifier: AlertNotifierPort | None = None,
) -> APIRouter:
    """Create a FastAPI router with the system endpoints.

    Mount it under a prefix of your choice, e.g.
    ``app.include_router(router, prefix="/api/system")``.

    Args:
        aggregator: Source of snapshots and samples.
        settings: Thresholds, cron secret, version and environment.
        probe: Optional database probe for /health and /alerts.
        notifier: Alert delivery; defaults to the Slack notifier built from
            settings, which reports alerts as not sent when no webhook is
            configured.

    Returns:
        APIRouter with /health, /metrics, /metrics/prometheus,
        /metrics/samples and /alerts configured.
    """
    settings = settings or Settings()
    alert_notifier: AlertNotifierPort = (
        settings.build_notifier() if notifier is None else notifier
    )

    router = APIRouter()

    @router.get("/health")
    async def get_health(request: Request) -> JSONResponse:
        """Liveness and database reachability."""
        envelope = await handlers.health(_context(request), aggregator, settings, probe)
        return _to_response(envelope)

    @router.get("/metrics")
    async def get_metrics(request: Request) -> JSONResponse:
        """Runtime request metrics snapshot."""
        return _to_response(handlers.metrics(_context(request), aggregator))

    @router.get("/metrics/prometheus")
    async def get_prometheus(request: Request) -> Response:
        """Runtime snapshot in Prometheus text format."""
        return _text_response(
            _context(request),
            lambda: encode_snapshot(aggregator.snapshot()),
            CONTENT_TYPE,
            "Error encoding prometheus endpoint",
        )

    @router.get("/metrics/samples")
    async def get_samples(
        request: Request, since: str = Query(default="0")
    ) -> Response:
        """Ring buffer contents in NDJSON format.

        Args:
            since: Unix timestamp. Returns samples with timestamp > since.
        """
        cutoff = _parse_since_param({"since": [since]})
        return _text_response(
            _context(request),
            lambda: encode_samples(
                s for s in aggregator.samples if s.timestamp > cutoff
            ),
            "application/x-ndjson",
            "Error encoding samples endpoint",
        )

    @router.post("/alerts")
    async def post_alerts(request: Request) -> JSONResponse:
        """Evaluate thresholds and send incident notifications."""
        envelope = await handlers.alerts(
            _context(request),
            aggregator,
            settings,
            alert_notifier,
            provided_secret=request.headers.get("x-cron-secret"),
            probe=probe,
        )
        return _to_response(envelope)

    return router
