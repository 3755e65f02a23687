"""Framework-neutral system endpoint handlers.

Each handler takes a RequestContext plus collaborators and returns an
EnvelopeResponse; the ASGI and FastAPI adapters only translate requests in
and responses out.
"""

import hmac
from datetime import UTC, datetime

from restopulse.config import Settings
from restopulse.core.alerts import run_alert_check
from restopulse.core.envelope import (
    EnvelopeResponse,
    RequestContext,
    fail,
    from_error,
    ok,
)
from restopulse.core.logs import log_exception
from restopulse.core.ports import (
    AlertNotifierPort,
    DatabaseProbePort,
    SnapshotSourcePort,
)


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


async def health(
    ctx: RequestContext,
    source: SnapshotSourcePort,
    settings: Settings,
    probe: DatabaseProbePort | None = None,
) -> EnvelopeResponse:
    """Liveness plus database reachability.

    Returns 503 ``DB_UNHEALTHY`` when the probe reports a failure.
    """
    db_status = "not_configured"
    latency_ms = 0
    if probe is not None:
        result = await probe.check()
        if not result.ok:
            return fail(
                ctx, f"Database unhealthy: {result.error}", 503, "DB_UNHEALTHY"
            )
        db_status = "reachable"
        latency_ms = result.latency_ms

    return ok(
        ctx,
        {
            "status": "ok",
            "uptime_seconds": source.uptime_seconds(),
            "db": db_status,
            "latency_ms": latency_ms,
            "app_version": settings.app_version,
            "environment": settings.app_env,
            "timestamp": _utc_now_iso(),
        },
    )


def metrics(ctx: RequestContext, source: SnapshotSourcePort) -> EnvelopeResponse:
    """Current runtime snapshot."""
    try:
        data = source.snapshot().to_dict()
    except Exception as exc:
        log_exception("Metrics generation failed", request_id=ctx.request_id)
        return from_error(ctx, exc, "Metrics generation failed")
    data["generated_at"] = _utc_now_iso()
    return ok(ctx, data)


async def alerts(
    ctx: RequestContext,
    source: SnapshotSourcePort,
    settings: Settings,
    notifier: AlertNotifierPort,
    provided_secret: str | None,
    probe: DatabaseProbePort | None = None,
) -> EnvelopeResponse:
    """Run the alert check for a scheduler holding the cron secret."""
    if not settings.cron_alert_secret:
        return fail(ctx, "CRON_ALERT_SECRET is not configured", 500, "CONFIG_ERROR")
    if provided_secret is None or not hmac.compare_digest(
        provided_secret.encode(), settings.cron_alert_secret.encode()
    ):
        return fail(ctx, "Unauthorized", 401, "UNAUTHORIZED")

    try:
        result = await run_alert_check(
            source,
            settings.thresholds(),
            notifier,
            probe=probe,
            request_id=ctx.request_id,
        )
    except Exception as exc:
        log_exception("Alert check failed", request_id=ctx.request_id)
        return from_error(ctx, exc, "Alert check failed")
    return ok(ctx, result.to_dict())
