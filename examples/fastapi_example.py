"""Example FastAPI application with runtime request metrics.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    /api/orders                       - demo order listing
    /api/orders/{order_id}            - demo order lookup (404 for unknown IDs)
    /api/orders/{order_id}/complete   - demo endpoint that fails with a 500
    /api/system/health                - liveness and database reachability
    /api/system/metrics               - runtime snapshot (JSON envelope)
    /api/system/metrics/prometheus    - runtime snapshot (Prometheus text)
    /api/system/metrics/samples       - recent request samples (NDJSON)
    /api/system/alerts                - POST, threshold check (x-cron-secret)

Instrumentation:
    RequestMetricsMiddleware records every request into one aggregator shared
    with the system router. Routes are recorded by template, so
    /api/orders/17 and /api/orders/42 both count as "GET /api/orders/{order_id}".
"""

import asyncio

from fastapi import FastAPI, HTTPException

from restopulse.adapters.frameworks.asgi import RequestMetricsMiddleware
from restopulse.adapters.frameworks.fastapi import create_system_router
from restopulse.adapters.logging import configure_logging
from restopulse.config import Settings

settings = Settings.from_env()
configure_logging(settings.log_level)
aggregator = settings.build_aggregator()

app = FastAPI(title="Restaurant POS API")
app.add_middleware(
    RequestMetricsMiddleware,
    aggregator=aggregator,
    exclude_paths=list(settings.exclude_paths),
)
app.include_router(
    create_system_router(aggregator, settings, probe=settings.build_probe()),
    prefix="/api/system",
)

ORDERS = {
    "17": {"id": "17", "table": "T4", "status": "KITCHEN"},
    "42": {"id": "42", "table": "T1", "status": "OPEN"},
}


@app.get("/api/orders")
async def list_orders() -> dict[str, list[dict[str, str]]]:
    """List open orders."""
    await asyncio.sleep(0.01)
    return {"orders": list(ORDERS.values())}


@app.get("/api/orders/{order_id}")
async def get_order(order_id: str) -> dict[str, str]:
    """Look up one order; unknown IDs are recorded as 4xx."""
    order = ORDERS.get(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@app.post("/api/orders/{order_id}/complete")
async def complete_order(order_id: str) -> dict[str, str]:
    """Always fails, so the 5xx counter and success rate move."""
    raise RuntimeError(f"printer offline while completing order {order_id}")
