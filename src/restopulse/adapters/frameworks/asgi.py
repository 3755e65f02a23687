"""ASGI adapter for runtime request metrics.

Provides the response-finalization middleware that feeds the aggregator and
a framework-agnostic ASGI application serving the health and metrics
endpoints, usable with any ASGI server (uvicorn, hypercorn, daphne) without
FastAPI installed.
"""

import fnmatch
import json
import time
import uuid
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

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
    fail,
    from_error,
)
from restopulse.core.logs import level_for_status, log_event, log_exception
from restopulse.core.ports import DatabaseProbePort, RequestRecorderPort

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

REQUEST_ID_RESPONSE_HEADER = b"x-request-id"


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Returns:
        Dictionary mapping parameter names to lists of values.
        Returns empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


def _headers_of(scope: Scope) -> dict[str, str]:
    """Decode ASGI headers into a dict keyed by lower-case name."""
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    return {
        name.decode("latin-1").lower(): value.decode("utf-8", errors="replace")
        for name, value in headers
    }


def _extract_request_id(scope: Scope, header_name: str = "X-Request-ID") -> str:
    """Extract or generate a request ID from ASGI scope headers.

    Searches for the specified header (case-insensitive). If not found,
    generates a new UUID.
    """
    header_bytes = header_name.lower().encode()
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    for name, value in headers:
        if name.lower() == header_bytes:
            return str(value.decode("utf-8", errors="replace"))
    return str(uuid.uuid4())


def _route_path(scope: Scope) -> str:
    """Prefer the matched route template over the literal path.

    FastAPI and Starlette leave the matched route object in the scope once
    routing has run; its ``path`` keeps IDs out of the endpoint labels.
    """
    route = scope.get("route")
    template = getattr(route, "path", None)
    if isinstance(template, str) and template:
        return template
    return str(scope.get("path", ""))


async def _send_response(
    send: Send,
    status: int,
    content_type: str,
    body: str,
    extra_headers: dict[str, str] | None = None,
) -> None:
    """Send an HTTP response with headers and body."""
    headers = [(b"content-type", content_type.encode())]
    for name, value in (extra_headers or {}).items():
        headers.append((name.lower().encode(), value.encode()))
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _send_envelope(send: Send, response: EnvelopeResponse) -> None:
    await _send_response(
        send,
        response.status,
        "application/json",
        json.dumps(response.body),
        response.headers,
    )


async def _handle_text_endpoint(
    send: Send,
    ctx: RequestContext,
    render: Callable[[], str],
    content_type: str,
    log_message: str,
) -> None:
    """Render a plain-text body, answering with a 500 envelope on failure."""
    try:
        body = render()
    except Exception as exc:
        log_exception(log_message, request_id=ctx.request_id)
        await _send_envelope(send, from_error(ctx, exc, log_message))
        return
    await _send_response(send, 200, content_type, body, ctx.headers)


class RequestMetricsMiddleware:
    """ASGI middleware that records every completed HTTP request.

    The request is recorded exactly once, when the wrapped app sends
    ``http.response.start`` and before that message reaches the server. An
    app that raises before starting a response is recorded as a 500 and the
    exception is re-raised.

    Works with ``app.add_middleware(RequestMetricsMiddleware, aggregator=...)``
    in FastAPI/Starlette as well as by wrapping any ASGI callable directly.
    """

    def __init__(
        self,
        app: ASGIApp,
        aggregator: RequestRecorderPort,
        exclude_paths: list[str] | tuple[str, ...] | None = None,
        request_id_header: str = "X-Request-ID",
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application to wrap.
            aggregator: Receives one ``record`` call per request.
            exclude_paths: Paths not to record. Supports exact matches and
                wildcard patterns (e.g., "/internal/*").
            request_id_header: Header carrying the caller's request ID.
        """
        self.app = app
        self.aggregator = aggregator
        self.exclude_paths = list(exclude_paths or [])
        self.request_id_header = request_id_header

    def _path_excluded(self, path: str) -> bool:
        return any(fnmatch.fnmatch(path, pattern) for pattern in self.exclude_paths)

    def _record(
        self, scope: Scope, request_id: str, status: int, started: float
    ) -> None:
        if self._path_excluded(scope["path"]):
            return
        duration_ms = (time.perf_counter() - started) * 1000.0
        path = _route_path(scope)
        self.aggregator.record(scope["method"], path, status, duration_ms)
        log_event(
            "api_response",
            level=level_for_status(status),
            request_id=request_id,
            method=scope["method"],
            path=path,
            status=status,
            duration_ms=round(duration_ms, 2),
            success=status < 400,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        request_id = _extract_request_id(scope, self.request_id_header)
        scope.setdefault("state", {})["request_id"] = request_id
        response_started = False

        async def wrapped_send(message: dict[str, Any]) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start" and not response_started:
                response_started = True
                self._record(scope, request_id, message["status"], started)
                headers = list(message.get("headers", []))
                if not any(
                    name.lower() == REQUEST_ID_RESPONSE_HEADER for name, _ in headers
                ):
                    headers.append((REQUEST_ID_RESPONSE_HEADER, request_id.encode()))
                message = {**message, "headers": headers}
            await send(message)

        try:
            await self.app(scope, receive, wrapped_send)
        except Exception:
            if not response_started:
                response_started = True
                log_exception(
                    "request_exception",
                    request_id=request_id,
                    method=scope["method"],
                    path=scope["path"],
                )
                self._record(scope, request_id, 500, started)
            raise


def create_asgi_app(
    aggregator: RuntimeMetricsAggregator,
    settings: Settings | None = None,
    probe: DatabaseProbePort | None = None,
) -> ASGIApp:
    """Create an ASGI app with /health, /metrics, /metrics/prometheus and
    /metrics/samples endpoints.

    Args:
        aggregator: Source of snapshots and samples.
        settings: Version and environment reported by /health.
        probe: Optional database probe used by /health.

    Returns:
        ASGI application callable.
    """
    settings = settings or Settings()

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        path = scope["path"]
        ctx = create_request_context(
            scope.get("method", "GET"),
            path,
            headers=_headers_of(scope),
            request_id=scope.get("state", {}).get("request_id"),
        )

        if path == "/health":
            await _send_envelope(
                send, await handlers.health(ctx, aggregator, settings, probe)
            )
        elif path == "/metrics":
            await _send_envelope(send, handlers.metrics(ctx, aggregator))
        elif path == "/metrics/prometheus":
            await _handle_text_endpoint(
                send,
                ctx,
                lambda: encode_snapshot(aggregator.snapshot()),
                CONTENT_TYPE,
                "Error encoding prometheus endpoint",
            )
        elif path == "/metrics/samples":
            since = _parse_since_param(_parse_query_params(scope))
            await _handle_text_endpoint(
                send,
                ctx,
                lambda: encode_samples(
                    s for s in aggregator.samples if s.timestamp > since
                ),
                "application/x-ndjson",
                "Error encoding samples endpoint",
            )
        else:
            await _send_envelope(send, fail(ctx, "Not Found", 404, "NOT_FOUND"))

    return app
