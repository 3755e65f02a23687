"""JSON response envelope shared by the system endpoints.

Successful responses look like::

    {"success": true, "data": {...}, "meta": {"request_id": "..."}}

and failures like::

    {"success": false, "error": "...", "meta": {"request_id": "...", "code": "..."}}
"""

import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class RequestContext:
    """Per-request data needed to build an envelope.

    Attributes:
        request_id: Correlation ID echoed in ``meta`` and response headers.
        method: HTTP verb.
        path: Request path.
        started_at: ``time.perf_counter()`` reading when handling began.
        actor_user_id: Authenticated user, if known.
        restaurant_id: Tenant the request is scoped to, if known.
    """

    request_id: str
    method: str
    path: str
    started_at: float
    actor_user_id: str | None = None
    restaurant_id: str | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {"x-request-id": self.request_id}

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started_at) * 1000)


@dataclass(frozen=True)
class EnvelopeResponse:
    """Framework-neutral response: status code, JSON body and headers."""

    status: int
    body: dict[str, Any]
    headers: dict[str, str]


def create_request_context(
    method: str,
    path: str,
    headers: Mapping[str, str] | None = None,
    request_id: str | None = None,
) -> RequestContext:
    """Build a context, reusing ``x-request-id`` when the caller sent one.

    Args:
        method: HTTP verb.
        path: Request path.
        headers: Request headers with lower-case names.
        request_id: Explicit ID (e.g., assigned by middleware); wins over headers.
    """
    rid = request_id or (headers or {}).get("x-request-id") or str(uuid.uuid4())
    return RequestContext(
        request_id=rid,
        method=method,
        path=path,
        started_at=time.perf_counter(),
    )


def with_actor_context(
    ctx: RequestContext,
    actor_user_id: str | None = None,
    restaurant_id: str | None = None,
) -> RequestContext:
    return replace(ctx, actor_user_id=actor_user_id, restaurant_id=restaurant_id)


def ok(ctx: RequestContext, data: Any, status: int = 200) -> EnvelopeResponse:
    body = {"success": True, "data": data, "meta": {"request_id": ctx.request_id}}
    return EnvelopeResponse(status=status, body=body, headers=ctx.headers)


def fail(
    ctx: RequestContext, error: str, status: int = 400, code: str | None = None
) -> EnvelopeResponse:
    body = {
        "success": False,
        "error": error,
        "meta": {"request_id": ctx.request_id, "code": code},
    }
    return EnvelopeResponse(status=status, body=body, headers=ctx.headers)


def from_error(
    ctx: RequestContext, error: BaseException, fallback: str = "Internal server error"
) -> EnvelopeResponse:
    """Turn an unexpected exception into a 500 ``INTERNAL_ERROR`` envelope.

    The exception message is used when it has one, otherwise ``fallback``.
    """
    return fail(ctx, str(error) or fallback, 500, "INTERNAL_ERROR")
