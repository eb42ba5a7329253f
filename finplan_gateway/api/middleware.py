"""Request tracing and latency metrics for the finplan API"""

import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from finplan_gateway.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"

# Longest caller-supplied request id that is echoed back unchanged
MAX_REQUEST_ID_LENGTH = 128


def _request_id_from(request: Request) -> str:
    supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if supplied and len(supplied) <= MAX_REQUEST_ID_LENGTH:
        return supplied
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's request id when sane, otherwise mint one; echo it on the response"""

    async def dispatch(self, request: Request, call_next):
        request.state.request_id = _request_id_from(request)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Observe latency per route template so /v1/loans/{plan_id} is one series, not one per plan"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)

        route = request.scope.get("route")
        request_duration_histogram.labels(
            method=request.method,
            endpoint=getattr(route, "path", "unmatched"),
            status=response.status_code,
        ).observe(time.perf_counter() - started)
        return response
