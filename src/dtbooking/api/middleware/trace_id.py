"""Per-request trace id, log context and access log line."""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from dtbooking.logging_config import bind_request_context, clear_request_context

logger = logging.getLogger(__name__)


class TraceIdMiddleware(BaseHTTPMiddleware):
    """Propagate ``X-Trace-Id`` (generated when absent) and log each request once."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = request.headers.get("x-trace-id") or f"trc_{uuid.uuid4().hex[:16]}"
        request.state.trace_id = trace_id
        bind_request_context(trace_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            logger.info(
                "%s %s -> %s",
                request.method,
                request.url.path,
                response.status_code,
                extra={"elapsed_ms": round((time.perf_counter() - started) * 1000, 1)},
            )
        finally:
            clear_request_context()
        response.headers["X-Trace-Id"] = trace_id
        return response
