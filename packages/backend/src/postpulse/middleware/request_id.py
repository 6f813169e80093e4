"""Request ID middleware — unique ID per request for tracing.

Learn: Every request gets an ID, either from the incoming X-Request-ID
header or freshly generated. The ID is bound to structlog's contextvars so
it appears in every log entry for that request (including the post.* events
the services emit), and returned in the response header.

Only plain HTTP passes through here; BaseHTTPMiddleware skips WebSocket
scopes, so subscription connections are not tagged.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate and propagate a unique request ID, log one line per request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response: Response = await call_next(request)
        logger.debug(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response
