"""Request correlation and access logging."""

import re
import time
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-Id"

# Accepted shape for caller-supplied ids
CORRELATION_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")

logger = structlog.get_logger(__name__)


def resolve_correlation_id(header_value: str | None) -> str:
    """Use the caller's id when it is well formed, else a fresh UUID4."""
    if header_value and CORRELATION_ID_PATTERN.fullmatch(header_value):
        return header_value
    return str(uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation id and log its outcome.

    The id is bound into the structlog context together with the method and
    path, stored on ``request.state`` for the error handlers and echoed in the
    response header. One ``request_completed`` entry is written per request
    with the status code and duration; ``/health`` polls are logged at debug.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        log = logger.debug if request.url.path == "/health" else logger.info
        log("request_completed", status_code=response.status_code, duration_ms=duration_ms)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
