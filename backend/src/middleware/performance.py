"""Request ID and request timing middleware.

Provides:
- RequestIDMiddleware: tags every request with an ID for log correlation.
- RequestTimingMiddleware: reports request latency, flags slow requests.

Validation requests are dominated by the single model call, so latency
here is mostly model latency.
"""

import logging
import time
import uuid
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

SLOW_REQUEST_THRESHOLD_MS = 1000.0
NOTABLE_REQUEST_THRESHOLD_MS = 500.0

# Liveness checks hit these constantly
QUIET_PATHS = frozenset({"/health", "/api/v1/health/ping"})


def _incoming_request_id(request: Request) -> str | None:
    value = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if not value or len(value) > MAX_REQUEST_ID_LENGTH:
        return None
    return value


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to ``request.state`` and the response headers.

    An upstream ``X-Request-ID`` is reused when it is present and at most
    128 characters long; otherwise a UUID4 is generated.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        request_id = _incoming_request_id(request) or str(uuid.uuid4())
        request.state.request_id = request_id

        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Time each request and log it with structured fields.

    - ``X-Response-Time`` header in milliseconds on every response.
    - WARNING at or above 1 s, INFO ``[SLOW_REQUEST]`` at or above 500 ms,
      DEBUG otherwise. Liveness paths only ever log at DEBUG.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000.0
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        path = request.url.path
        fields = {
            "request_id": getattr(request.state, "request_id", "unknown"),
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }

        if path in QUIET_PATHS:
            logger.debug("Request completed", extra=fields)
        elif duration_ms >= SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                "Slow request: %s %s took %.0f ms", request.method, path, duration_ms, extra=fields
            )
        elif duration_ms >= NOTABLE_REQUEST_THRESHOLD_MS:
            logger.info(
                "[SLOW_REQUEST] %s %s took %.0f ms", request.method, path, duration_ms, extra=fields
            )
        else:
            logger.debug("Request completed", extra=fields)

        return response
