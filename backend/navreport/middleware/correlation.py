# backend/navreport/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

This middleware:
1. Takes the caller's correlation ID, or generates one
2. Stores it in context so every log line of the request carries it
3. Echoes it in the X-Correlation-ID response header
4. Logs one line per request with status and duration

Correlation ID Sources (in order of precedence):
1. X-Correlation-ID header
2. X-Request-ID header
3. Generated UUID4

Incoming IDs longer than MAX_CORRELATION_ID_LENGTH or containing
characters outside [A-Za-z0-9._-] are replaced by a generated one, so a
client cannot inject arbitrary text into the logs.

Usage:
    from navreport.middleware import CorrelationIdMiddleware

    app.add_middleware(CorrelationIdMiddleware)
"""

import logging
import re
import time
import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from navreport.utils.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

MAX_CORRELATION_ID_LENGTH = 128
_VALID_CORRELATION_ID = re.compile(r"[A-Za-z0-9._-]+")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to every request, its logs and its response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = self._get_correlation_id(request)
        set_correlation_id(correlation_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({elapsed_ms:.1f} ms)"
            )
            return response

        finally:
            clear_correlation_id()

    def _get_correlation_id(self, request: Request) -> str:
        """Header value if it is a well-formed ID, otherwise a new UUID4."""
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            candidate = request.headers.get(header)
            if candidate and is_valid_correlation_id(candidate):
                return candidate
        return str(uuid.uuid4())


def is_valid_correlation_id(value: str) -> bool:
    """True for short IDs made of letters, digits, dot, underscore and dash."""
    return len(value) <= MAX_CORRELATION_ID_LENGTH and bool(_VALID_CORRELATION_ID.fullmatch(value))
