"""HTTP logging middleware.

Each request gets a correlation id and exactly one structured log line when it
finishes. The line records the method, route template, status, duration and
declared body size, plus the parse request number once the handler has assigned
one. Bodies, query strings and headers such as X-API-Key are never logged.
"""

from __future__ import annotations

import logging
import re
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("climate_parser.http")

REQUEST_ID_HEADER = "X-Request-ID"
# Caller-supplied ids end up verbatim in log lines; anything else is replaced.
_INCOMING_ID = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]{0,127}")


def correlation_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    return incoming if _INCOMING_ID.fullmatch(incoming) else uuid.uuid4().hex


def _log_request(
    request: Request,
    *,
    status_code: int,
    started: float,
    failed: bool = False,
) -> None:
    route = request.scope.get("route")
    declared = request.headers.get("content-length", "")
    fields = {
        "request_id": request.state.request_id,
        "http_method": request.method,
        "request_path": getattr(route, "path", None) or "unmatched",
        "status_code": status_code,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "content_length": int(declared) if declared.isdigit() else None,
        "request_number": getattr(request.state, "request_number", None),
    }
    if failed:
        logger.error("Request failed with an unhandled error", extra=fields, exc_info=True)
    else:
        logger.info("Request completed", extra=fields)


class HttpLoggingMiddleware(BaseHTTPMiddleware):
    """Attach `request.state.request_id`, echo it back, and log the outcome."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = correlation_id(request)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            _log_request(request, status_code=500, started=started, failed=True)
            raise

        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        _log_request(request, status_code=response.status_code, started=started)
        return response
