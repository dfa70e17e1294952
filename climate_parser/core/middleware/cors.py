"""Origin allow-list CORS middleware.

Browsers only receive permissive CORS headers when their Origin is explicitly allowed
(exact match or a hosting-provider suffix such as `.vercel.app`). Requests without an
Origin header are same-origin or non-browser clients and are always allowed.
Disallowed origins get no CORS headers; the request itself is still served.
"""

from __future__ import annotations

from collections.abc import Iterable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOW_HEADERS = "X-Requested-With, Content-Type, Accept, Authorization, X-API-Key"


def is_origin_allowed(
    origin: str | None, *, allowed_origins: Iterable[str], allowed_suffixes: Iterable[str]
) -> bool:
    if not origin:
        return True
    if origin in set(allowed_origins):
        return True
    return any(origin.endswith(suffix) for suffix in allowed_suffixes if suffix)


class OriginAllowListMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        *,
        allowed_origins: Iterable[str],
        allowed_suffixes: Iterable[str],
    ) -> None:
        super().__init__(app)
        self._allowed_origins = frozenset(allowed_origins)
        self._allowed_suffixes = tuple(allowed_suffixes)

    def _cors_headers(self, origin: str | None) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Origin": origin or "*",
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
        }
        if origin:
            headers["Vary"] = "Origin"
        return headers

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        origin = request.headers.get("origin")
        if not is_origin_allowed(
            origin,
            allowed_origins=self._allowed_origins,
            allowed_suffixes=self._allowed_suffixes,
        ):
            return await call_next(request)

        headers = self._cors_headers(origin)
        if request.method == "OPTIONS":
            # Preflight: answered here, routes are never reached.
            return Response(status_code=200, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
