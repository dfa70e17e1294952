from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from climate_parser.core.settings import get_settings
from climate_parser.domain.exceptions import ClimateParserError, InvalidUpstreamResponse

logger = logging.getLogger("climate_parser.errors")

NOT_FOUND_BODY = {"error": "Not Found", "message": "The requested endpoint does not exist"}


def format_details(exc: BaseException) -> str:
    """Return the formatted stack trace used in non-production error bodies."""

    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def error_body(exc: ClimateParserError) -> dict[str, Any]:
    content: dict[str, Any] = {"error": exc.message}
    if get_settings().expose_error_details:
        details = format_details(exc)
        if isinstance(exc, InvalidUpstreamResponse):
            details = f"{exc.parse_error}\n{details}"
        content["details"] = details
    return content


def unexpected_error_response(exc: Exception) -> JSONResponse:
    message = "An unexpected error occurred" if get_settings().is_production else str(exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "message": message},
    )


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """
    Turn unexpected exceptions into the generic 500 body inside the middleware stack.

    Starlette runs a handler registered for `Exception` outside every user middleware,
    so its response would miss CORS headers and X-Request-ID. Installed innermost,
    this keeps those headers on the 500.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "Unhandled exception while processing request",
                extra={
                    "request_id": getattr(request.state, "request_id", None),
                    "http_method": request.method,
                    "request_path": request.url.path,
                    "status_code": 500,
                },
            )
            return unexpected_error_response(exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Register application exception handlers."""

    @app.exception_handler(ClimateParserError)
    async def handle_climate_parser_error(
        request: Request,
        exc: ClimateParserError,
    ) -> JSONResponse:
        logger.info(
            "Request failed",
            extra={
                "request_id": getattr(request.state, "request_id", None),
                "http_method": request.method,
                "request_path": request.url.path,
                "status_code": exc.status_code,
                "error": type(exc).__name__,
            },
        )
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request"})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content=NOT_FOUND_BODY)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        # Errors raised outside UnhandledErrorMiddleware, e.g. by an outer middleware.
        logger.error("Unhandled exception outside the middleware stack", exc_info=exc)
        return unexpected_error_response(exc)
