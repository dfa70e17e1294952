from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from climate_parser import __version__
from climate_parser.api.exception_handlers import format_details
from climate_parser.core.auth import require_api_key
from climate_parser.core.llm.deps import get_openai_client
from climate_parser.core.llm.openai_client import OpenAIClient
from climate_parser.core.settings import Settings, get_settings
from climate_parser.domain.exceptions import (
    PayloadTooLargeError,
    UpstreamCallFailure,
    UpstreamNotConfiguredError,
    ValidationError,
)
from climate_parser.projects.schemas import ConnectivityOut, ErrorOut, HealthOut, ParseIn
from climate_parser.projects.service import ProjectParserService

router = APIRouter(prefix="/api", tags=["projects"])
logger = logging.getLogger("climate_parser.projects")

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorOut, "description": "Missing or invalid `text` field."},
    401: {"model": ErrorOut, "description": "Missing or invalid `X-API-Key` header."},
    413: {"model": ErrorOut, "description": "Request body exceeds `MAX_BODY_BYTES`."},
    500: {"model": ErrorOut, "description": "Configuration, upstream or parse failure."},
}


async def _read_body(request: Request, *, max_body_bytes: int) -> bytes:
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_body_bytes:
        raise PayloadTooLargeError(max_body_bytes)

    # Content-Length can be absent (chunked) or wrong; count what actually arrives.
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_body_bytes:
            raise PayloadTooLargeError(max_body_bytes)
    return bytes(body)


async def _read_parse_input(
    request: Request, *, max_text_chars: int, max_body_bytes: int
) -> ParseIn:
    """
    Read and validate the JSON body by hand.

    Body parsing happens inside the handler (not as a FastAPI body parameter) so that
    authentication always runs first and a malformed body maps to our 400 error.
    """

    raw = await _read_body(request, max_body_bytes=max_body_bytes)
    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc

    if not isinstance(body, dict) or not body.get("text"):
        raise ValidationError("Text field is required")

    try:
        payload = ParseIn.model_validate(body)
    except PydanticValidationError as exc:
        raise ValidationError("Text field must be a non-empty string") from exc

    if len(payload.text) > max_text_chars:
        raise ValidationError(
            f"Text field exceeds the maximum length of {max_text_chars} characters"
        )
    return payload


def _build_service(openai_client: OpenAIClient | None, settings: Settings) -> ProjectParserService:
    if openai_client is None:
        logger.warning("OPENAI_API_KEY is not set; rejecting request")
        raise UpstreamNotConfiguredError()
    return ProjectParserService(
        llm_client=openai_client,
        max_completion_tokens=settings.openai_max_completion_tokens,
        check_max_completion_tokens=settings.openai_check_max_completion_tokens,
        include_example=settings.prompt_include_example,
    )


@router.post(
    "/parse",
    dependencies=[Depends(require_api_key)],
    summary="Parse project text",
    description=(
        "Send a free-text climate/carbon project description and receive the structured "
        "JSON object produced by the model. The object is relayed as-is: its shape is "
        "suggested by the prompt, not enforced."
    ),
    responses=_ERROR_RESPONSES,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": ParseIn.model_json_schema()}},
        }
    },
)
async def parse_project(
    request: Request,
    settings: Settings = Depends(get_settings),
    openai_client=Depends(get_openai_client),
) -> JSONResponse:
    payload = await _read_parse_input(
        request,
        max_text_chars=settings.max_text_chars,
        max_body_bytes=settings.max_body_bytes,
    )
    service = _build_service(openai_client, settings)

    request_number = request.app.state.request_counter.next()
    request.state.request_number = request_number
    logger.info(
        "Received parse request",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "request_number": request_number,
            "text_length": len(payload.text),
        },
    )
    result = await service.extract_project_info(text=payload.text, request_number=request_number)
    return JSONResponse(content=result)


@router.get(
    "/test-openai",
    dependencies=[Depends(require_api_key)],
    response_model=ConnectivityOut,
    summary="OpenAI connectivity check",
    description="Send one minimal chat completion to verify the OpenAI credential.",
    responses={401: _ERROR_RESPONSES[401], 500: {"description": "Connectivity check failed."}},
)
async def openai_connectivity(
    settings: Settings = Depends(get_settings),
    openai_client=Depends(get_openai_client),
):
    service = _build_service(openai_client, settings)
    try:
        return await service.check_connectivity()
    except UpstreamCallFailure as exc:
        logger.error(
            "OpenAI connectivity check failed",
            extra={"upstream_status": exc.upstream_status, "error": exc.message},
        )
        content: dict[str, Any] = {
            "status": "error",
            "message": "OpenAI connection failed",
            "error": exc.message,
        }
        if settings.expose_error_details:
            content["details"] = format_details(exc)
        return JSONResponse(status_code=500, content=content)


@router.get(
    "/health",
    response_model=HealthOut,
    tags=["health"],
    summary="Health check",
    description=(
        "Lightweight endpoint to verify the API process is running. It does not call "
        "OpenAI or read any configuration."
    ),
)
async def health() -> HealthOut:
    return HealthOut(
        status="OK",
        message="Climate Project Parser API is running",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )
