from __future__ import annotations

import json
import logging
import time
from typing import Any, Protocol

from climate_parser.core.llm.openai_client import ChatCompletion
from climate_parser.domain.exceptions import InvalidUpstreamResponse, UpstreamCallFailure
from climate_parser.projects.prompt import build_project_prompts
from climate_parser.projects.schemas import KNOWN_FIELDS, ConnectivityOut, decode_project_data

logger = logging.getLogger("climate_parser.projects")

CONNECTIVITY_PROMPT = "Return the current year as a number only."
_RAW_PREVIEW_CHARS = 200


class LLMClient(Protocol):
    async def create_chat_completion(
        self, *, messages: list[dict[str, str]], max_completion_tokens: int
    ) -> ChatCompletion: ...


def _reject_constant(token: str) -> Any:
    # NaN and Infinity are not JSON and cannot be serialized back to the caller.
    raise ValueError(f"Invalid JSON constant: {token}")


def parse_result_json(content: str) -> dict[str, Any]:
    """Parse completion content as a JSON object or raise InvalidUpstreamResponse."""

    try:
        parsed = json.loads(content.strip(), parse_constant=_reject_constant)
    except ValueError as exc:
        raise InvalidUpstreamResponse(str(exc)) from exc

    if not isinstance(parsed, dict):
        raise InvalidUpstreamResponse(
            f"Expected a JSON object, got {type(parsed).__name__}"
        )
    return parsed


class ProjectParserService:
    def __init__(
        self,
        *,
        llm_client: LLMClient,
        max_completion_tokens: int,
        check_max_completion_tokens: int = 256,
        include_example: bool = True,
    ):
        self._llm = llm_client
        self._max_completion_tokens = max_completion_tokens
        self._check_max_completion_tokens = check_max_completion_tokens
        self._include_example = include_example

    async def extract_project_info(self, *, text: str, request_number: int) -> dict[str, Any]:
        """Turn a project description into the model's JSON result, passed through unchanged."""

        log_extra: dict[str, Any] = {"request_number": request_number}
        logger.info(
            "Processing project text", extra={**log_extra, "text_length": len(text)}
        )

        system_prompt, user_prompt = build_project_prompts(
            text=text, include_example=self._include_example
        )
        started = time.perf_counter()
        try:
            completion = await self._llm.create_chat_completion(
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_completion_tokens=self._max_completion_tokens,
            )
        except UpstreamCallFailure as exc:
            logger.error(
                "OpenAI request failed",
                extra={
                    **log_extra,
                    "upstream_status": exc.upstream_status,
                    "error": exc.message,
                    "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
                },
            )
            raise

        content = completion.content.strip()
        logger.info(
            "OpenAI response received",
            extra={
                **log_extra,
                "model": completion.model,
                "total_tokens": completion.total_tokens,
                "content_length": len(content),
                "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
            },
        )

        try:
            result = parse_result_json(content)
        except InvalidUpstreamResponse as exc:
            # Raw output is only ever written to server logs, never returned.
            logger.error(
                "Failed to parse OpenAI response as JSON (raw prefix: %s)",
                content[:_RAW_PREVIEW_CHARS],
                extra={**log_extra, "error": exc.parse_error},
            )
            raise

        decoded = decode_project_data(result)
        logger.info(
            "JSON parsing successful",
            extra={
                **log_extra,
                "field_count": len(result),
                "known_field_count": len(decoded.model_fields_set & KNOWN_FIELDS),
            },
        )
        return result

    async def check_connectivity(self) -> ConnectivityOut:
        """Send one tiny completion to check credentials and reachability."""

        completion = await self._llm.create_chat_completion(
            messages=[{"role": "user", "content": CONNECTIVITY_PROMPT}],
            max_completion_tokens=self._check_max_completion_tokens,
        )
        logger.info(
            "OpenAI connectivity check succeeded",
            extra={"model": completion.model, "total_tokens": completion.total_tokens},
        )
        return ConnectivityOut(
            status="success",
            message="OpenAI connection working",
            response=completion.content.strip(),
            model=completion.model,
            tokens_used=completion.total_tokens,
        )
