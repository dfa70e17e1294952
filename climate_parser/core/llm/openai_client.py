from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from climate_parser.domain.exceptions import UpstreamCallFailure


@dataclass(frozen=True)
class OpenAIConfig:
    api_key: str
    base_url: str
    model: str
    timeout_seconds: float


@dataclass(frozen=True)
class ChatCompletion:
    id: str | None
    model: str | None
    content: str
    total_tokens: int | None


def _upstream_error_from_response(resp: httpx.Response) -> UpstreamCallFailure:
    message = resp.reason_phrase or "OpenAI request failed"
    error_type = None
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message") or message
        error_type = body["error"].get("type")
    return UpstreamCallFailure(
        f"{resp.status_code} {message}",
        upstream_status=resp.status_code,
        upstream_type=error_type,
    )


class OpenAIClient:
    """
    Minimal OpenAI chat-completions client.

    Design notes:
    - One request/response exchange per call: no streaming, no retries.
    - Prompts and outputs are never logged here.
    - Returns the raw message content; parsing is the caller's job.
    """

    def __init__(
        self,
        *,
        config: OpenAIConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config
        self._transport = transport

    @property
    def model(self) -> str:
        return self._config.model

    async def create_chat_completion(
        self,
        *,
        messages: list[dict[str, str]],
        max_completion_tokens: int,
    ) -> ChatCompletion:
        url = f"{self._config.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        payload: dict[str, Any] = {
            "model": self._config.model,
            "messages": messages,
            "max_completion_tokens": max_completion_tokens,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            raise UpstreamCallFailure("OpenAI request timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamCallFailure(f"OpenAI request failed: {exc}") from exc

        if resp.status_code != 200:
            raise _upstream_error_from_response(resp)

        try:
            data = resp.json()
            message = data["choices"][0]["message"]
            usage = data.get("usage") or {}
            if not isinstance(message, dict) or not isinstance(usage, dict):
                raise TypeError("unexpected completion envelope")
            if not isinstance(message.get("content"), str | None):
                raise TypeError("completion content is not a string")
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise UpstreamCallFailure(
                "OpenAI response did not include a completion message",
                upstream_status=resp.status_code,
            ) from exc

        return ChatCompletion(
            id=data.get("id"),
            model=data.get("model"),
            content=message.get("content") or "",
            total_tokens=usage.get("total_tokens"),
        )
