from __future__ import annotations

from fastapi import Depends

from climate_parser.core.llm.openai_client import OpenAIClient, OpenAIConfig
from climate_parser.core.settings import Settings, get_settings


def build_openai_client(settings: Settings) -> OpenAIClient | None:
    """Build a client from settings, or None when OPENAI_API_KEY is missing."""

    if not settings.openai_api_key:
        return None
    return OpenAIClient(
        config=OpenAIConfig(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            timeout_seconds=float(settings.openai_timeout_seconds),
        )
    )


def get_openai_client(settings: Settings = Depends(get_settings)) -> OpenAIClient | None:
    # None (not an exception) so the route reports the configuration error only after
    # the caller has been authenticated.
    return build_openai_client(settings)
