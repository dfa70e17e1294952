from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "climate-project-parser"
    app_env: str = Field(
        default="production",
        validation_alias=AliasChoices("APP_ENV", "NODE_ENV", "app_env"),
        description="Runtime environment: development|production.",
    )

    # Shared secret checked against the X-API-Key header.
    api_secret_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("API_SECRET_KEY", "api_secret_key"),
        description="Shared secret required on authenticated endpoints.",
    )

    # LLM integration (OpenAI)
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
        description="OpenAI API key (required for /api/parse and /api/test-openai).",
    )
    openai_model: str = Field(
        default="o3-mini-2025-01-31",
        validation_alias=AliasChoices("OPENAI_MODEL", "openai_model"),
        description="OpenAI model identifier used for project extraction.",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        validation_alias=AliasChoices("OPENAI_BASE_URL", "openai_base_url"),
        description="Base URL for OpenAI API (override for proxies/emulators).",
    )
    openai_timeout_seconds: float = Field(
        default=120.0,
        ge=1.0,
        validation_alias=AliasChoices("OPENAI_TIMEOUT_SECONDS", "openai_timeout_seconds"),
        description="Timeout for OpenAI API requests (seconds).",
    )
    openai_max_completion_tokens: int = Field(
        default=4000,
        ge=1,
        validation_alias=AliasChoices(
            "OPENAI_MAX_COMPLETION_TOKENS", "openai_max_completion_tokens"
        ),
        description="Maximum output tokens for a parse request.",
    )
    openai_check_max_completion_tokens: int = Field(
        default=256,
        ge=1,
        validation_alias=AliasChoices(
            "OPENAI_CHECK_MAX_COMPLETION_TOKENS", "openai_check_max_completion_tokens"
        ),
        description="Maximum output tokens for the connectivity check.",
    )
    prompt_include_example: bool = Field(
        default=True,
        validation_alias=AliasChoices("PROMPT_INCLUDE_EXAMPLE", "prompt_include_example"),
        description="Include the worked example in the system prompt.",
    )
    max_text_chars: int = Field(
        default=50_000,
        ge=1,
        validation_alias=AliasChoices("MAX_TEXT_CHARS", "max_text_chars"),
        description="Maximum accepted length of the `text` field (characters).",
    )
    max_body_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        validation_alias=AliasChoices("MAX_BODY_BYTES", "max_body_bytes"),
        description="Maximum accepted size of the request body (bytes).",
    )

    # Server
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("HOST", "host"))
    port: int = Field(default=3000, ge=1, le=65535, validation_alias=AliasChoices("PORT", "port"))
    port_retry_attempts: int = Field(
        default=10,
        ge=1,
        validation_alias=AliasChoices("PORT_RETRY_ATTEMPTS", "port_retry_attempts"),
        description="How many consecutive ports to try when the configured one is in use.",
    )
    startup_check: bool = Field(
        default=False,
        validation_alias=AliasChoices("STARTUP_CHECK", "startup_check"),
        description="Run the OpenAI connectivity check once at startup and log the result.",
    )

    # CORS
    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:3001",
            "http://localhost:8080",
            "http://localhost:8081",
            "https://changeblock.com",
            "https://feasibilityapp.vercel.app",
        ],
        validation_alias=AliasChoices("CORS_ALLOWED_ORIGINS", "cors_allowed_origins"),
        description="Exact origins allowed to call the API from a browser.",
    )
    cors_allowed_origin_suffixes: list[str] = Field(
        default_factory=lambda: [".vercel.app", ".vercel.com"],
        validation_alias=AliasChoices(
            "CORS_ALLOWED_ORIGIN_SUFFIXES", "cors_allowed_origin_suffixes"
        ),
        description="Origin suffixes allowed for preview deployments on the hosting provider.",
    )

    @property
    def is_production(self) -> bool:
        return str(self.app_env).strip().lower() == "production"

    @property
    def expose_error_details(self) -> bool:
        return not self.is_production


@lru_cache
def get_settings() -> Settings:
    return Settings()
