from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from climate_parser import __version__
from climate_parser.api.exception_handlers import (
    UnhandledErrorMiddleware,
    register_exception_handlers,
)
from climate_parser.core.counter import RequestCounter
from climate_parser.core.llm.deps import build_openai_client
from climate_parser.core.logging import setup_logging
from climate_parser.core.middleware.cors import OriginAllowListMiddleware
from climate_parser.core.middleware.http_logging import HttpLoggingMiddleware
from climate_parser.core.settings import Settings, get_settings
from climate_parser.domain.exceptions import UpstreamCallFailure
from climate_parser.projects.router import router as projects_router
from climate_parser.projects.service import ProjectParserService

setup_logging()
logger = logging.getLogger("climate_parser.startup")

_INDEX_HTML = Path(__file__).resolve().parent / "static" / "index.html"


async def run_startup_check(settings: Settings) -> bool:
    """Check OpenAI connectivity once and log the outcome; never raises."""

    client = build_openai_client(settings)
    if client is None:
        logger.warning("Skipping OpenAI connection test - API key not configured")
        return False

    service = ProjectParserService(
        llm_client=client,
        max_completion_tokens=settings.openai_max_completion_tokens,
        check_max_completion_tokens=settings.openai_check_max_completion_tokens,
    )
    try:
        result = await service.check_connectivity()
    except UpstreamCallFailure as exc:
        logger.error(
            "OpenAI API connection failed",
            extra={"upstream_status": exc.upstream_status, "error": exc.message},
        )
        return False

    logger.info("OpenAI API connection successful", extra={"model": result.model})
    return True


def create_app() -> FastAPI:
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        current = get_settings()
        logger.info("Climate Parser API starting up (env=%s)", current.app_env)
        # Only presence is logged, never the values.
        logger.info(
            "Environment check: API_SECRET_KEY %s, OPENAI_API_KEY %s",
            "set" if current.api_secret_key else "missing",
            "set" if current.openai_api_key else "missing",
        )
        if current.startup_check:
            await run_startup_check(current)
        yield

    app = FastAPI(
        title="Climate Project Parser API",
        version=__version__,
        description=(
            "Parses unstructured text describing climate or carbon projects into structured "
            "JSON by delegating extraction to an OpenAI chat-completion model.\n\n"
            "- The model's JSON object is relayed unchanged; its shape is suggested by the "
            "prompt, not enforced.\n"
            "- Nothing is cached or stored; each request is independent."
        ),
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/swagger",
        redoc_url=None,
        openapi_url=None if settings.is_production else "/openapi.json",
        openapi_tags=[
            {"name": "health", "description": "Basic uptime check."},
            {
                "name": "projects",
                "description": "Project text extraction and OpenAI connectivity checks.",
            },
        ],
    )
    app.state.request_counter = RequestCounter()

    # Added first, so it runs innermost: CORS and X-Request-ID also reach generic 500s.
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(
        OriginAllowListMiddleware,
        allowed_origins=settings.cors_allowed_origins,
        allowed_suffixes=settings.cors_allowed_origin_suffixes,
    )
    app.add_middleware(HttpLoggingMiddleware)

    register_exception_handlers(app)

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index() -> HTMLResponse:
        return HTMLResponse(_INDEX_HTML.read_text(encoding="utf-8"))

    app.include_router(projects_router)
    return app


app = create_app()
