from __future__ import annotations

import hmac
import logging

from fastapi import Request

from climate_parser.core.settings import get_settings
from climate_parser.domain.exceptions import AuthError, AuthNotConfiguredError

logger = logging.getLogger("climate_parser.auth")

API_KEY_HEADER = "X-API-Key"


def require_api_key(request: Request) -> None:
    """Reject the request unless X-API-Key matches the configured shared secret."""

    settings = get_settings()
    expected = settings.api_secret_key
    request_id = getattr(request.state, "request_id", None)

    if not expected:
        logger.warning(
            "API_SECRET_KEY is not set; rejecting authenticated request",
            extra={"request_id": request_id, "request_path": request.url.path},
        )
        raise AuthNotConfiguredError()

    provided = request.headers.get(API_KEY_HEADER)
    if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.info(
            "Rejected request with missing or invalid API key",
            extra={"request_id": request_id, "request_path": request.url.path},
        )
        raise AuthError()
