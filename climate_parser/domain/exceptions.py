from __future__ import annotations


class ClimateParserError(Exception):
    """Base class for errors that map to a JSON error response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClimateParserError):
    """Raised when required request input is missing or malformed."""

    status_code = 400


class AuthError(ClimateParserError):
    """Raised when the X-API-Key header is missing or does not match the shared secret."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized: Invalid API key"):
        super().__init__(message)


class AuthNotConfiguredError(AuthError):
    """Raised when no shared secret is configured server-side."""

    status_code = 500

    def __init__(self, message: str = "Server configuration error: API key not configured"):
        super().__init__(message)


class UpstreamNotConfiguredError(ClimateParserError):
    """Raised when the OpenAI credential is missing."""

    def __init__(self, message: str = "OpenAI API key is not configured"):
        super().__init__(message)


class UpstreamCallFailure(ClimateParserError):
    """Raised when the chat completion call fails (network, auth, quota, rate limit)."""

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int | None = None,
        upstream_type: str | None = None,
    ):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_type = upstream_type


class InvalidUpstreamResponse(ClimateParserError):
    """Raised when the completion succeeded but its content is not a JSON object."""

    def __init__(
        self,
        parse_error: str,
        message: str = "Failed to parse upstream response as JSON",
    ):
        super().__init__(message)
        self.parse_error = parse_error


class PayloadTooLargeError(ClimateParserError):
    """Raised when the request body exceeds the configured size limit."""

    status_code = 413

    def __init__(self, max_bytes: int):
        super().__init__(f"Request body exceeds the maximum size of {max_bytes} bytes")
        self.max_bytes = max_bytes
