"""Centralized logging configuration.

Every record, including uvicorn's own, is written to stdout as one JSON object so the
hosting platform can index it. Request bodies, prompts and model output are not logged.
Correlation fields passed via `extra` are optional: records without them still format.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import UTC, datetime
from typing import Any


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Always present in the payload (null when the record has no such attribute).
_BASE_FIELDS = ("request_id", "status_code", "duration_ms")

# Copied into the payload only when set.
_OPTIONAL_FIELDS = (
    "request_number",
    "text_length",
    "content_length",
    "field_count",
    "known_field_count",
    "model",
    "total_tokens",
    "upstream_status",
    "error",
)


class JsonFormatter(logging.Formatter):
    """One JSON object per record; never raises on missing `extra` attributes."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "method": getattr(record, "http_method", None),
            "path": getattr(record, "request_path", None),
        }
        payload.update({name: getattr(record, name, None) for name in _BASE_FIELDS})
        payload.update(
            {
                name: value
                for name in _OPTIONAL_FIELDS
                if (value := getattr(record, name, None)) is not None
            }
        )

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Route the root logger and uvicorn's loggers to a single JSON stdout handler."""

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JsonFormatter}},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                }
            },
            "loggers": {
                # uvicorn installs its own handlers unless told otherwise; keep one format.
                name: {"handlers": [], "propagate": True}
                for name in ("uvicorn", "uvicorn.error", "uvicorn.access")
            },
            "root": {"level": level, "handlers": ["stdout"]},
        }
    )
