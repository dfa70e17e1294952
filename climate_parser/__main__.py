from __future__ import annotations

import logging

import uvicorn

from climate_parser.core.server import find_available_port
from climate_parser.core.settings import get_settings
from climate_parser.main import app

logger = logging.getLogger("climate_parser.server")


def main() -> None:
    settings = get_settings()
    port = find_available_port(
        host=settings.host,
        start_port=settings.port,
        attempts=settings.port_retry_attempts,
    )
    logger.info("Server running on port %s", port)
    uvicorn.run(app, host=settings.host, port=port, log_config=None)


if __name__ == "__main__":
    main()
