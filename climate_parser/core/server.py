from __future__ import annotations

import errno
import logging
import socket

logger = logging.getLogger("climate_parser.server")


class PortUnavailableError(RuntimeError):
    """Raised when every port in the bounded retry window is already bound."""


def _port_is_free(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                return False
            raise
    return True


def find_available_port(*, host: str, start_port: int, attempts: int) -> int:
    """Return the first bindable port in [start_port, start_port + attempts)."""

    for port in range(start_port, start_port + attempts):
        if port > 65535:
            break
        if _port_is_free(host, port):
            return port
        logger.warning("Port %s in use, trying port %s...", port, port + 1)

    raise PortUnavailableError(
        f"No free port in range {start_port}-{start_port + attempts - 1} on {host}"
    )
