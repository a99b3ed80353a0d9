"""Creation of the listening TCP socket shared by every echo server."""

from __future__ import annotations

import socket

MAX_PORT = 65535


def open_listener(port: int, host: str = "", backlog: int = 5) -> socket.socket:
    """Return an IPv4 TCP socket bound to ``host:port`` and listening.

    Address reuse is enabled so a restarted server can take the port back at
    once. An empty host means every local interface. Raises ``ValueError``
    for a port outside 0-65535 and ``OSError`` when binding or listening fails.
    """
    if not 0 <= port <= MAX_PORT:
        raise ValueError(f"port must be between 0 and {MAX_PORT}, got {port}")

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    return sock