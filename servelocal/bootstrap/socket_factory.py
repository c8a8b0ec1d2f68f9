"""Listening socket creation."""

import socket

from servelocal.bootstrap.config import ACCEPT_POLL_SECONDS

LISTEN_HOST = ""


def create_server_socket(port: int, host: str = LISTEN_HOST) -> socket.socket:
    """Create the listening socket, polling accept so shutdown is noticed."""
    server_socket = socket.create_server((host, port))
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket
