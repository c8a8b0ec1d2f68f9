"""HTTP Input/Output operations."""

import socket
import urllib.parse
from typing import Optional, Tuple

from servelocal.bootstrap.config import (
    HEADER_DELIMITER,
    MAX_BODY_BYTES,
    MAX_HEADER_BYTES,
)
from servelocal.bootstrap.logging_setup import get_logger
from servelocal.domain.errors import RequestTooLarge
from servelocal.domain.http_types import HttpRequest, HttpResponse

IO_LOGGER = get_logger("io")

SUPPORTED_VERSIONS = {"HTTP/1.0", "HTTP/1.1"}


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary."""
    parsed = {}
    for line in lines:
        if ":" in line:
            name, value = line.split(":", 1)
            parsed[name.strip().lower()] = value.strip()
    return parsed


def parse_request_line(request_line: str) -> Tuple[str, str, str]:
    """Parse the method, decoded URL path and version from the request line."""
    try:
        method, target, version = request_line.split(" ", 2)
    except ValueError as exc:
        raise ValueError("Invalid request line") from exc
    if version not in SUPPORTED_VERSIONS:
        raise ValueError(f"Unsupported HTTP version: {version}")
    if not method or not target:
        raise ValueError("Invalid request line")

    parsed_target = urllib.parse.urlsplit(target)
    # Decoded before the join, so %2e%2e walks up and %00 reaches open().
    path = urllib.parse.unquote(parsed_target.path) or "/"
    return method, path, version


def determine_content_length(headers: dict[str, str]) -> int:
    """Validate and return the declared Content-Length for the request."""
    header_value = headers.get("content-length")
    if header_value is None:
        return 0
    try:
        content_length = int(header_value)
    except ValueError as exc:
        raise ValueError("Invalid Content-Length") from exc
    if content_length < 0:
        raise ValueError("Negative Content-Length")
    return content_length


def receive_request(
    client_socket: socket.socket, buffer: bytes
) -> Tuple[Optional[HttpRequest], bytes]:
    """Read bytes from the socket until a complete request is available.

    Raises RequestTooLarge, a ValueError, when the header block or the
    declared body exceeds its cap.
    """
    while HEADER_DELIMITER not in buffer:
        if len(buffer) > MAX_HEADER_BYTES:
            raise RequestTooLarge("Request header block too large")
        chunk = client_socket.recv(4096)
        if not chunk:
            return None, b""
        buffer += chunk

    header_block, remainder = buffer.split(HEADER_DELIMITER, 1)
    if len(header_block) > MAX_HEADER_BYTES:
        raise RequestTooLarge("Request header block too large")
    header_lines = header_block.decode("iso-8859-1").split("\r\n")
    method, path, version = parse_request_line(header_lines[0])
    headers = parse_headers(header_lines[1:])
    content_length = determine_content_length(headers)
    if content_length > MAX_BODY_BYTES:
        raise RequestTooLarge("Request body too large")

    while len(remainder) < content_length:
        chunk = client_socket.recv(4096)
        if not chunk:
            return None, b""
        remainder += chunk

    body = remainder[:content_length]
    leftover = remainder[content_length:]
    IO_LOGGER.debug("Parsed request", extra={"method": method, "path": path})
    return HttpRequest(method, path, headers, body, version), leftover


def _send_body_iter(client_socket: socket.socket, response: HttpResponse) -> None:
    """Write a streamed body, chunk-framed unless the connection closes after it."""
    for chunk in response.body_iter:
        if not chunk:
            continue
        if response.use_chunked:
            client_socket.sendall(f"{len(chunk):X}\r\n".encode())
            client_socket.sendall(chunk)
            client_socket.sendall(b"\r\n")
        else:
            client_socket.sendall(chunk)
    if response.use_chunked:
        client_socket.sendall(b"0\r\n\r\n")


def send_response(client_socket: socket.socket, response: HttpResponse) -> None:
    """Serialize and send the HTTP response over the socket."""
    headers = dict(response.headers)
    if response.use_chunked:
        headers["Transfer-Encoding"] = "chunked"
    elif response.body_iter is None:
        headers.setdefault("Content-Length", str(len(response.body)))
    if response.close_connection:
        headers["Connection"] = "close"
    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    header_block = "\r\n".join(header_lines).encode("iso-8859-1") + HEADER_DELIMITER

    if response.body_iter is None:
        client_socket.sendall(header_block + response.body)
    else:
        try:
            client_socket.sendall(header_block)
            _send_body_iter(client_socket, response)
        finally:
            close = getattr(response.body_iter, "close", None)
            if close is not None:
                close()
    IO_LOGGER.debug(
        "Sent response",
        extra={"status_code": response.status_line, "event": "response_sent"},
    )
