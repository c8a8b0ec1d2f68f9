"""Integration tests exercising the static file responder over HTTP."""

from __future__ import annotations

import socket
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import requests

from servelocal.bootstrap.config import MAX_BODY_BYTES
from tests.utils.http import read_http_response, send_raw_request

pytestmark = pytest.mark.integration

if TYPE_CHECKING:
    from tests.conftest import ServerProcessInfo


def test_root_serves_default_file(base_url: str) -> None:
    """/ streams index.html with an HTML content type."""

    response = requests.get(f"{base_url}/", timeout=5)
    assert response.status_code == 200
    assert response.text == "<h1>Hello</h1>\n"
    assert response.headers["Content-Type"] == "text/html"
    assert response.headers.get("Transfer-Encoding") == "chunked"


def test_named_file_has_matching_content_type(base_url: str) -> None:
    """The MIME type follows the extension."""

    response = requests.get(f"{base_url}/style.css", timeout=5)
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/css"
    assert response.text == "body { color: black; }\n"


def test_nested_file_with_query_string(base_url: str) -> None:
    """Query strings are ignored when mapping to the filesystem."""

    response = requests.get(f"{base_url}/nested/data.json?cache=bust", timeout=5)
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_missing_file_returns_plain_404(base_url: str) -> None:
    """Unknown paths get the fixed plain-text 404."""

    response = requests.get(f"{base_url}/missing.txt", timeout=5)
    assert response.status_code == 404
    assert response.headers["Content-Type"] == "text/plain"
    assert response.content == b"404 Not Found\n"


def test_directory_request_returns_404(base_url: str) -> None:
    """Directories are never listed."""

    response = requests.get(f"{base_url}/nested", timeout=5)
    assert response.status_code == 404


def test_file_added_after_startup_is_served(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """Files are looked up per request, not cached at startup."""

    (server_process["content_root"] / "late.txt").write_bytes(b"late")

    response = requests.get(f"{base_url}/late.txt", timeout=5)
    assert response.status_code == 200
    assert response.content == b"late"


def test_large_file_round_trip(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """Multi-chunk files arrive intact."""

    payload = bytes(range(256)) * 1024
    (server_process["content_root"] / "blob.bin").write_bytes(payload)

    response = requests.get(f"{base_url}/blob.bin", timeout=5)
    assert response.status_code == 200
    assert response.content == payload


def test_head_request_returns_headers_only(base_url: str) -> None:
    """HEAD mirrors GET without a body."""

    response = requests.head(f"{base_url}/", timeout=5)
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/html"
    assert response.content == b""


def test_keep_alive_connection_is_reused(
    server_process: "ServerProcessInfo",
) -> None:
    """Several requests can share one connection."""

    host, port = server_process["host"], server_process["port"]
    with socket.create_connection((host, port), timeout=5) as sock:
        sock.sendall(b"GET /style.css HTTP/1.1\r\nHost: test\r\n\r\n")
        first = read_http_response(sock)
        sock.sendall(b"GET /missing HTTP/1.1\r\nHost: test\r\n\r\n")
        second = read_http_response(sock)

    assert first.status_line == "HTTP/1.1 200 OK"
    assert first.body == b"body { color: black; }\n"
    assert second.status_line == "HTTP/1.1 404 Not Found"
    assert second.body == b"404 Not Found\n"


def test_http10_request_gets_unchunked_body(
    server_process: "ServerProcessInfo",
) -> None:
    """HTTP/1.0 clients receive the body delimited by connection close."""

    response = send_raw_request(
        server_process["host"],
        server_process["port"],
        b"GET / HTTP/1.0\r\n\r\n",
    )
    assert response.status_line == "HTTP/1.1 200 OK"
    assert "transfer-encoding" not in response.headers
    assert response.body == b"<h1>Hello</h1>\n"


def test_http10_head_request_has_no_content_length(
    server_process: "ServerProcessInfo",
) -> None:
    """HEAD over HTTP/1.0 sends headers only and never claims an empty body."""

    response = send_raw_request(
        server_process["host"], server_process["port"], b"HEAD / HTTP/1.0\r\n\r\n"
    )
    assert response.status_line == "HTTP/1.1 200 OK"
    assert response.headers["content-type"] == "text/html"
    assert "content-length" not in response.headers
    assert response.body == b""


def test_malformed_request_gets_400(server_process: "ServerProcessInfo") -> None:
    """A broken request line is rejected."""

    response = send_raw_request(
        server_process["host"], server_process["port"], b"BROKEN\r\n\r\n"
    )
    assert response.status_line == "HTTP/1.1 400 Bad Request"


def test_encoded_nul_byte_is_404_and_server_keeps_serving(
    server_process: "ServerProcessInfo",
) -> None:
    """A path that decodes to a NUL byte is a plain 404, not a crash."""

    host, port = server_process["host"], server_process["port"]
    missing = send_raw_request(
        host, port, b"GET /%00 HTTP/1.1\r\nHost: test\r\nConnection: close\r\n\r\n"
    )
    follow_up = send_raw_request(
        host, port, b"GET / HTTP/1.1\r\nHost: test\r\nConnection: close\r\n\r\n"
    )

    assert missing.status_line == "HTTP/1.1 404 Not Found"
    assert missing.body == b"404 Not Found\n"
    assert follow_up.status_line == "HTTP/1.1 200 OK"
    assert server_process["process"].poll() is None


def test_oversized_declared_body_gets_400(
    server_process: "ServerProcessInfo",
) -> None:
    """A Content-Length above the cap is refused before any body is read."""

    response = send_raw_request(
        server_process["host"],
        server_process["port"],
        f"POST / HTTP/1.1\r\nHost: test\r\nContent-Length: {MAX_BODY_BYTES + 1}\r\n\r\n".encode(),
    )
    assert response.status_line == "HTTP/1.1 400 Bad Request"
    assert server_process["process"].poll() is None


def test_parent_segments_reach_outside_content_root(
    server_process: "ServerProcessInfo",
) -> None:
    """.. segments are not sanitized: an existing file outside the root is served."""

    content_root: Path = server_process["content_root"]
    name = f"outside-{uuid.uuid4().hex}.txt"
    outside = content_root.parent / name
    outside.write_bytes(b"outside the root")
    try:
        response = send_raw_request(
            server_process["host"],
            server_process["port"],
            f"GET /../{name} HTTP/1.1\r\nHost: test\r\nConnection: close\r\n\r\n".encode(),
        )
    finally:
        outside.unlink()

    assert response.status_line == "HTTP/1.1 200 OK"
    assert response.body == b"outside the root"
