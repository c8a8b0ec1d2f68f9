"""Pure HTTP response builders."""

from typing import Iterable, Optional

from servelocal.domain.http_types import HttpRequest, HttpResponse, should_close

NOT_FOUND_BODY = b"404 Not Found\n"


def file_response(
    request: HttpRequest, content_type: str, body_iter: Optional[Iterable[bytes]]
) -> HttpResponse:
    """Return a 200 response streaming body_iter.

    HTTP/1.1 clients get chunked encoding. HTTP/1.0 clients get the raw
    body delimited by closing the connection. A None body_iter produces the
    same headers with no body, for HEAD.
    """
    chunked = request.version == "HTTP/1.1"
    if body_iter is None and not chunked:
        # An empty stream keeps Content-Length off a close-delimited HEAD.
        body_iter = iter(())
    return HttpResponse(
        "HTTP/1.1 200 OK",
        {"Content-Type": content_type},
        b"",
        should_close(request) or not chunked,
        body_iter=body_iter,
        use_chunked=chunked,
    )


def not_found_response(request: HttpRequest) -> HttpResponse:
    """Return the plain-text 404 reusing the connection preference."""
    body = b"" if request.method == "HEAD" else NOT_FOUND_BODY
    headers = {"Content-Type": "text/plain"}
    if request.method == "HEAD":
        headers["Content-Length"] = str(len(NOT_FOUND_BODY))
    return HttpResponse(
        "HTTP/1.1 404 Not Found",
        headers,
        body,
        should_close(request),
    )


def bad_request_response() -> HttpResponse:
    """Produce a 400 response that always closes the connection."""
    return HttpResponse(
        "HTTP/1.1 400 Bad Request",
        {"Content-Type": "text/plain"},
        b"400 Bad Request\n",
        True,
    )
