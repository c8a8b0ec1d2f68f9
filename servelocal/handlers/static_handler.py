"""Static file responder mapping request paths onto the content root."""

import logging
import mimetypes
import os
import stat
from pathlib import Path
from typing import BinaryIO, Iterator

from servelocal.bootstrap.config import EffectiveConfiguration
from servelocal.bootstrap.logging_setup import get_logger
from servelocal.domain.http_types import HttpRequest, HttpResponse
from servelocal.domain.response_builders import file_response, not_found_response

STATIC_LOGGER = get_logger("handlers.static")

CHUNK_SIZE = 65536
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def candidate_path(content_root: str, default_file: str, url_path: str) -> Path:
    """Join the request path onto the content root.

    "/" is replaced by the default file. ".." segments are collapsed
    lexically and the result is not confined to the content root.
    """
    if url_path == "/":
        url_path = default_file
    joined = os.path.join(content_root, url_path.lstrip("/"))
    return Path(os.path.normpath(joined))


def content_type_for_path(filepath: Path) -> str:
    """Guess the MIME type from the file extension."""
    mime_type, _ = mimetypes.guess_type(filepath.as_posix())
    return mime_type or DEFAULT_CONTENT_TYPE


def open_regular_file(filepath: Path) -> BinaryIO:
    """Open filepath for reading, refusing anything but a regular file."""
    file_handle = open(filepath, "rb")
    try:
        if not stat.S_ISREG(os.fstat(file_handle.fileno()).st_mode):
            raise IsADirectoryError(f"not a regular file: {filepath}")
    except OSError:
        file_handle.close()
        raise
    return file_handle


def stream_file(file_handle: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield the contents of an open file in chunks, closing it afterwards."""
    with file_handle:
        while True:
            chunk = file_handle.read(chunk_size)
            if not chunk:
                break
            yield chunk


def static_file_response(
    request: HttpRequest, config: EffectiveConfiguration
) -> HttpResponse:
    """Serve the file the request path names, or a plain-text 404."""
    filepath = candidate_path(config.content_root, config.default_file, request.path)
    content_type = content_type_for_path(filepath)
    try:
        file_handle = open_regular_file(filepath)
    except (OSError, ValueError) as error:
        if STATIC_LOGGER.logger.isEnabledFor(logging.DEBUG):
            STATIC_LOGGER.debug(
                "File not found",
                extra={
                    "event": "file_not_found",
                    "path": filepath.as_posix(),
                    "error_type": type(error).__name__,
                },
            )
        return not_found_response(request)

    if request.method == "HEAD":
        file_handle.close()
        return file_response(request, content_type, None)
    return file_response(request, content_type, stream_file(file_handle))
