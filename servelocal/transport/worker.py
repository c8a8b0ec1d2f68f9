"""Worker thread logic for handling individual client connections."""

import socket
from dataclasses import dataclass

from servelocal.bootstrap.config import KEEP_ALIVE_TIMEOUT, EffectiveConfiguration
from servelocal.bootstrap.logging_setup import get_logger
from servelocal.domain.errors import RequestTooLarge
from servelocal.domain.response_builders import bad_request_response
from servelocal.handlers.static_handler import static_file_response
from servelocal.lifecycle.state import ServerLifecycle
from servelocal.pipeline.io import receive_request, send_response

WORKER_LOGGER = get_logger("transport.worker")


@dataclass(frozen=True)
class WorkerContext:
    """Read-only dependencies shared across handler threads."""

    config: EffectiveConfiguration
    lifecycle: ServerLifecycle


def _serve_connection(
    client_socket: socket.socket, context: WorkerContext, client_addr_str: str
) -> None:
    buffer = b""
    while not context.lifecycle.should_stop():
        try:
            request, buffer = receive_request(client_socket, buffer)
        except RequestTooLarge:
            WORKER_LOGGER.warning(
                "Request exceeds size limit",
                extra={"event": "request_too_large", "client": client_addr_str},
            )
            send_response(client_socket, bad_request_response())
            return
        except ValueError:
            WORKER_LOGGER.warning(
                "Malformed request received",
                extra={"event": "malformed_request", "client": client_addr_str},
            )
            send_response(client_socket, bad_request_response())
            return
        if request is None:
            return

        response = static_file_response(request, context.config)
        send_response(client_socket, response)
        if response.close_connection:
            return


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Process requests on a client socket until the connection is closed."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    client_socket.settimeout(KEEP_ALIVE_TIMEOUT)
    try:
        _serve_connection(client_socket, context, client_addr_str)
    except (ConnectionError, TimeoutError, OSError) as error:
        WORKER_LOGGER.debug(
            "Connection closed by transport error",
            extra={
                "event": "connection_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
        context.lifecycle.fail(error)
    finally:
        try:
            client_socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass
        client_socket.close()
