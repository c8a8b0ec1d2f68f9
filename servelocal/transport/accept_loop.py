"""Main connection acceptance loop."""

import socket
import threading

from servelocal.bootstrap.config import EffectiveConfiguration
from servelocal.bootstrap.logging_setup import get_logger
from servelocal.bootstrap.socket_factory import create_server_socket
from servelocal.lifecycle.state import ServerLifecycle
from servelocal.transport.worker import WorkerContext, handle_client

ACCEPT_LOGGER = get_logger("transport.accept")


def run_server(config: EffectiveConfiguration, lifecycle: ServerLifecycle) -> None:
    """Bind the listener and hand each connection to a worker thread.

    Returns once the lifecycle is asked to stop. Bind failures propagate.
    """
    server_socket = create_server_socket(config.listen_port)
    lifecycle.mark_serving()
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "port": config.listen_port,
            "content_root": config.content_root,
        },
    )
    context = WorkerContext(config=config, lifecycle=lifecycle)

    try:
        while not lifecycle.should_stop():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            thread = threading.Thread(
                target=handle_client,
                args=(client_socket, client_address, context),
                daemon=True,
            )
            thread.start()
    finally:
        server_socket.close()
        ACCEPT_LOGGER.debug("Listener closed", extra={"event": "server_stopped"})
