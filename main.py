"""servelocal: serve static web content from a directory on the local host."""

import signal
import sys
from typing import Optional

from servelocal.bootstrap.config import parse_cli_args
from servelocal.bootstrap.logging_setup import (
    configure_logging,
    get_logger,
    silence_logging,
)
from servelocal.bootstrap.resolver import resolve_arguments
from servelocal.domain.errors import StartupError
from servelocal.lifecycle.state import ServerLifecycle, shutdown
from servelocal.transport.accept_loop import run_server

SERVER_LOGGER = get_logger("server")


def main(argv: Optional[list[str]] = None) -> None:
    """Resolve the configuration, serve until signalled, then exit."""
    args, extra_args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(
        args.log_level,
        args.log_destination,
        use_json=args.log_format == "json",
        silent=bool(args.silent),
    )
    lifecycle = ServerLifecycle()

    try:
        config = resolve_arguments(args, extra_args)
    except StartupError as error:
        shutdown(error, silent=bool(args.silent), lifecycle=lifecycle)
    lifecycle.mark_configured()
    if config.silent:
        silence_logging()
    if config.extra_args:
        SERVER_LOGGER.debug(
            "Ignoring unrecognised arguments",
            extra={"event": "unknown_arguments", "error": " ".join(config.extra_args)},
        )

    def shutdown_handler(signum: int, _frame) -> None:
        lifecycle.request_stop(signum)

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    try:
        run_server(config, lifecycle)
    except Exception as error:  # pylint: disable=broad-except
        shutdown(error, silent=config.silent, lifecycle=lifecycle)
    shutdown(lifecycle.error, silent=config.silent, lifecycle=lifecycle)


if __name__ == "__main__":
    main()
