"""Effective configuration and CLI argument parsing."""

import argparse
from dataclasses import dataclass, field
from typing import Optional

from servelocal.domain.settings import MAX_PORT, MIN_PORT, Configuration

APP_NAME = "servelocal"
APP_VERSION = "1.0.0"
KEEP_ALIVE_TIMEOUT = 5
ACCEPT_POLL_SECONDS = 0.5
HEADER_DELIMITER = b"\r\n\r\n"
MAX_HEADER_BYTES = 64 * 1024
MAX_BODY_BYTES = 1024 * 1024


@dataclass(frozen=True)
class EffectiveConfiguration:
    """Merged settings the server runs with, fixed for the process lifetime."""

    content_root: str
    default_file: str
    listen_port: int
    silent: bool
    extra_args: tuple[str, ...] = field(default_factory=tuple)

    @property
    def listen_url(self) -> str:
        """Return the local URL the server answers on."""
        return f"http://localhost:{self.listen_port}"

    def to_configuration(self) -> Configuration:
        """Return the persisted subset of these settings."""
        return Configuration(
            content_root=self.content_root,
            default_file=self.default_file,
            listen_port=self.listen_port,
            silent=self.silent,
        )


def port_number(value: str) -> int:
    """argparse type accepting a TCP port between 1 and 65535."""
    try:
        port = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid port number: {value!r}") from exc
    if not MIN_PORT <= port <= MAX_PORT:
        raise argparse.ArgumentTypeError(
            f"port must be between {MIN_PORT} and {MAX_PORT}: {port}"
        )
    return port


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the servelocal command line."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Serve static web content on the local host.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"{APP_NAME} {APP_VERSION}",
    )
    parser.add_argument(
        "-r",
        "--root",
        metavar="PATH",
        default=None,
        help="Specify the root path of the static content.",
    )
    parser.add_argument(
        "-f",
        "--file",
        metavar="FILENAME",
        default=None,
        help="Specify the filename of the default file.",
    )
    parser.add_argument(
        "-p",
        "--port",
        metavar="NUMBER",
        type=port_number,
        default=None,
        help="Specify the port number on which to listen.",
    )
    parser.add_argument(
        "-s",
        "--silent",
        action="store_true",
        default=None,
        help="Run in silent mode (no console output).",
    )
    parser.add_argument(
        "-S",
        "--save-config",
        action="store_true",
        default=False,
        help="Save the current application configuration.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default="stderr",
        help="stderr, stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default="text",
        choices=["text", "json"],
        type=str.lower,
    )
    return parser


def parse_cli_args(
    argv: Optional[list[str]],
) -> tuple[argparse.Namespace, list[str]]:
    """Return parsed CLI arguments and any arguments left unrecognised."""
    return build_parser().parse_known_args(argv)
