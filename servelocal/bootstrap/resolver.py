"""Merge command-line flags, persisted settings and defaults."""

import argparse
import os
import sys
from typing import Optional, TextIO

from servelocal.bootstrap.config import (
    APP_NAME,
    EffectiveConfiguration,
    parse_cli_args,
)
from servelocal.bootstrap.logging_setup import get_logger
from servelocal.domain.errors import ContentRootNotFound
from servelocal.domain.settings import (
    CONFIG_FILENAME,
    load_configuration,
    save_configuration,
)

RESOLVER_LOGGER = get_logger("resolver")


def config_path_for(working_directory: str) -> str:
    """Return the settings file location for a working directory."""
    return os.path.join(working_directory, CONFIG_FILENAME)


def format_banner(config: EffectiveConfiguration) -> str:
    """Return the startup banner echoing the effective configuration."""
    lines = [
        APP_NAME,
        "Serve static web content on the local host.",
        "Press Ctrl-C at any time to shutdown and exit.",
        "",
        "Configuration:",
        f"  Content Root: {config.content_root}",
        f"  Default File: {config.default_file}",
        f"  Listening On: {config.listen_url}",
        "",
    ]
    return "\n".join(lines)


def resolve_arguments(
    args: argparse.Namespace,
    extra_args: Optional[list[str]] = None,
    working_directory: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> EffectiveConfiguration:
    """Fold parsed flags over the persisted settings into one configuration.

    Flags given on the command line win over servelocal.json, which wins
    over the built-in defaults. The settings file is written back when it
    did not exist yet or when --save-config was passed.

    Raises ContentRootNotFound when the merged content root is not an
    existing directory; nothing is saved or printed in that case.
    """
    cwd = working_directory or os.getcwd()
    config_path = config_path_for(cwd)
    cli_silent = bool(args.silent)

    persisted = load_configuration(
        config_path, silent=cli_silent, working_directory=cwd
    )
    save_requested = bool(args.save_config) or not os.path.isfile(config_path)

    content_root = args.root if args.root is not None else persisted.content_root
    default_file = args.file if args.file is not None else persisted.default_file
    listen_port = args.port if args.port is not None else persisted.listen_port
    silent = True if args.silent else persisted.silent

    content_root = os.path.abspath(os.path.join(cwd, content_root))
    if not os.path.isdir(content_root):
        raise ContentRootNotFound(content_root)

    config = EffectiveConfiguration(
        content_root=content_root,
        default_file=default_file,
        listen_port=listen_port,
        silent=silent,
        extra_args=tuple(extra_args or ()),
    )

    if save_requested:
        save_configuration(config.to_configuration(), config_path, silent=silent)

    RESOLVER_LOGGER.debug(
        "Configuration resolved",
        extra={
            "event": "config_resolved",
            "content_root": config.content_root,
            "default_file": config.default_file,
            "port": config.listen_port,
            "config_path": config_path,
        },
    )

    if not silent:
        print(format_banner(config), file=stream or sys.stdout, flush=True)
    return config


def resolve(
    argv: Optional[list[str]] = None,
    working_directory: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> EffectiveConfiguration:
    """Parse argv and return the effective configuration for this process."""
    args, extra_args = parse_cli_args(argv)
    return resolve_arguments(args, extra_args, working_directory, stream)
