"""Persisted application settings and their built-in defaults."""

import json
import os
from dataclasses import dataclass
from typing import Any, Optional

from servelocal.bootstrap.logging_setup import get_logger

SETTINGS_LOGGER = get_logger("settings")

CONFIG_FILENAME = "servelocal.json"
DEFAULT_FILE = "index.html"
DEFAULT_PORT = 80
DEFAULT_SILENT = False
MIN_PORT = 1
MAX_PORT = 65535


@dataclass(frozen=True)
class Configuration:
    """Settings stored in servelocal.json between runs."""

    content_root: str
    default_file: str = DEFAULT_FILE
    listen_port: int = DEFAULT_PORT
    silent: bool = DEFAULT_SILENT

    def to_dict(self) -> dict[str, Any]:
        """Return the on-disk mapping using the file's key names."""
        return {
            "contentRoot": self.content_root,
            "defaultFile": self.default_file,
            "listenPort": self.listen_port,
            "silent": self.silent,
        }

    @classmethod
    def from_dict(
        cls, data: Any, defaults: "Configuration"
    ) -> "Configuration":
        """Build a configuration from a parsed file, defaulting missing keys.

        Unknown keys are ignored. A recognised key holding a value of the
        wrong type raises ValueError.
        """
        if not isinstance(data, dict):
            raise ValueError("configuration must be a JSON object")
        content_root = data.get("contentRoot", defaults.content_root)
        default_file = data.get("defaultFile", defaults.default_file)
        listen_port = data.get("listenPort", defaults.listen_port)
        silent = data.get("silent", defaults.silent)

        if not isinstance(content_root, str):
            raise ValueError("contentRoot must be a string")
        if not isinstance(default_file, str):
            raise ValueError("defaultFile must be a string")
        # bool is an int subclass
        if isinstance(listen_port, bool) or not isinstance(listen_port, int):
            raise ValueError("listenPort must be an integer")
        if not MIN_PORT <= listen_port <= MAX_PORT:
            raise ValueError(f"listenPort out of range: {listen_port}")
        if not isinstance(silent, bool):
            raise ValueError("silent must be a boolean")
        return cls(content_root, default_file, listen_port, silent)


def default_configuration(working_directory: Optional[str] = None) -> Configuration:
    """Return the built-in defaults, rooted at the working directory."""
    return Configuration(
        content_root=working_directory if working_directory else os.getcwd(),
        default_file=DEFAULT_FILE,
        listen_port=DEFAULT_PORT,
        silent=DEFAULT_SILENT,
    )


def load_configuration(
    path: str, silent: bool = False, working_directory: Optional[str] = None
) -> Configuration:
    """Load settings from path, falling back to the defaults on any failure."""
    defaults = default_configuration(working_directory)
    try:
        with open(path, "r", encoding="utf-8") as file_handle:
            data = json.load(file_handle)
        return Configuration.from_dict(data, defaults)
    except (OSError, ValueError) as error:
        if not silent:
            SETTINGS_LOGGER.warning(
                "Could not load application configuration; "
                "the default application configuration will be used",
                extra={
                    "event": "config_load_failed",
                    "config_path": path,
                    "error": str(error),
                    "error_type": type(error).__name__,
                },
            )
        return defaults


def save_configuration(
    config: Configuration, path: str, silent: bool = False
) -> bool:
    """Write settings to path as tab-indented JSON. Returns False on failure."""
    data = json.dumps(config.to_dict(), indent="\t")
    try:
        with open(path, "w", encoding="utf-8") as file_handle:
            file_handle.write(data + "\n")
    except OSError as error:
        if not silent:
            SETTINGS_LOGGER.warning(
                "Could not save application configuration",
                extra={
                    "event": "config_save_failed",
                    "config_path": path,
                    "error": str(error),
                    "error_type": type(error).__name__,
                },
            )
        return False
    SETTINGS_LOGGER.debug(
        "Configuration saved",
        extra={"event": "config_saved", "config_path": path},
    )
    return True
