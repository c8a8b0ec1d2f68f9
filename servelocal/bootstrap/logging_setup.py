"""Logging configuration utilities for the static server."""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, MutableMapping, Optional

LOGGER_NAME = "servelocal"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5
SILENT_LEVEL = logging.CRITICAL + 1

EXTRA_KEYS = (
    "client",
    "path",
    "config_path",
    "content_root",
    "default_file",
    "port",
    "status_code",
    "method",
    "error",
    "error_type",
    "signal",
    "state",
    "destination",
    "log_level",
)


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that tags records with the emitting component."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        """Add the component name to the extra dict."""
        kwargs["extra"] = dict(kwargs.get("extra") or {})
        logger_name = self.logger.name
        prefix = f"{LOGGER_NAME}."
        if logger_name.startswith(prefix):
            component = logger_name[len(prefix) :]
        else:
            component = logger_name
        kwargs["extra"]["component"] = component
        return msg, kwargs


def get_logger(name: str) -> ComponentLoggerAdapter:
    """Return a component-tagged logger below the project logger."""
    return ComponentLoggerAdapter(logging.getLogger(f"{LOGGER_NAME}.{name}"), {})


class JsonFormatter(logging.Formatter):
    """JSON formatter with stable key ordering for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "component": getattr(record, "component", "unknown"),
            "message": record.getMessage(),
        }
        if hasattr(record, "event"):
            log_data["event"] = record.event
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, sort_keys=True, default=str)


def _resolve_level(level_name: str) -> int:
    """Translate text level names into logging module numeric levels."""
    level = getattr(logging, level_name.upper(), None)
    if isinstance(level, int):
        return level
    return logging.INFO


def _build_handler(
    destination: Optional[str], level: int, use_json: bool
) -> logging.Handler:
    """Create a console or rotating file handler for the project logger."""
    target = (destination or "stderr").lower()
    if target == "stderr":
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
    elif target == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    else:
        target_path = Path(destination)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            target_path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT
        )
    handler.setLevel(level)
    if use_json:
        handler.setFormatter(JsonFormatter(datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def configure_logging(
    level: str = "INFO",
    destination: Optional[str] = None,
    use_json: bool = False,
    silent: bool = False,
) -> ComponentLoggerAdapter:
    """Configure and return the project logger with the requested handler."""
    logger = logging.getLogger(LOGGER_NAME)
    numeric_level = _resolve_level(level)
    logger.setLevel(SILENT_LEVEL if silent else numeric_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    logger.addHandler(_build_handler(destination, numeric_level, use_json))
    adapter = ComponentLoggerAdapter(logger, {})
    adapter.debug(
        "Logging configured",
        extra={
            "event": "logging_configured",
            "destination": destination or "stderr",
            "log_level": logging.getLevelName(numeric_level),
        },
    )
    return adapter


def silence_logging() -> None:
    """Suppress every record emitted through the project logger."""
    logging.getLogger(LOGGER_NAME).setLevel(SILENT_LEVEL)
