"""Exception types shared across the server."""


class ServeLocalError(Exception):
    """Base class for servelocal failures."""


class StartupError(ServeLocalError):
    """Raised when the server cannot be configured for startup."""


class ContentRootNotFound(StartupError):
    """Raised when the configured content root is not an existing directory."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Directory not found: {path}")
        self.path = path


class LifecycleError(ServeLocalError):
    """Raised on an illegal lifecycle state transition."""


class RequestTooLarge(ValueError):
    """Raised when a request's header block or body exceeds its size cap."""
