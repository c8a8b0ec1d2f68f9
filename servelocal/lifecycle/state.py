"""Server lifecycle state management."""

import enum
import sys
import threading
from typing import NoReturn, Optional

from servelocal.bootstrap.logging_setup import get_logger
from servelocal.domain.errors import LifecycleError

LIFECYCLE_LOGGER = get_logger("lifecycle")

EXIT_SUCCESS = 0
EXIT_ERROR = 255


class ServerState(enum.Enum):
    """Single-shot process states, entered in declaration order."""

    NOT_STARTED = "not_started"
    CONFIGURED = "configured"
    SERVING = "serving"
    SHUTTING_DOWN = "shutting_down"


_TRANSITIONS = {
    ServerState.NOT_STARTED: {ServerState.CONFIGURED, ServerState.SHUTTING_DOWN},
    ServerState.CONFIGURED: {ServerState.SERVING, ServerState.SHUTTING_DOWN},
    ServerState.SERVING: {ServerState.SHUTTING_DOWN},
    ServerState.SHUTTING_DOWN: set(),
}


class ServerLifecycle:
    """Tracks the process state and the reason the server is stopping."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._state = ServerState.NOT_STARTED
        self._error: Optional[BaseException] = None

    @property
    def state(self) -> ServerState:
        """Return the current lifecycle state."""
        with self._lock:
            return self._state

    @property
    def error(self) -> Optional[BaseException]:
        """Return the failure that stopped the server, if any."""
        with self._lock:
            return self._error

    def _advance(self, target: ServerState) -> None:
        with self._lock:
            if target not in _TRANSITIONS[self._state]:
                raise LifecycleError(
                    f"cannot move from {self._state.value} to {target.value}"
                )
            self._state = target
        LIFECYCLE_LOGGER.debug(
            "Lifecycle state changed",
            extra={"event": "state_changed", "state": target.value},
        )

    def mark_configured(self) -> None:
        """Record that the effective configuration has been resolved."""
        self._advance(ServerState.CONFIGURED)

    def mark_serving(self) -> None:
        """Record that the listener is bound and accepting connections."""
        self._advance(ServerState.SERVING)

    def should_stop(self) -> bool:
        """Check if the server should stop accepting new connections."""
        return self._stop_event.is_set()

    def request_stop(self, signum: Optional[int] = None) -> None:
        """Ask the server to stop; used by the signal handlers."""
        LIFECYCLE_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "shutdown_requested", "signal": signum},
        )
        self._stop_event.set()

    def fail(self, error: BaseException) -> None:
        """Record a fatal runtime failure and ask the server to stop.

        Only the first failure is kept.
        """
        with self._lock:
            if self._error is None:
                self._error = error
        self._stop_event.set()

    def begin_shutdown(self) -> None:
        """Enter the terminal state; repeated calls are ignored."""
        with self._lock:
            if self._state is ServerState.SHUTTING_DOWN:
                return
            self._state = ServerState.SHUTTING_DOWN
        self._stop_event.set()


def shutdown(
    error: Optional[BaseException] = None,
    silent: bool = False,
    lifecycle: Optional[ServerLifecycle] = None,
) -> NoReturn:
    """Print the shutdown notice and exit, with 255 when error is given."""
    if lifecycle is not None:
        lifecycle.begin_shutdown()
    if not silent:
        LIFECYCLE_LOGGER.info(
            "Server shutting down...", extra={"event": "server_stopping"}
        )
    if error is not None:
        if not silent:
            LIFECYCLE_LOGGER.critical(
                f"An error occurred: {error}",
                extra={
                    "event": "fatal_error",
                    "error": str(error),
                    "error_type": type(error).__name__,
                },
            )
        sys.exit(EXIT_ERROR)
    sys.exit(EXIT_SUCCESS)
