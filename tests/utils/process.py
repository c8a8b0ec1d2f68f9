"""Helpers for launching the server entry point in a subprocess."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SERVER_ENTRYPOINT = PROJECT_ROOT / "main.py"


def server_command(*extra_args: str) -> list[str]:
    """Return the argv that launches the server entry point."""

    return [sys.executable, str(SERVER_ENTRYPOINT), *extra_args]
