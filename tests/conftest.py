"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Generator, TypedDict

import pytest

from tests.utils.http import reserve_port, wait_for_port
from tests.utils.process import PROJECT_ROOT, server_command

if TYPE_CHECKING:
    from _pytest.tmpdir import TempPathFactory


class ServerProcessInfo(TypedDict):
    """Metadata describing a running server fixture instance."""

    base_url: str
    host: str
    port: int
    content_root: Path
    working_directory: Path
    process: subprocess.Popen


def _launch_server(
    port: int,
    content_root: Path,
    working_directory: Path,
    extra_args: list[str] | None = None,
) -> Generator[ServerProcessInfo, None, None]:
    host = "127.0.0.1"
    args = server_command("--root", str(content_root), "--port", str(port))
    if extra_args:
        args.extend(extra_args)

    with subprocess.Popen(
        args,
        cwd=working_directory,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    ) as process:
        try:
            wait_for_port(host, port)
        except Exception:
            # If startup failed, print stdout/stderr to help debug
            process.terminate()
            stdout, stderr = process.communicate(timeout=5)
            print(f"\nServer stdout:\n{stdout}")
            print(f"\nServer stderr:\n{stderr}")
            raise

        yield {
            "base_url": f"http://{host}:{port}",
            "host": host,
            "port": port,
            "content_root": content_root,
            "working_directory": working_directory,
            "process": process,
        }

        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                process.kill()


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Expose the repository root path to tests."""

    return PROJECT_ROOT


@pytest.fixture(name="site_root")
def _site_root(tmp_path_factory: "TempPathFactory") -> Path:
    """Create a small static site to serve."""

    root = tmp_path_factory.mktemp("site")
    (root / "index.html").write_text("<h1>Hello</h1>\n")
    (root / "style.css").write_text("body { color: black; }\n")
    (root / "nested").mkdir()
    (root / "nested" / "data.json").write_text('{"ok": true}\n')
    return root


@pytest.fixture(name="server_process")
def _server_process(
    tmp_path_factory: "TempPathFactory", site_root: Path
) -> Generator[ServerProcessInfo, None, None]:
    """Launch the server in a background process for integration tests."""

    working_directory = tmp_path_factory.mktemp("cwd")
    yield from _launch_server(reserve_port(), site_root, working_directory)


@pytest.fixture()
def base_url(server_process: ServerProcessInfo) -> str:
    """Expose the running server base URL to integration tests."""

    return server_process["base_url"]
