"""
pytest configuration and fixtures.
"""

import os
import socket
import threading
from datetime import datetime, timezone
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig, create_server
from fileserver.handlers import StaticFileHandler
from fileserver.static import SiteConfig


# 2023-11-14 22:13:20 UTC, a Tuesday
FIXED_MTIME = 1_700_000_000
FIXED_DATETIME = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
FIXED_HTTP_DATE = "Tue, 14 Nov 2023 22:13:20 GMT"

# Smallest valid PNG signature + IHDR start; content does not matter
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"

EXAMPLE_HTML = b"<!DOCTYPE html>\n<html><body><p>example</p></body></html>\n"


def set_mtime(path: Path, seconds: int = FIXED_MTIME) -> None:
    os.utime(path, ns=(seconds * 1_000_000_000, seconds * 1_000_000_000))


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """
    Document root:

        www/
        ├── empty/
        ├── example.html
        ├── example.txt      "hello", mtime FIXED_MTIME
        └── images/
            └── logo.png
    """
    root = tmp_path / "www"
    root.mkdir()

    (root / "example.txt").write_bytes(b"hello")
    set_mtime(root / "example.txt")

    (root / "example.html").write_bytes(EXAMPLE_HTML)

    (root / "images").mkdir()
    (root / "images" / "logo.png").write_bytes(PNG_BYTES)

    (root / "empty").mkdir()

    return root


@pytest.fixture
def outside_dir(tmp_path: Path) -> Path:
    """A directory next to the document root, holding a secret."""
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_bytes(b"top secret")
    return outside


@pytest.fixture
def site(site_root: Path) -> SiteConfig:
    return SiteConfig.for_directory(site_root)


@pytest.fixture
def handler(site: SiteConfig) -> StaticFileHandler:
    return StaticFileHandler(site)


@pytest.fixture
def config(site_root: Path) -> ServerConfig:
    """Test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        root_dir=str(site_root),
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class ServerThread:
    """Runs a FileServer on a background thread."""

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def live_server(config: ServerConfig) -> Generator[ServerThread, None, None]:
    """A running server with access logging, serving `site_root`."""
    server_thread = ServerThread(create_server(config))
    server_thread.start()

    yield server_thread

    server_thread.stop()
