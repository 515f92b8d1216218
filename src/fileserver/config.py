"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All settings for one server process, in one dataclass.

    ServerConfig()                       defaults, serves the current dir
    ServerConfig(root_dir="/srv/www")    explicit
    ServerConfig.from_env()              FILESERVER_* environment variables

validate() is called by FileServer before anything binds, so a bad port or
a missing document root fails at startup and not on the first request.

The static core never sees this class: FileServer derives an immutable
SiteConfig from it (site_config()).
"""

import os
from dataclasses import dataclass
from typing import Optional

from .static.config import EtagPolicy, SiteConfig


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK      host, port, backlog, buffer_size, timeout
    HTTP         keep_alive, keep_alive_timeout, max_request_size
    THREADING    min_workers, max_workers, queue_size
    SITE         root_dir, etag_policy, chunk_size
    LOGGING      log_level, log_format
    IDENTITY     server_name

    =========================================================================
    """

    # NETWORK

    host: str = "127.0.0.1"
    """Address to bind. "0.0.0.0" listens on every interface."""

    port: int = 8080
    """Port to listen on. 0 lets the OS pick a free one (tests)."""

    backlog: int = 128
    """Pending connections the OS queues before refusing new ones."""

    buffer_size: int = 8192
    """Bytes per recv() call."""

    timeout: Optional[float] = 30.0
    """Socket timeout for the first request on a connection."""

    # HTTP

    keep_alive: bool = True
    """Allow several requests per connection."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    max_request_size: int = 1024 * 1024
    """Largest accepted request (headers + body); larger gets 413."""

    # THREADING

    min_workers: int = 4
    max_workers: int = 16

    queue_size: int = 100
    """Accepted connections waiting for a worker; beyond this, 503."""

    # SITE

    root_dir: str = "."
    """Document root. Everything served lies inside it."""

    etag_policy: str = EtagPolicy.STAT.value
    """
    "stat"    weak tag from size and mtime (default, never reads content)
    "content" strong tag from an MD5 of the file bytes
    """

    chunk_size: int = 64 * 1024
    """Bytes per read when streaming a file body."""

    # LOGGING

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: "text" or "json"."""

    server_name: str = "fileserver/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        FILESERVER_HOST         bind address         (default 127.0.0.1)
        FILESERVER_PORT         port                 (default 8080)
        FILESERVER_WORKERS      max worker threads   (default 16)
        FILESERVER_TIMEOUT      socket timeout, s    (default 30)
        FILESERVER_ROOT         document root        (default: DOCUMENT_ROOT,
                                                      then ".")
        FILESERVER_ETAG_POLICY  "stat" or "content"  (default stat)
        FILESERVER_LOG_LEVEL    logging level        (default INFO)

        =====================================================================
        """
        max_workers = int(os.getenv("FILESERVER_WORKERS", "16"))
        return cls(
            host=os.getenv("FILESERVER_HOST", "127.0.0.1"),
            port=int(os.getenv("FILESERVER_PORT", "8080")),
            min_workers=min(4, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv("FILESERVER_TIMEOUT", "30")),
            root_dir=os.getenv("FILESERVER_ROOT", os.getenv("DOCUMENT_ROOT", ".")),
            etag_policy=os.getenv("FILESERVER_ETAG_POLICY", EtagPolicy.STAT.value),
            log_level=os.getenv("FILESERVER_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Check every value; raise ValueError on the first bad one.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level!r}")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', not {self.log_format!r}")

        try:
            EtagPolicy(self.etag_policy)
        except ValueError:
            choices = ", ".join(p.value for p in EtagPolicy)
            raise ValueError(
                f"Unknown ETag policy: {self.etag_policy!r} (choose from {choices})"
            ) from None

        if not os.path.isdir(self.root_dir):
            raise ValueError(f"Document root is not a directory: {self.root_dir}")

        if not os.access(self.root_dir, os.R_OK | os.X_OK):
            raise ValueError(f"Document root is not readable: {self.root_dir}")

    def site_config(self) -> SiteConfig:
        """The immutable view of the site settings handed to the core."""
        return SiteConfig.for_directory(
            self.root_dir,
            etag_policy=self.etag_policy,
            chunk_size=self.chunk_size,
        )
