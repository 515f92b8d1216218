"""
=============================================================================
FILE SERVER
=============================================================================

Puts the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │  SocketServer ──► ThreadPool ──► _process_connection (per worker)   │
    │                                        │                             │
    │                                        ▼                             │
    │                       Connection.read_request()                      │
    │                                        │                             │
    │                                        ▼                             │
    │                       RequestParser.parse()     ── error ──► 400/413/505
    │                                        │                             │
    │                                        ▼                             │
    │                       MiddlewarePipeline (LoggingMiddleware, ...)    │
    │                                        │                             │
    │                                        ▼                             │
    │                       StaticFileHandler.handle() ── 200/304/400/     │
    │                                        │             404/405/412/500 │
    │                                        ▼                             │
    │                       head_bytes() + streamed body                   │
    │                                        │                             │
    │                                        ▼                             │
    │                       keep-alive? ── yes ──► read next request       │
    │                                   └─ no ───► close                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
USAGE
=============================================================================

    server = FileServer(ServerConfig(root_dir="/srv/www", port=8000))
    server.use(LoggingMiddleware())
    server.run()                       # blocks until Ctrl+C / SIGTERM

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, ThreadPool
from .handlers import StaticFileHandler
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus,
)
from .middleware import MiddlewarePipeline, Middleware, LoggingMiddleware
from .static import build_error


logger = logging.getLogger(__name__)


class FileServer:
    """
    Multi-threaded HTTP/1.1 static file server.

    Features:
        - GET/HEAD for files and generated directory listings
        - ETag / Last-Modified validation with If-Match, If-None-Match
          and If-Modified-Since
        - streamed file bodies
        - keep-alive connections
        - bounded thread pool, 503 when saturated
        - graceful shutdown on SIGINT/SIGTERM
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration; defaults serve the current
                    directory on 127.0.0.1:8080.

        Raises:
            ValueError: Invalid configuration (bad port, missing root, ...).
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self.site = self.config.site_config()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._static = StaticFileHandler(self.site)
        self._middleware = MiddlewarePipeline()

        self._handler = self._middleware.wrap(self._static.handle)
        self._running = False

    def use(self, middleware: Middleware) -> "FileServer":
        """Add middleware around the static handler; first added runs outermost."""
        self._middleware.add(middleware)
        self._handler = self._middleware.wrap(self._static.handle)
        return self

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port) once listening."""
        return self._socket_server.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is up; False on timeout."""
        return self._socket_server.ready.wait(timeout)

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start serving; blocks until shutdown.

        Args:
            host: Override config host.
            port: Override config port (0 picks a free port).
        """
        if host is not None:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()

        self._running = True
        self._thread_pool.start()

        logger.info(f"Serving files from {self.site.root}")
        logger.info(
            f"ETag policy: {self.site.etag_policy.value}, "
            f"workers: {self.config.min_workers}-{self.config.max_workers}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Stop accepting; run() returns once in-flight work is done."""
        self._socket_server.shutdown()

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one parsed request through middleware and handler.

        Unexpected exceptions become an empty 500. Does not touch sockets.
        """
        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.path!r}: {e}")
            return build_error(HTTPStatus.INTERNAL_SERVER_ERROR)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("fileserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    def _handle_connection(self, conn: Connection):
        """Hand a new connection to the pool, or answer 503 if it is full."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            block=False,
        )

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE)
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Keep-alive loop for one connection (runs on a worker thread).

        read ──► parse ──► handle ──► send ──► (keep-alive? read again : close)
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except HTTPParseError as e:
                    self._send_error(conn, e.status_code)
                    break
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT)
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.debug(f"[{conn.id}] Bad request: {e}")
                    self._send_error(conn, e.status_code)
                    break

                conn.state = ConnectionState.PROCESSING
                response = self.handle_request(request)

                keep_alive = request.is_keep_alive and self.config.keep_alive
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive",
                        f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not self._send(conn, request, response):
                    break

                if not keep_alive:
                    break

                conn.set_keep_alive()

    def _send(self, conn: Connection, request: HTTPRequest, response: HTTPResponse) -> bool:
        """
        Write a response; the body is streamed when it has one.

        Always closes the response (and so any open file).
        """
        try:
            head = response.head_bytes(self.config.server_name)
            if request.is_head:
                return conn.send_response(head)
            return conn.send_stream(head, response.iter_body())
        except OSError as e:
            # Head may already be on the wire, so just hang up
            logger.error(f"[{conn.id}] Failed while streaming {request.path!r}: {e}")
            return False
        finally:
            response.close()

    def _send_error(self, conn: Connection, status: HTTPStatus):
        """Empty error response for failures before a request was parsed."""
        response = build_error(HTTPStatus(status))
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))


def create_server(config: Optional[ServerConfig] = None) -> FileServer:
    """Factory for a FileServer with access logging installed."""
    config = config or ServerConfig()
    server = FileServer(config)
    server.use(LoggingMiddleware(log_format=config.log_format))
    return server
