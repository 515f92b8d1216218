"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One line per request on the "fileserver.access" logger.

TEXT (default), close to the Apache common log format:

    127.0.0.1 - - [16/Oct/2025:10:15:32 +0000] "GET /example.txt" 200 5 0.41ms

JSON, for log shippers:

    {"request_id": "3f9a1c2e", "method": "GET", "path": "/example.txt",
     "status_code": 200, "content_length": 5, "duration_ms": 0.41, ...}

The content length is the declared Content-Length. For a streamed file
that is the file size, even though the bytes have not been sent yet when
the line is written; for HEAD it is the size a GET would have sent.

Every response also gets an X-Request-ID header matching the log line.
"""

import time
import json
import uuid
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("fileserver.access")


@dataclass
class RequestLog:
    """
    One access log entry.

    Attributes:
        request_id:     Short random id, echoed as X-Request-ID.
        method:         Request method.
        path:           Decoded request path.
        query:          Raw query parameters, "" when none.
        client_ip:      Peer address.
        user_agent:     User-Agent header or "-".
        status_code:    Response status.
        content_length: Declared response length in bytes.
        duration_ms:    Time spent in the handler chain.
        timestamp:      Local time, Apache format.
    """

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Put it first in the pipeline so the timing covers everything else and
    rejected requests are logged too.

        pipeline.add(LoggingMiddleware())                   # text
        pipeline.add(LoggingMiddleware(log_format="json"))  # JSON
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        """
        Args:
            log_format: "text" or "json".
            include_request_id: Add X-Request-ID to responses.
            log_level: Level the access lines are logged at.
            skip_paths: Request paths that are not logged (e.g. "/favicon.ico").
        """
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format!r}")

        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        if request.path in self.skip_paths:
            return response

        log_entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            query=str(request.query_params) if request.query_params else "",
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=response.content_length,
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(self.log_level, log_entry.to_text())

        return response
