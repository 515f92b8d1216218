"""
=============================================================================
MIDDLEWARE
=============================================================================

Wrappers around the request handler for cross-cutting concerns.

    base.py      Middleware ABC, MiddlewarePipeline
    logging.py   LoggingMiddleware (access log + X-Request-ID)

    pipeline = MiddlewarePipeline()
    pipeline.add(LoggingMiddleware(log_format="json"))
    handler = pipeline.wrap(StaticFileHandler(site).handle)

=============================================================================
"""

from .base import (
    Middleware,
    MiddlewarePipeline,
)
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "LoggingMiddleware",
    "RequestLog",
]
