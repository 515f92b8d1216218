"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

Middleware wraps the request handler to add behaviour around every
request without touching the handler itself:

    request ──► LoggingMiddleware ──► ... ──► StaticFileHandler.handle
    response ◄──────────────────────────────────────────┘

Each middleware receives the request and a `next` callable. It may look
at the request, call next(request), and adjust the response on the way
back out. It may also answer on its own without calling next.

The file server's core pipeline (resolve, validate, evaluate, build) is a
plain sequence of calls inside the handler; middleware only sits outside
it, for cross-cutting concerns such as access logging.
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

        class ServerTiming(Middleware):
            def __call__(self, request, next):
                start = time.perf_counter()
                response = next(request)
                response.headers["Server-Timing"] = f"app;dur={...}"
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming request.
            next: The rest of the chain; call it to continue.

        Returns:
            The response from next() (possibly modified) or a short-circuit.
        """
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered list of middleware around a final handler.

    The first middleware added is the outermost one: it sees the request
    first and the response last.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        handler = pipeline.wrap(static_handler.handle)
        response = handler(request)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append a middleware; returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around `handler`.

        Given [A, B] the result calls A, which calls B, which calls handler.
        Wrapping happens in reverse so that A ends up outermost.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler
    ) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)

        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
