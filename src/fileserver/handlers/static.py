"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves GET/HEAD requests from the document root, with directory listings
and conditional requests.

=============================================================================
PIPELINE
=============================================================================

One linear pass per request; every step is a plain function call into
fileserver.static:

    request.path
         │
         ▼
    resolve()              InvalidPath ──────────────────────────► 400
         │                 ABSENT ───────────────────────────────► 404
         ▼
    read_listing()         (directories only, read once)
         │
         ▼
    compute_validators()   IOFailure ────────────────────────────► 500
         │
         ▼
    evaluate()             If-Match / If-None-Match / If-Modified-Since
         │
         ▼
    render()               (directories only, and only when FULL)
         │
         ▼
    build()                IOFailure (open failed) ──────────────► 500
         │
         ▼
    HTTPResponse           200 / 304 / 412

The directory listing is read once and shared by the validators and the
rendered page, so the ETag always describes the page actually sent.

=============================================================================
USAGE
=============================================================================

    handler = StaticFileHandler(SiteConfig.for_directory("/srv/www"))
    response = handler.handle(request)

    # or without an HTTPRequest:
    response = handler.serve("GET", "/images/", {"if-none-match": etag})

=============================================================================
"""

import logging
from typing import Mapping, Optional

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, method_not_allowed
from ..http.status_codes import HTTPStatus
from ..static import (
    SiteConfig,
    InvalidPath,
    IOFailure,
    build,
    build_error,
    compute_validators,
    evaluate,
    read_listing,
    render,
    resolve,
)
from ..static.conditional import HeaderValue


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Request handler for the document root.

    Holds nothing but the immutable SiteConfig, so one instance is shared
    by every worker thread.
    """

    ALLOWED_METHODS = ("GET", "HEAD")

    def __init__(self, site: SiteConfig):
        self.site = site

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Handle a parsed request.

        Methods other than GET and HEAD get 405 with an Allow header.
        """
        if request.method not in self.ALLOWED_METHODS:
            return method_not_allowed(self.ALLOWED_METHODS)

        return self.serve(
            request.method,
            request.path,
            request.headers,
            client=request.client_address[0],
        )

    def serve(
        self,
        method: str,
        request_path: str,
        headers: Optional[Mapping[str, HeaderValue]] = None,
        client: str = "-",
    ) -> HTTPResponse:
        """
        Run the pipeline for one GET or HEAD.

        Args:
            method: "GET" or "HEAD".
            request_path: Percent-decoded URL path.
            headers: Request headers; only the conditional ones are read.
            client: Peer address, for log lines.

        Returns:
            The response. A GET of a file carries an open stream that the
            caller must send or close().
        """
        headers = headers or {}

        try:
            entity = resolve(self.site.root, request_path)
            if not entity.exists:
                return build_error(HTTPStatus.NOT_FOUND)

            listing = read_listing(entity) if entity.is_directory else None
            validators = compute_validators(
                entity,
                self.site.etag_policy,
                listing=listing,
                chunk_size=self.site.chunk_size,
            )
            outcome = evaluate(headers, validators)

            body = None
            if listing is not None and outcome.is_full:
                body, _ = render(listing)

            if not outcome.is_full:
                logger.debug(
                    f"{method} {request_path!r}: {outcome.disposition.value} "
                    f"({outcome.decided_by})"
                )

            return build(method, entity, outcome, validators, self.site, body)

        except InvalidPath as e:
            logger.warning(f"Path traversal attempt from {client}: {e.request_path!r}")
            return build_error(e.status_code)

        except IOFailure as e:
            logger.exception(f"I/O failure serving {request_path!r}: {e}")
            return build_error(e.status_code)


def serve_static(root_dir: str, **kwargs) -> StaticFileHandler:
    """
    Build a handler for `root_dir`.

    Keyword arguments go to SiteConfig (etag_policy, chunk_size,
    mime_types).

    Raises:
        ValueError: `root_dir` is not a directory.
    """
    return StaticFileHandler(SiteConfig.for_directory(root_dir, **kwargs))
