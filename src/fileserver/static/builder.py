"""
=============================================================================
STATIC RESPONSE BUILDER
=============================================================================

Turns (entity, outcome, validators) into an HTTPResponse. This is the only
place that decides status codes and entity headers for the file server.

    ┌───────────────────────┬────────┬──────────┬──────────┬───────────────┐
    │ case                  │ status │ ETag /   │ Content- │ body          │
    │                       │        │ Last-Mod │ Length   │               │
    ├───────────────────────┼────────┼──────────┼──────────┼───────────────┤
    │ absent                │ 404    │    -     │ 0        │ empty         │
    │ invalid path          │ 400    │    -     │ 0        │ empty         │
    │ I/O failure           │ 500    │    -     │ 0        │ empty         │
    │ precondition failed   │ 412    │   yes    │ 0        │ empty         │
    │ not modified          │ 304    │   yes    │    -     │ none          │
    │ full, file            │ 200    │   yes    │ size     │ streamed      │
    │ full, directory       │ 200    │   yes    │ len(page)│ listing page  │
    └───────────────────────┴────────┴──────────┴──────────┴───────────────┘

HEAD gets exactly the GET status and headers, including Content-Length,
but never a body. For a file that means stat() instead of open().
"""

import os
from pathlib import Path
from typing import Iterator, Optional

from .conditional import ConditionalOutcome, Disposition
from .config import SiteConfig
from .errors import IOFailure
from .listing import read_listing, render
from .resolver import ResolvedEntity
from .validators import Validators
from ..http.mime_types import HTML_MIME_TYPE, get_mime_type
from ..http.response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
)
from ..http.status_codes import HTTPStatus


class FileBody:
    """
    Lazily read file contents, chunk by chunk.

    The file is opened in the constructor so that a permission or
    disappearance error surfaces before any header is sent. Iterating
    closes the file at the end; close() is idempotent and must be called
    if iteration is abandoned.

    Exactly `size` bytes are yielded, since that is the Content-Length
    already promised. Bytes appended after opening are not sent; a file
    truncated below `size` raises OSError once it runs dry.
    """

    def __init__(self, path: Path, chunk_size: int = 64 * 1024):
        self.path = path
        self.chunk_size = chunk_size
        self._file = open(path, "rb")
        self.size = os.fstat(self._file.fileno()).st_size

    def __iter__(self) -> Iterator[bytes]:
        remaining = self.size
        try:
            while remaining > 0:
                chunk = self._file.read(min(self.chunk_size, remaining))
                if not chunk:
                    raise OSError(
                        f"{self.path} shrank while streaming: "
                        f"{remaining} of {self.size} bytes missing"
                    )
                remaining -= len(chunk)
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    @property
    def closed(self) -> bool:
        return self._file.closed


def validator_headers(validators: Validators) -> dict[str, str]:
    return {
        "ETag": validators.etag,
        "Last-Modified": format_http_date(validators.last_modified),
    }


def build_error(status: HTTPStatus) -> HTTPResponse:
    """
    An empty error response: no body, no validators, Content-Length: 0.

    Nothing about the filesystem reaches the client.
    """
    return (ResponseBuilder()
        .status(status)
        .content_length(0)
        .build())


def build(
    method: str,
    entity: ResolvedEntity,
    outcome: Optional[ConditionalOutcome],
    validators: Optional[Validators],
    site: SiteConfig,
    body: Optional[bytes] = None,
) -> HTTPResponse:
    """
    Assemble the response for a resolved request.

    Args:
        method: "GET" or "HEAD".
        entity: The resolved entity; ABSENT gives a 404.
        outcome: Conditional evaluation result (unused when ABSENT).
        validators: Validators of `entity` (unused when ABSENT).
        site: Site configuration (MIME table, chunk size).
        body: Rendered listing bytes for a directory. Rendered here when
              not supplied.

    Returns:
        The response. For a GET of a file, `response.stream` holds an open
        FileBody that the caller must exhaust or close().

    Raises:
        IOFailure: The file could not be opened or stat'ed.
    """
    if not entity.exists:
        return build_error(HTTPStatus.NOT_FOUND)

    if outcome is None or validators is None:
        raise ValueError("Existing entities need an outcome and validators")

    builder = ResponseBuilder().headers(validator_headers(validators))

    if outcome.disposition is Disposition.PRECONDITION_FAILED:
        return (builder
            .status(HTTPStatus.PRECONDITION_FAILED)
            .content_length(0)
            .build())

    if outcome.disposition is Disposition.NOT_MODIFIED:
        return builder.status(HTTPStatus.NOT_MODIFIED).build()

    is_head = method == "HEAD"
    builder.status(HTTPStatus.OK)

    if entity.is_directory:
        if body is None:
            body, _ = render(read_listing(entity))
        builder.content_type(HTML_MIME_TYPE).content_length(len(body))
        if not is_head:
            builder.body(body)
        return builder.build()

    # Type follows the requested name, not a symlink target's name
    builder.content_type(get_mime_type(entity.request_path, site.mime_types))

    try:
        if is_head:
            builder.content_length(os.stat(entity.path).st_size)
        else:
            stream = FileBody(entity.path, site.chunk_size)
            builder.stream(stream, stream.size)
    except OSError as e:
        raise IOFailure(f"Cannot open {entity.path}: {e}") from e

    return builder.build()
