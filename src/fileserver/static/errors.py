"""
Exceptions raised by the static core.

    StaticFileError
    ├── InvalidPath   400  request path climbs above the document root
    └── IOFailure     500  filesystem read failed after resolution

"Not found" and "precondition failed" are ordinary outcomes
(EntityKind.ABSENT, Disposition.PRECONDITION_FAILED), not exceptions.
"""

from ..http.status_codes import HTTPStatus


class StaticFileError(Exception):
    """Base class; `status_code` is what the client receives."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class InvalidPath(StaticFileError):
    """The normalized request path would lie outside the document root."""

    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, request_path: str):
        super().__init__(f"Path escapes document root: {request_path!r}")
        self.request_path = request_path


class IOFailure(StaticFileError):
    """
    Reading metadata or content failed unexpectedly.

    Wraps the original OSError (available as __cause__). The message is
    for logs only and never reaches the response body.
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
