"""
=============================================================================
HTTP MODULE
=============================================================================

Protocol-level building blocks shared by the transport and the static core:

    request.py       raw bytes ──► HTTPRequest
    response.py      HTTPResponse / ResponseBuilder ──► raw bytes,
                     HTTP-date formatting and parsing
    status_codes.py  HTTPStatus enum with reason phrases
    mime_types.py    static extension ──► media type table

Nothing in here touches the filesystem or sockets.
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    method_not_allowed,
    format_http_date,
    parse_http_date,
)
from .status_codes import HTTPStatus
from .mime_types import MIME_TYPES, DEFAULT_MIME_TYPE, get_mime_type

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "HTTPResponse",
    "ResponseBuilder",
    "method_not_allowed",
    "format_http_date",
    "parse_http_date",
    "HTTPStatus",
    "MIME_TYPES",
    "DEFAULT_MIME_TYPE",
    "get_mime_type",
]
