"""
=============================================================================
HTTP RESPONSE
=============================================================================

The response description handed from the handler to the transport, plus
a fluent builder and the HTTP-date helpers.

=============================================================================
RESPONSE SHAPE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 200 OK\r\n                       ← status line             │
    │  Content-Type: text/plain\r\n              ┐                         │
    │  Content-Length: 5\r\n                     │ set by the static       │
    │  ETag: W/"5-17f3c2a9e1b04c00"\r\n          │ core                    │
    │  Last-Modified: Tue, 14 Oct 2025 ...\r\n   ┘                         │
    │  Date: Thu, 16 Oct 2025 ...\r\n            ┐ added at                │
    │  Server: fileserver/1.0\r\n                ┘ serialization           │
    │  \r\n                                                                │
    │  hello                                     ← body / stream           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
BODY VS STREAM
=============================================================================

A response carries its payload one of two ways:

    body    bytes held in memory (directory listings, error responses)
    stream  an iterable of byte chunks produced lazily (file contents)

The transport sends head_bytes() first and then every chunk of
iter_body(), so a large file never has to sit in memory at once. When a
stream is used, the producer must also set Content-Length, because the
serializer cannot count bytes it has not read yet.

304 (and 1xx/204) responses never get an automatic Content-Length: they
have no body by definition (RFC 7230 section 3.3.2).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Dict, Iterable, Iterator, Union

from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "fileserver/1.0"


@dataclass
class HTTPResponse:
    """
    A response ready to be serialized.

    Attributes:
        status:  Status code.
        headers: Header name → value, names in canonical case.
        body:    In-memory body.
        stream:  Optional lazily produced body chunks, sent after `body`.
        version: Protocol version for the status line.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    stream: Optional[Iterable[bytes]] = field(default=None, repr=False)
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def content_length(self) -> int:
        """Declared Content-Length, falling back to the in-memory body size."""
        try:
            return int(self.headers["Content-Length"])
        except (KeyError, ValueError):
            return len(self.body)

    def iter_body(self) -> Iterator[bytes]:
        """Yield every body chunk: the in-memory body, then the stream."""
        if self.body:
            yield self.body
        if self.stream is not None:
            for chunk in self.stream:
                if chunk:
                    yield chunk

    def close(self) -> None:
        """Release the stream's resources (an open file, usually)."""
        close = getattr(self.stream, "close", None)
        if close is not None:
            close()

    def head_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the status line and headers, including the blank line.

        Date and Server are added when absent. Content-Length is added
        from the in-memory body only when the status allows a body and
        no stream is attached.
        """
        headers = dict(self.headers)

        if (
            self.status.allows_body
            and self.stream is None
            and "Content-Length" not in headers
        ):
            headers["Content-Length"] = str(len(self.body))

        headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        headers.setdefault("Server", server_name)

        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        lines.append("")
        lines.append("")
        # Latin-1 keeps non-ASCII bytes intact, as RFC 7230 expects
        return "\r\n".join(lines).encode("iso-8859-1")

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the whole response in one piece.

        Consumes the stream; meant for small responses and tests. The
        transport uses head_bytes() + iter_body() instead.
        """
        return self.head_bytes(server_name) + b"".join(self.iter_body())


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("text/plain")
            .header("ETag", etag)
            .body(b"hello")
            .build())

    Every method except build() returns self.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._stream: Optional[Iterable[bytes]] = None

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def content_length(self, length: int) -> "ResponseBuilder":
        return self.header("Content-Length", str(length))

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def stream(self, chunks: Iterable[bytes], length: int) -> "ResponseBuilder":
        """
        Attach a lazily produced body of a known size.

        Args:
            chunks: Iterable of byte chunks (may expose close()).
            length: Total number of bytes the chunks add up to.
        """
        self._stream = chunks
        return self.content_length(length)

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
            stream=self._stream,
        )


# =============================================================================
# HTTP-DATE
# =============================================================================
#
# IMF-fixdate, the only format a server may generate (RFC 7231 7.1.1.1):
#
#     Sun, 06 Nov 1994 08:49:37 GMT
#
# Parsing must additionally accept the obsolete RFC 850 and asctime()
# forms; email.utils understands all three.
#
# =============================================================================

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an IMF-fixdate.

    Aware datetimes are converted to UTC first; naive ones are assumed to
    be UTC already. Sub-second precision is dropped.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year:04d} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an HTTP-date into an aware UTC datetime.

    Returns None for a missing or unparseable value, so callers can treat
    a malformed date exactly like an absent header.

        >>> parse_http_date("Sun, 06 Nov 1994 08:49:37 GMT")
        datetime.datetime(1994, 11, 6, 8, 49, 37, tzinfo=datetime.timezone.utc)
        >>> parse_http_date("yesterday") is None
        True
    """
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


# =============================================================================
# CONVENIENCE CONSTRUCTORS
# =============================================================================

def method_not_allowed(allowed: Iterable[str]) -> HTTPResponse:
    """405 with the Allow header RFC 7231 requires."""
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed))
        .build())
