"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes of one HTTP/1.x request into an HTTPRequest.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /images/logo%20v2.png?x=1 HTTP/1.1\r\n   ← request line        │
    │  Host: localhost:8080\r\n                      ← headers            │
    │  If-None-Match: W/"1a-17f3c2"\r\n                                    │
    │  \r\n                                          ← end of headers     │
    └─────────────────────────────────────────────────────────────────────┘
                                   │
                                   ▼
        HTTPRequest(method="GET",
                    path="/images/logo v2.png",     ← percent-decoded
                    headers={"host": ..., "if-none-match": ...},
                    query_params={"x": ["1"]})

=============================================================================
WHAT THE PARSER DOES NOT DO
=============================================================================

The parser does not judge the path. "/../../etc/passwd" parses fine and
reaches the static handler, whose resolver decides it escapes the document
root and answers 400. Keeping the containment rule in exactly one place
(fileserver.static.resolver) means there is one implementation to test.

Header names are lower-cased at parse time (RFC 7230: field names are
case-insensitive) and repeated headers are folded into one comma-joined
value, which is exactly the shape the If-Match / If-None-Match lists need.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict
from urllib.parse import parse_qs, urlparse, unquote
import re


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the status code the transport should answer with:
    400 for malformed syntax, 413 for oversized requests, 505 for
    unknown HTTP versions.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:         Upper-case method ("GET", "HEAD", ...).
        path:           Percent-decoded path without the query string.
        version:        "HTTP/1.1" or "HTTP/1.0"; decides keep-alive default.
        headers:        Lower-cased header name → value.
        query_params:   Parsed query string (ignored by the file server,
                        kept for logging).
        body:           Request body bytes (normally empty for GET/HEAD).
        client_address: (ip, port) of the peer.
        raw:            The unparsed request bytes.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""
    client_address: tuple[str, int] = ("", 0)
    raw: bytes = field(default=b"", repr=False)

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def is_head(self) -> bool:
        return self.method == "HEAD"

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the connection should stay open after this response.

        HTTP/1.1 keeps alive unless "Connection: close"; HTTP/1.0 closes
        unless "Connection: keep-alive".
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    Steps:
        1. Reject requests above max_request_size (413).
        2. Split at the first blank line (\\r\\n\\r\\n).
        3. Parse "METHOD SP TARGET SP VERSION".
        4. Parse "Name: value" header lines, folding continuations
           and repeated names.
        5. Cut the body to Content-Length.

    Any method token is accepted here; whether the server supports it is
    the server's decision (it answers 405 for anything but GET/HEAD).
    """

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse one complete request.

        Args:
            data: Raw request bytes, as returned by Connection.read_request().
            client_address: Peer (ip, port) for logging.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: Malformed, oversized or unsupported request.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        # Header bytes are ISO-8859-1 per RFC 7230; decoding that way
        # never fails and round-trips every byte.
        header_section = data[:header_end].decode("iso-8859-1")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if content_length < 0 or len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body[:content_length],
            client_address=client_address,
            raw=data,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, Dict[str, list[str]], str]:
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = match.groups()

        if version not in self.SUPPORTED_VERSIONS:
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        # urlparse() would read "//etc/passwd" as a netloc, so split by hand
        target, _, _fragment = target.partition("#")
        raw_path, _, query = target.partition("?")
        if not raw_path.startswith("/"):
            # absolute-form: "http://host/path"
            raw_path = urlparse(raw_path).path

        # UTF-8 by default; undecodable bytes survive as surrogates and
        # still name the right file on disk
        path = unquote(raw_path, errors="surrogateescape") or "/"
        query_params = parse_qs(query, keep_blank_values=True)

        return method, path, query_params, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        current_name: Optional[str] = None

        for line in lines:
            if not line:
                continue

            # obs-fold: continuation of the previous header
            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers
