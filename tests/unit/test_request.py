"""
Unit tests for HTTP request parsing.
"""

import pytest

from fileserver.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
)


SIMPLE_GET = (
    b"GET /images/logo.png?size=small&x= HTTP/1.1\r\n"
    b"Host: localhost:8080\r\n"
    b"User-Agent: pytest\r\n"
    b"Accept: image/*\r\n"
    b"\r\n"
)


def parse(data: bytes, **kwargs) -> HTTPRequest:
    return RequestParser(**kwargs).parse(data)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(SIMPLE_GET, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/images/logo.png"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.raw == SIMPLE_GET

    def test_parse_headers(self):
        """Test that headers are parsed correctly."""
        request = parse(SIMPLE_GET)

        assert request.host == "localhost:8080"
        assert request.user_agent == "pytest"
        assert request.headers["accept"] == "image/*"
        assert request.get_header("ACCEPT") == "image/*"
        assert request.get_header("missing", "none") == "none"

    def test_parse_query_params(self):
        request = parse(SIMPLE_GET)

        assert request.query_params == {"size": ["small"], "x": [""]}

    def test_head_request(self):
        request = parse(b"HEAD / HTTP/1.1\r\nHost: test\r\n\r\n")

        assert request.is_head
        assert request.path == "/"

    def test_percent_decoding(self):
        """Paths are decoded as UTF-8."""
        raw = b"GET /docs/caf%C3%A9%20menu.txt HTTP/1.1\r\nHost: test\r\n\r\n"

        assert parse(raw).path == "/docs/café menu.txt"

    def test_encoded_query_separator_stays_in_path(self):
        raw = b"GET /what%3F.txt?real=1 HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse(raw)

        assert request.path == "/what?.txt"
        assert request.query_params == {"real": ["1"]}

    def test_fragment_is_dropped(self):
        raw = b"GET /page.html#top HTTP/1.1\r\nHost: test\r\n\r\n"

        assert parse(raw).path == "/page.html"

    def test_double_slash_path_is_not_a_host(self):
        raw = b"GET //etc/passwd HTTP/1.1\r\nHost: test\r\n\r\n"

        assert parse(raw).path == "//etc/passwd"

    def test_dot_segments_are_passed_through(self):
        """Containment is the resolver's job, not the parser's."""
        raw = b"GET /../../etc/passwd HTTP/1.1\r\nHost: test\r\n\r\n"

        assert parse(raw).path == "/../../etc/passwd"

    def test_absolute_form_target(self):
        raw = b"GET http://example.com/a/b.txt?q=1 HTTP/1.1\r\nHost: x\r\n\r\n"

        assert parse(raw).path == "/a/b.txt"

    def test_any_method_token_is_parsed(self):
        """405 is decided by the handler, so the parser accepts any token."""
        raw = b"DELETE /example.txt HTTP/1.1\r\nHost: test\r\n\r\n"

        assert parse(raw).method == "DELETE"

    def test_parse_invalid_request_line(self):
        """Test handling of malformed request line."""
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse(raw)

        assert exc_info.value.status_code == 400

    def test_lowercase_method_is_invalid(self):
        with pytest.raises(HTTPParseError):
            parse(b"get / HTTP/1.1\r\n\r\n")

    def test_unsupported_version(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET / HTTP/2.0\r\nHost: test\r\n\r\n")

        assert exc_info.value.status_code == 505

    def test_missing_header_terminator(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET / HTTP/1.1\r\nHost: test\r\n")

        assert exc_info.value.status_code == 400

    def test_request_too_large(self):
        raw = b"GET / HTTP/1.1\r\nX-Pad: " + b"a" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse(raw, max_request_size=100)

        assert exc_info.value.status_code == 413

    def test_invalid_content_length(self):
        raw = b"GET / HTTP/1.1\r\nContent-Length: lots\r\n\r\n"

        with pytest.raises(HTTPParseError):
            parse(raw)

    def test_short_body(self):
        raw = b"POST /x HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc"

        with pytest.raises(HTTPParseError):
            parse(raw)

    def test_body_cut_to_content_length(self):
        raw = b"POST /x HTTP/1.1\r\nContent-Length: 3\r\n\r\nabcdef"

        assert parse(raw).body == b"abc"


class TestHeaderParsing:

    def test_repeated_headers_are_joined(self):
        raw = (
            b"GET / HTTP/1.1\r\n"
            b"If-None-Match: \"a\"\r\n"
            b"if-none-match: W/\"b\"\r\n"
            b"\r\n"
        )

        assert parse(raw).headers["if-none-match"] == '"a", W/"b"'

    def test_folded_header(self):
        raw = (
            b"GET / HTTP/1.1\r\n"
            b"If-Match: \"a\",\r\n"
            b"   \"b\"\r\n"
            b"\r\n"
        )

        assert parse(raw).headers["if-match"] == '"a", "b"'

    def test_line_without_colon_is_skipped(self):
        raw = b"GET / HTTP/1.1\r\nnonsense\r\nHost: test\r\n\r\n"

        assert parse(raw).headers == {"host": "test"}

    def test_latin1_header_value(self):
        raw = b"GET / HTTP/1.1\r\nX-Name: caf\xe9\r\n\r\n"

        assert parse(raw).headers["x-name"] == "café"


class TestHTTPRequest:
    """Tests for HTTPRequest class."""

    @pytest.mark.parametrize("version, connection, expected", [
        ("HTTP/1.1", "", True),
        ("HTTP/1.1", "close", False),
        ("HTTP/1.1", "Close", False),
        ("HTTP/1.0", "", False),
        ("HTTP/1.0", "keep-alive", True),
        ("HTTP/1.0", "Keep-Alive", True),
    ])
    def test_keep_alive(self, version, connection, expected):
        headers = {"connection": connection} if connection else {}
        request = HTTPRequest(method="GET", path="/", version=version, headers=headers)

        assert request.is_keep_alive is expected

    def test_defaults(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.host == ""
        assert request.user_agent == ""
        assert request.body == b""
        assert not request.is_head
