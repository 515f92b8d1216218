"""
Unit tests for HTTP response building.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fileserver.http.response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    method_not_allowed,
    parse_http_date,
)
from fileserver.http.status_codes import HTTPStatus


class ClosingChunks:
    """A stream that records whether it was closed."""

    def __init__(self, *chunks: bytes):
        self.chunks = list(chunks)
        self.closed = False

    def __iter__(self):
        return iter(self.chunks)

    def close(self):
        self.closed = True


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        response = HTTPResponse(status=HTTPStatus.OK)
        assert response.status_line == "HTTP/1.1 200 OK"

        response = HTTPResponse(status=HTTPStatus.NOT_FOUND)
        assert response.status_line == "HTTP/1.1 404 Not Found"

        response = HTTPResponse(status=HTTPStatus.PRECONDITION_FAILED, version="HTTP/1.0")
        assert response.status_line == "HTTP/1.0 412 Precondition Failed"

    def test_to_bytes_includes_headers(self):
        """Test that to_bytes includes all headers."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"X-Custom": "value"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Custom: value\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_date_and_server_added(self):
        head = HTTPResponse().head_bytes(server_name="test/0.1")

        assert b"\r\nDate: " in head
        assert b"\r\nServer: test/0.1\r\n" in head

    def test_existing_date_kept(self):
        head = HTTPResponse(headers={"Date": "Sun, 06 Nov 1994 08:49:37 GMT"}).head_bytes()

        assert head.count(b"Date:") == 1
        assert b"Date: Sun, 06 Nov 1994 08:49:37 GMT" in head

    def test_not_modified_has_no_content_length(self):
        head = HTTPResponse(status=HTTPStatus.NOT_MODIFIED).head_bytes()

        assert b"Content-Length" not in head
        assert head.endswith(b"\r\n\r\n")

    def test_stream_uses_declared_length(self):
        response = HTTPResponse(
            headers={"Content-Length": "6"},
            stream=iter([b"abc", b"", b"def"]),
        )

        assert response.content_length == 6
        assert response.head_bytes().count(b"Content-Length") == 1
        assert list(response.iter_body()) == [b"abc", b"def"]

    def test_content_length_falls_back_to_body(self):
        assert HTTPResponse(body=b"12345").content_length == 5

    def test_body_before_stream(self):
        response = HTTPResponse(body=b"head-", stream=[b"tail"])

        assert b"".join(response.iter_body()) == b"head-tail"

    def test_close_closes_stream(self):
        stream = ClosingChunks(b"x")
        response = HTTPResponse(stream=stream)

        response.close()

        assert stream.closed

    def test_close_without_stream(self):
        HTTPResponse().close()
        HTTPResponse(stream=[b"plain list"]).close()


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_builder_chain(self):
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("text/plain")
            .header("ETag", '"abc"')
            .body("hello")
            .build())

        assert response.status == HTTPStatus.OK
        assert response.headers == {"Content-Type": "text/plain", "ETag": '"abc"'}
        assert response.body == b"hello"

    def test_status_from_int(self):
        response = ResponseBuilder().status(404).build()

        assert response.status is HTTPStatus.NOT_FOUND

    def test_stream_sets_length(self):
        response = ResponseBuilder().stream([b"ab", b"c"], 3).build()

        assert response.headers["Content-Length"] == "3"
        assert response.to_bytes().endswith(b"\r\n\r\nabc")

    def test_headers_merge(self):
        response = (ResponseBuilder()
            .headers({"A": "1", "B": "2"})
            .header("B", "3")
            .build())

        assert response.headers == {"A": "1", "B": "3"}


class TestConvenienceFunctions:

    def test_method_not_allowed(self):
        response = method_not_allowed(("GET", "HEAD"))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET, HEAD"


class TestHTTPDates:

    def test_format(self):
        dt = datetime(1994, 11, 6, 8, 49, 37, tzinfo=timezone.utc)

        assert format_http_date(dt) == "Sun, 06 Nov 1994 08:49:37 GMT"

    def test_format_converts_to_utc(self):
        dt = datetime(1994, 11, 6, 10, 49, 37, tzinfo=timezone(timedelta(hours=2)))

        assert format_http_date(dt) == "Sun, 06 Nov 1994 08:49:37 GMT"

    def test_format_drops_microseconds(self):
        dt = datetime(2023, 11, 14, 22, 13, 20, 999_999, tzinfo=timezone.utc)

        assert format_http_date(dt) == "Tue, 14 Nov 2023 22:13:20 GMT"

    @pytest.mark.parametrize("value", [
        "Sun, 06 Nov 1994 08:49:37 GMT",
        "Sunday, 06-Nov-94 08:49:37 GMT",
        "Sun Nov  6 08:49:37 1994",
    ])
    def test_parse_all_formats(self, value):
        assert parse_http_date(value) == datetime(1994, 11, 6, 8, 49, 37, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "yesterday", "Sun, 32 Nov 1994 08:49:37 GMT"])
    def test_parse_invalid(self, value):
        assert parse_http_date(value) is None

    def test_round_trip(self):
        now = datetime.now(timezone.utc).replace(microsecond=0)

        assert parse_http_date(format_http_date(now)) == now


class TestHTTPStatus:

    def test_phrases(self):
        assert HTTPStatus.NOT_MODIFIED.phrase == "Not Modified"
        assert HTTPStatus.SERVICE_UNAVAILABLE.phrase == "Service Unavailable"

    def test_allows_body(self):
        assert HTTPStatus.OK.allows_body
        assert HTTPStatus.NOT_FOUND.allows_body
        assert not HTTPStatus.NOT_MODIFIED.allows_body
        assert not HTTPStatus.NO_CONTENT.allows_body

    def test_is_error(self):
        assert HTTPStatus.BAD_REQUEST.is_error
        assert not HTTPStatus.NOT_MODIFIED.is_error
