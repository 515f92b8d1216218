"""
Unit tests for FileServer request handling, without a listening socket.
"""

import socket

import pytest

from fileserver import FileServer
from fileserver.core import Connection
from fileserver.http.request import HTTPRequest
from fileserver.http.status_codes import HTTPStatus


@pytest.fixture
def server(config):
    return FileServer(config)


@pytest.fixture
def socket_pair():
    ours, theirs = socket.socketpair()
    yield ours, theirs
    ours.close()
    theirs.close()


class TestSend:

    def test_full_body_is_sent(self, server, socket_pair):
        ours, theirs = socket_pair
        conn = Connection(socket=ours, address=("127.0.0.1", 0))
        request = HTTPRequest(method="GET", path="/example.txt")

        response = server.handle_request(request)

        assert server._send(conn, request, response) is True
        assert response.stream.closed
        theirs.settimeout(1.0)
        data = b""
        while not data.endswith(b"hello"):
            chunk = theirs.recv(4096)
            assert chunk
            data += chunk
        assert b"Content-Length: 5\r\n" in data

    def test_short_body_hangs_up(self, server, socket_pair, site_root):
        ours, _ = socket_pair
        conn = Connection(socket=ours, address=("127.0.0.1", 0))
        request = HTTPRequest(method="GET", path="/example.txt")

        response = server.handle_request(request)
        (site_root / "example.txt").write_bytes(b"he")

        assert server._send(conn, request, response) is False
        assert response.stream.closed


class TestHandleRequest:

    def test_handler_exception_is_500(self, server, monkeypatch):
        def broken(request):
            raise RuntimeError("boom")

        monkeypatch.setattr(server, "_handler", broken)

        response = server.handle_request(HTTPRequest(method="GET", path="/"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.headers["Content-Length"] == "0"
