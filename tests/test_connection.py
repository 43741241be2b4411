"""Tests for imageform.connection module."""

import gzip
import io
import ssl
from unittest.mock import MagicMock, patch

import pytest

from imageform.connection import Connection
from imageform.errors import ConnectionError, ProtocolError, TLSNegotiationError


class FakeSocket:
    """Socket double that replays a canned response and records writes."""

    def __init__(self, response: bytes = b"") -> None:
        self._incoming = io.BytesIO(response)
        self.sent = bytearray()
        self.sendall_calls = 0
        self.closed = False

    def recv(self, n: int) -> bytes:
        return self._incoming.read(n)

    def sendall(self, data: bytes) -> None:
        self.sendall_calls += 1
        self.sent.extend(data)

    def settimeout(self, timeout: float) -> None:
        self.timeout = timeout

    def close(self) -> None:
        self.closed = True


def _connection(sock: FakeSocket, **kwargs) -> Connection:
    conn = Connection("api.example.com", 80, "http", **kwargs)
    conn.sock = sock
    conn.closed = False
    return conn


OK_JSON = b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\nContent-Length: 2\r\n\r\n{}"


class TestConnectionInit:
    """Tests for Connection initialization."""

    def test_init_sets_attributes(self):
        """Test Connection stores its settings and starts closed."""
        conn = Connection("example.com", 443, "https", timeout=30.0, verify=False)
        assert conn.host == "example.com"
        assert conn.port == 443
        assert conn.timeout == 30.0
        assert conn.verify is False
        assert conn.sock is None
        assert conn.closed is True


class TestConnectionConnect:
    """Tests for Connection.connect."""

    @patch("imageform.connection.socket.create_connection")
    def test_connect_http(self, mock_create_conn):
        """Test HTTP connection (no TLS)."""
        sock = FakeSocket()
        mock_create_conn.return_value = sock
        conn = Connection("example.com", 80, "http")
        conn.connect()
        mock_create_conn.assert_called_once_with(("example.com", 80), timeout=10.0)
        assert conn.sock is sock
        assert sock.timeout == 10.0
        assert conn.closed is False

    @patch("imageform.connection.ssl.create_default_context")
    @patch("imageform.connection.socket.create_connection")
    def test_connect_https_verify_false(self, mock_create_conn, mock_ssl_ctx):
        """Test verify=False disables certificate checks."""
        mock_ctx = MagicMock()
        mock_ssl_ctx.return_value = mock_ctx
        conn = Connection("example.com", 443, "https", verify=False)
        conn.connect()
        assert mock_ctx.check_hostname is False
        assert mock_ctx.verify_mode == ssl.CERT_NONE
        mock_ctx.wrap_socket.assert_called_once()
        assert conn.sock is mock_ctx.wrap_socket.return_value

    @patch("imageform.connection.ssl.create_default_context")
    @patch("imageform.connection.socket.create_connection")
    def test_tls_failure(self, mock_create_conn, mock_ssl_ctx):
        """Test handshake errors become TLSNegotiationError."""
        raw = FakeSocket()
        mock_create_conn.return_value = raw
        mock_ssl_ctx.return_value.wrap_socket.side_effect = ssl.SSLError("handshake")
        conn = Connection("example.com", 443, "https")
        with pytest.raises(TLSNegotiationError):
            conn.connect()
        assert raw.closed is True

    @patch("imageform.connection.socket.create_connection")
    def test_tcp_failure(self, mock_create_conn):
        """Test socket errors become ConnectionError."""
        mock_create_conn.side_effect = OSError("refused")
        with pytest.raises(ConnectionError, match="TCP connection failed"):
            Connection("example.com", 80, "http").connect()


class TestConnectionRequest:
    """Tests for Connection.request."""

    def test_bytes_body(self):
        """Test head and bytes body are written together."""
        sock = FakeSocket(OK_JSON)
        conn = _connection(sock)
        response = conn.request("POST", "/v1/images/generations", [("Host", "api.example.com")], b"{}")
        assert bytes(sock.sent) == (
            b"POST /v1/images/generations HTTP/1.1\r\nHost: api.example.com\r\n\r\n{}"
        )
        assert response.status_code == 200
        assert response.content == b"{}"

    def test_stream_body_sent_in_chunks(self):
        """Test stream bodies are sent chunk by chunk after the head."""
        sock = FakeSocket(OK_JSON)
        conn = _connection(sock)
        body = b"x" * 10
        conn.request("POST", "/", [], io.BytesIO(body), chunk_size=4)
        assert bytes(sock.sent).endswith(b"\r\n\r\n" + body)
        # head + 3 chunks
        assert sock.sendall_calls == 4

    def test_no_body(self):
        """Test a request without body sends only the head."""
        sock = FakeSocket(OK_JSON)
        _connection(sock).request("GET", "/", [])
        assert bytes(sock.sent) == b"GET / HTTP/1.1\r\n\r\n"

    def test_send_failure(self):
        """Test send errors close the connection and raise ConnectionError."""
        sock = FakeSocket()
        sock.sendall = MagicMock(side_effect=OSError("broken pipe"))
        conn = _connection(sock)
        with pytest.raises(ConnectionError, match="Send failed"):
            conn.request("POST", "/", [], b"x")
        assert conn.closed is True

    def test_chunked_response(self):
        """Test chunked transfer encoding is reassembled."""
        raw = (
            b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
            b"5\r\nhello\r\n6;ext=1\r\n world\r\n0\r\n\r\n"
        )
        response = _connection(FakeSocket(raw)).request("GET", "/", [])
        assert response.content == b"hello world"

    def test_gzip_response_decoded(self):
        """Test compressed bodies are decoded when enabled."""
        compressed = gzip.compress(b'{"ok": true}')
        raw = (
            b"HTTP/1.1 200 OK\r\nContent-Encoding: gzip\r\n"
            + f"Content-Length: {len(compressed)}\r\n\r\n".encode()
            + compressed
        )
        response = _connection(FakeSocket(raw)).request("GET", "/", [])
        assert response.content == b'{"ok": true}'

    def test_gzip_response_kept_when_disabled(self):
        """Test compressed bodies are left alone when decompression is off."""
        compressed = gzip.compress(b"data")
        raw = (
            b"HTTP/1.1 200 OK\r\nContent-Encoding: gzip\r\n"
            + f"Content-Length: {len(compressed)}\r\n\r\n".encode()
            + compressed
        )
        response = _connection(FakeSocket(raw), auto_decompress=False).request("GET", "/", [])
        assert response.content == compressed

    def test_read_until_close(self):
        """Test bodies without length are read to EOF."""
        raw = b"HTTP/1.1 500 Internal Server Error\r\nConnection: close\r\n\r\nboom"
        sock = FakeSocket(raw)
        conn = _connection(sock)
        response = conn.request("GET", "/", [])
        assert response.status_code == 500
        assert response.reason == "Internal Server Error"
        assert response.content == b"boom"
        assert conn.closed is True

    def test_empty_response(self):
        """Test an empty reply is a protocol error."""
        with pytest.raises(ProtocolError, match="Empty response"):
            _connection(FakeSocket(b"")).request("GET", "/", [])

    def test_malformed_status_line(self):
        """Test garbage status lines are rejected."""
        with pytest.raises(ProtocolError, match="Malformed status line"):
            _connection(FakeSocket(b"garbage\r\n\r\n")).request("GET", "/", [])

    def test_truncated_body(self):
        """Test a short body is a protocol error."""
        raw = b"HTTP/1.1 200 OK\r\nContent-Length: 10\r\n\r\nshort"
        with pytest.raises(ProtocolError, match="Unexpected EOF"):
            _connection(FakeSocket(raw)).request("GET", "/", [])

    def test_context_manager_closes(self):
        """Test leaving the with block closes the socket."""
        sock = FakeSocket()
        with _connection(sock) as conn:
            pass
        assert sock.closed is True
        assert conn.sock is None
