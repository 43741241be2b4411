from __future__ import annotations

import socket
import ssl
from collections.abc import Iterable
from typing import BinaryIO

from loguru import logger

from .compression import decode_body
from .errors import ConnectionError, ProtocolError, TLSNegotiationError
from .models import Response

DEFAULT_CHUNK_SIZE = 64 * 1024


class Connection:
    """
    Single TCP/TLS connection speaking HTTP/1.1.

    Request bodies may be bytes or a readable stream; streams are sent in
    chunks so a spooled form never has to be loaded whole.
    """

    def __init__(
        self,
        host: str,
        port: int,
        scheme: str,
        timeout: float = 10.0,
        verify: bool = True,
        auto_decompress: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.scheme = scheme
        self.timeout = timeout
        self.verify = verify
        self.auto_decompress = auto_decompress
        self.sock: socket.socket | ssl.SSLSocket | None = None
        self.closed = True

    def connect(self) -> None:
        raw = self._open_tcp()

        if self.scheme == "https":
            context = ssl.create_default_context()
            if not self.verify:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            context.set_alpn_protocols(["http/1.1"])
            try:
                self.sock = context.wrap_socket(raw, server_hostname=self.host)
            except ssl.SSLError as exc:
                raw.close()
                raise TLSNegotiationError(f"TLS handshake failed: {exc}") from exc
        else:
            self.sock = raw

        self.sock.settimeout(self.timeout)
        self.closed = False

    def request(
        self,
        method: str,
        path: str,
        headers: Iterable[tuple[str, str]],
        body: bytes | BinaryIO | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Response:
        if self.closed or self.sock is None:
            self.connect()
        assert self.sock is not None

        head = self._build_head(method, path, headers)
        try:
            if isinstance(body, (bytes, bytearray)):
                self.sock.sendall(head + bytes(body))
            else:
                self.sock.sendall(head)
                if body is not None:
                    self._send_stream(body, chunk_size)
        except OSError as exc:
            self.close()
            raise ConnectionError(f"Send failed: {exc}") from exc

        response = self._read_response()
        logger.debug("{} {} -> {}", method, path, response.status_code)
        if response.headers.get("connection", "").lower() == "close":
            self.close()
        return response

    def _send_stream(self, body: BinaryIO, chunk_size: int) -> None:
        assert self.sock is not None
        while True:
            chunk = body.read(chunk_size)
            if not chunk:
                break
            self.sock.sendall(chunk)

    def _build_head(self, method: str, path: str, headers: Iterable[tuple[str, str]]) -> bytes:
        lines = [f"{method} {path} HTTP/1.1\r\n".encode("ascii")]
        for name, value in headers:
            lines.append(f"{name}: {value}\r\n".encode("latin-1"))
        lines.append(b"\r\n")
        return b"".join(lines)

    def _readline(self) -> bytes:
        assert self.sock is not None
        buf = bytearray()
        while True:
            ch = self.sock.recv(1)
            if not ch:
                break
            buf.extend(ch)
            if buf.endswith(b"\r\n"):
                break
        return bytes(buf)

    def _read_exact(self, n: int) -> bytes:
        assert self.sock is not None
        remaining = n
        chunks: list[bytes] = []
        while remaining > 0:
            chunk = self.sock.recv(remaining)
            if not chunk:
                raise ProtocolError("Unexpected EOF while reading body")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _read_response(self) -> Response:
        status_line = self._readline()
        if not status_line:
            raise ProtocolError("Empty response")
        try:
            # e.g., HTTP/1.1 200 OK
            parts = status_line.decode("latin-1").strip().split(" ", 2)
            version = parts[0].split("/", 1)[1]
            status_code = int(parts[1])
            reason = parts[2] if len(parts) > 2 else ""
        except (IndexError, ValueError) as exc:
            raise ProtocolError(f"Malformed status line: {status_line!r}") from exc

        headers: list[tuple[str, str]] = []
        while True:
            line = self._readline()
            if line in (b"\r\n", b"\n", b""):
                break
            try:
                name, value = line.split(b":", 1)
            except ValueError as exc:
                raise ProtocolError(f"Malformed header line: {line!r}") from exc
            headers.append((name.decode("latin-1").strip(), value.decode("latin-1").strip()))

        header_map = {k.lower(): v for k, v in headers}
        transfer_encoding = header_map.get("transfer-encoding", "").lower()
        if "chunked" in transfer_encoding:
            body = self._read_chunked_body()
        elif "content-length" in header_map:
            try:
                length = int(header_map["content-length"])
            except ValueError as exc:
                raise ProtocolError("Invalid Content-Length") from exc
            body = self._read_exact(length)
        else:
            body = self._read_until_close()

        if self.auto_decompress:
            body = decode_body(body, header_map.get("content-encoding", ""))
        return Response(status_code, reason, version, headers, body)

    def _read_until_close(self) -> bytes:
        assert self.sock is not None
        chunks: list[bytes] = []
        while True:
            try:
                data = self.sock.recv(4096)
            except TimeoutError:
                break
            if not data:
                break
            chunks.append(data)
        return b"".join(chunks)

    def _read_chunked_body(self) -> bytes:
        chunks: list[bytes] = []
        while True:
            line = self._readline()
            if not line:
                break
            try:
                size = int(line.split(b";", 1)[0].strip(), 16)
            except ValueError as exc:
                raise ProtocolError(f"Invalid chunk size line: {line!r}") from exc
            if size == 0:
                # Trailing CRLF after the last chunk.
                self._readline()
                break
            chunks.append(self._read_exact(size))
            _ = self._read_exact(2)
        return b"".join(chunks)

    def close(self) -> None:
        if self.sock:
            try:
                self.sock.close()
            finally:
                self.sock = None
        self.closed = True

    def _open_tcp(self) -> socket.socket:
        try:
            return socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as exc:
            raise ConnectionError(f"TCP connection failed: {exc}") from exc

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
