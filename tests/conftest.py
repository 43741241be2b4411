"""Pytest configuration and fixtures."""

from email import policy
from email.parser import BytesParser

import pytest

from imageform.config import ClientSettings
from imageform.models import Response

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
WEBP_HEADER = b"RIFF\x24\x00\x00\x00WEBPVP8 "


class TrickleReader:
    """Forward-only source that hands out at most ``step`` bytes per read."""

    def __init__(self, data: bytes, step: int = 7) -> None:
        self._data = data
        self._pos = 0
        self.step = step

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = len(self._data) - self._pos
        n = min(size, self.step)
        chunk = self._data[self._pos : self._pos + n]
        self._pos += n
        return chunk


class BrokenReader:
    """Source that serves ``good`` bytes, then fails."""

    def __init__(self, good: bytes = b"") -> None:
        self._good = good

    def read(self, size: int = -1) -> bytes:
        if self._good:
            chunk, self._good = self._good[:size], self._good[size:]
            return chunk
        raise OSError("device not ready")


class StallingReader:
    """Non-blocking style source: each read returns the next scripted result."""

    def __init__(self, results) -> None:
        self._results = list(results)

    def read(self, size: int = -1):
        return self._results.pop(0) if self._results else b""


class BrokenSink:
    def write(self, data: bytes) -> int:
        raise OSError("no space left on device")


@pytest.fixture
def png_payload():
    """PNG magic followed by enough bytes to span several reads."""
    return PNG_MAGIC + bytes(range(256)) * 5


@pytest.fixture
def webp_payload():
    return WEBP_HEADER + b"\x00" * 64


@pytest.fixture
def trickle_reader():
    return TrickleReader


@pytest.fixture
def broken_reader():
    return BrokenReader


@pytest.fixture
def stalling_reader():
    return StallingReader


@pytest.fixture
def broken_sink():
    return BrokenSink()


@pytest.fixture
def parse_form():
    """Parse a multipart body with the standard library email parser."""

    def parse(content_type: str, body: bytes):
        message = BytesParser(policy=policy.HTTP).parsebytes(
            f"Content-Type: {content_type}\r\n\r\n".encode("ascii") + body
        )
        assert message.is_multipart()
        return list(message.iter_parts())

    return parse


@pytest.fixture
def settings():
    return ClientSettings(api_key="sk-test", base_url="https://api.example.com/v1", _env_file=None)


@pytest.fixture
def image_response():
    """A successful images API response."""
    return Response(
        status_code=200,
        reason="OK",
        http_version="1.1",
        headers=[("Content-Type", "application/json")],
        body=b'{"created": 1700000000, "data": [{"url": "https://img.example/1.png"}]}',
    )
