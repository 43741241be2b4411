"""
Forward-only stream helpers.

Nothing here seeks: a source is read once, start to finish.
"""

from __future__ import annotations

import io
from typing import BinaryIO

from .errors import ReadError


def as_stream(content: bytes | bytearray | memoryview | BinaryIO) -> BinaryIO:
    """Wrap in-memory bytes in a buffer; pass streams through untouched."""
    if isinstance(content, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(content))
    if not hasattr(content, "read"):
        raise TypeError(f"Expected bytes or a readable stream, got {type(content).__name__}")
    return content


def stream_name(content: object) -> str:
    """Return the ``name`` a stream carries, or an empty string."""
    name = getattr(content, "name", None)
    # Files opened from a descriptor report an int here.
    return name if isinstance(name, str) else ""


class PrefixReader(io.RawIOBase):
    """
    Yields ``prefix`` first, then whatever is left in ``source``.

    Used to hand back a stream whose first bytes were already consumed for
    inspection, without requiring the source to support ``seek``.
    """

    def __init__(self, prefix: bytes, source: BinaryIO) -> None:
        super().__init__()
        self._prefix = prefix
        self._offset = 0
        self._source = source
        name = stream_name(source)
        if name:
            self.name = name

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int | None:
        view = memoryview(buffer).cast("B")
        if self._offset < len(self._prefix):
            n = min(len(view), len(self._prefix) - self._offset)
            view[:n] = self._prefix[self._offset : self._offset + n]
            self._offset += n
            return n
        data = self._source.read(len(view))
        if data is None:
            raise ReadError("Source returned None; non-blocking streams are not supported")
        n = len(data)
        view[:n] = data
        return n


class NamedReader:
    """
    Attach a file name to an arbitrary byte stream.

    The encoder uses the name as the part's filename when none is given.

    Example:
        encoder.add_file("image", NamedReader(response_body, "cat.png"))
    """

    def __init__(self, stream: bytes | BinaryIO, name: str) -> None:
        self._stream = as_stream(stream)
        self.name = name

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def __repr__(self) -> str:
        return f"<NamedReader {self.name!r}>"
