"""
Streaming multipart/form-data encoder.

Parts are written to the sink as they are added, in call order; file
content is copied chunk by chunk and never held in memory as a whole.

Example:
    encoder = MultipartEncoder()
    encoder.add_field("prompt", "a cat")
    encoder.add_file("image", open("cat.png", "rb"))
    encoder.finalize()
    body, content_type = encoder.getvalue(), encoder.content_type_header()
"""

from __future__ import annotations

import io
import re
import uuid
from collections.abc import Mapping
from typing import BinaryIO, Union

from loguru import logger

from .errors import EncodeError, ReadError
from .headers import content_disposition, strip_ctl
from .readers import as_stream, stream_name
from .sniff import default_filename, sniff

DEFAULT_CHUNK_SIZE = 64 * 1024

# RFC 2046 section 5.1.1
_BOUNDARY_RE = re.compile(r"[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]")

FileContent = Union[bytes, BinaryIO]
FileSpec = Union[FileContent, tuple[str, FileContent, Union[str, None]]]


def validate_boundary(boundary: str) -> str:
    if not _BOUNDARY_RE.fullmatch(boundary):
        raise ValueError(f"Invalid multipart boundary: {boundary!r}")
    return boundary


def base_name(filename: str) -> str:
    """Strip any directory-like components: ``"a/b/c.png"`` -> ``"c.png"``."""
    return filename.rstrip("/").rsplit("/", 1)[-1]


def _read_chunk(stream: BinaryIO, size: int) -> bytes:
    try:
        data = stream.read(size)
    except ReadError:
        raise
    except Exception as exc:
        raise ReadError(f"Failed to read file content: {exc}", exc) from exc
    # None is "no data yet" on non-blocking sources, not end of stream.
    if data is None:
        raise ReadError("Source returned None; non-blocking streams are not supported")
    if not isinstance(data, (bytes, bytearray)):
        raise ReadError(f"Expected bytes from read(), got {type(data).__name__}")
    return bytes(data)


class MultipartEncoder:
    """
    Writes a multipart/form-data body to ``sink`` one part at a time.

    Args:
        sink: Any object with ``write(bytes)``. An in-memory buffer is used
            when omitted; read it back with :meth:`getvalue`.
        boundary: Boundary token. A random one is generated when omitted.
        chunk_size: Read size used when copying file content.
    """

    def __init__(
        self,
        sink: BinaryIO | None = None,
        boundary: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._owns_sink = sink is None
        self.sink = io.BytesIO() if sink is None else sink
        self.boundary = uuid.uuid4().hex if boundary is None else validate_boundary(boundary)
        self.chunk_size = chunk_size
        self.bytes_written = 0
        self.finalized = False
        self.part_count = 0

    def content_type_header(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def add_field(self, name: str, value: object) -> None:
        """Append a plain text part."""
        self._check_writable(name)
        self._write_part_header([("Content-Disposition", content_disposition(name))])
        self._write(str(value).encode("utf-8"))
        self._write(b"\r\n")
        self.part_count += 1

    def add_file(
        self,
        name: str,
        content: FileContent,
        filename: str = "",
        mime_type: str | None = None,
    ) -> None:
        """
        Append a file part.

        When ``mime_type`` is None the content is sniffed; any other value,
        including an empty string, is used as-is. When ``filename`` is empty
        it falls back to the stream's ``name`` and then to a default derived
        from the content type.

        Raises:
            EncodeError: The form is finalized, the content could not be
                read, or the sink rejected a write.
        """
        self._check_writable(name)
        stream = as_stream(content)
        filename = filename or stream_name(stream)

        if mime_type is None:
            try:
                mime_type, stream = sniff(stream)
            except ReadError as exc:
                raise EncodeError(f"Failed to detect MIME type for {name!r}: {exc}") from exc

        filename = base_name(filename) or default_filename(mime_type)
        headers = [("Content-Disposition", content_disposition(name, filename))]
        if mime_type:
            headers.append(("Content-Type", strip_ctl(mime_type)))
        self._write_part_header(headers)

        copied = 0
        while True:
            try:
                chunk = _read_chunk(stream, self.chunk_size)
            except ReadError as exc:
                raise EncodeError(f"Failed to copy {name!r} into form: {exc}") from exc
            if not chunk:
                break
            self._write(chunk)
            copied += len(chunk)
        self._write(b"\r\n")
        self.part_count += 1
        logger.debug("Encoded file part {!r} ({}, {}, {} bytes)", name, filename, mime_type, copied)

    def finalize(self) -> None:
        """Write the closing boundary. No parts may be added afterwards."""
        if self.finalized:
            raise EncodeError("Form already finalized")
        self._write(f"--{self.boundary}--\r\n".encode("ascii"))
        self.finalized = True

    def getvalue(self) -> bytes:
        """Return the encoded body when the encoder owns its buffer."""
        if not self._owns_sink:
            raise EncodeError("Body was written to a caller-provided sink")
        return self.sink.getvalue()  # type: ignore[union-attr]

    def _check_writable(self, name: str) -> None:
        if self.finalized:
            raise EncodeError("Cannot add parts to a finalized form")
        if not name:
            raise EncodeError("Part name must not be empty")

    def _write_part_header(self, headers: list[tuple[str, str]]) -> None:
        lines = [f"--{self.boundary}\r\n"]
        lines.extend(f"{key}: {value}\r\n" for key, value in headers)
        lines.append("\r\n")
        self._write("".join(lines).encode("utf-8"))

    def _write(self, data: bytes) -> None:
        try:
            self.sink.write(data)
        except Exception as exc:
            raise EncodeError(f"Failed to write form data: {exc}") from exc
        self.bytes_written += len(data)


def build_multipart(
    data: Mapping[str, object] | None,
    files: Mapping[str, FileSpec],
    boundary: str | None = None,
) -> tuple[str, bytes]:
    """
    Build a whole multipart/form-data body in memory.

    Fields come first, then files, each in mapping order. ``files`` values
    can be bytes, a readable stream, or ``(filename, content, content_type)``
    where a None content type is sniffed.
    """
    encoder = MultipartEncoder(boundary=boundary)
    if data:
        for name, value in data.items():
            encoder.add_field(name, value)
    for name, spec in files.items():
        if isinstance(spec, tuple):
            filename, content, content_type = spec
            encoder.add_file(name, content, filename, content_type)
        else:
            encoder.add_file(name, spec)
    encoder.finalize()
    return encoder.content_type_header(), encoder.getvalue()
