"""
Content-type sniffing over forward-only streams.

The classifier follows the WHATWG MIME sniffing signatures for the formats
an image API is likely to see. The stream handed back by :func:`sniff` is the
only one safe to keep reading from: the prefix has already been consumed from
the caller's stream.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import BinaryIO, NamedTuple

from loguru import logger

from .errors import ReadError
from .readers import PrefixReader, as_stream

SNIFF_LEN = 512
OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain; charset=utf-8"

_WHITESPACE = b"\t\n\x0c\r "
_TAG_TERMINATORS = b" >"
_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)

DEFAULT_FILENAMES = {
    "image/png": "image.png",
    "image/jpeg": "image.jpg",
    "image/jpg": "image.jpg",
    "image/gif": "image.gif",
    "image/webp": "image.webp",
    "image/bmp": "image.bmp",
    "image/tiff": "image.tiff",
}
DEFAULT_FILENAME = "file.bin"


class SniffResult(NamedTuple):
    content_type: str
    stream: PrefixReader


def _skip_ws(data: bytes) -> bytes:
    return data.lstrip(_WHITESPACE)


def _html(tag: bytes) -> Callable[[bytes], bool]:
    def match(data: bytes) -> bool:
        data = _skip_ws(data)
        if len(data) < len(tag) + 1:
            return False
        return data[: len(tag)].upper() == tag and data[len(tag)] in _TAG_TERMINATORS

    return match


def _exact(sig: bytes) -> Callable[[bytes], bool]:
    return lambda data: data.startswith(sig)


def _masked(mask: bytes, pattern: bytes, skip_ws: bool = False) -> Callable[[bytes], bool]:
    def match(data: bytes) -> bool:
        if skip_ws:
            data = _skip_ws(data)
        if len(data) < len(pattern):
            return False
        return all((b & m) == p for b, m, p in zip(data, mask, pattern))

    return match


def _riff(kind: bytes) -> Callable[[bytes], bool]:
    return lambda data: len(data) >= 12 and data[:4] == b"RIFF" and data[8:8 + len(kind)] == kind


def _mp4(data: bytes) -> bool:
    if len(data) < 12:
        return False
    box_size = int.from_bytes(data[:4], "big")
    if box_size % 4 != 0 or len(data) < box_size or data[4:8] != b"ftyp":
        return False
    for start in range(8, box_size, 4):
        if start == 12:
            # Minor version.
            continue
        if data[start : start + 3] == b"mp4":
            return True
    return False


def _text(data: bytes) -> bool:
    return bool(data) and not any(b in _BINARY_BYTES for b in data)


_HTML_TAGS = (
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1",
    b"<DIV", b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B",
    b"<BODY", b"<BR", b"<P", b"<!--",
)

# Evaluated in order; first match wins.
SIGNATURES: list[tuple[Callable[[bytes], bool], str]] = [
    *((_html(tag), "text/html; charset=utf-8") for tag in _HTML_TAGS),
    (_masked(b"\xff\xff\xff\xff\xff", b"<?xml", skip_ws=True), "text/xml; charset=utf-8"),
    (_exact(b"%PDF-"), "application/pdf"),
    (_exact(b"%!PS-Adobe-"), "application/postscript"),
    (_exact(b"\xfe\xff"), "text/plain; charset=utf-16be"),
    (_exact(b"\xff\xfe"), "text/plain; charset=utf-16le"),
    (_exact(b"\xef\xbb\xbf"), TEXT_PLAIN),
    (_exact(b"\x00\x00\x01\x00"), "image/x-icon"),
    (_exact(b"\x00\x00\x02\x00"), "image/x-icon"),
    (_exact(b"BM"), "image/bmp"),
    (_exact(b"GIF87a"), "image/gif"),
    (_exact(b"GIF89a"), "image/gif"),
    (_riff(b"WEBPVP"), "image/webp"),
    (_exact(b"\x89PNG\r\n\x1a\n"), "image/png"),
    (_exact(b"\xff\xd8\xff"), "image/jpeg"),
    (_exact(b"II*\x00"), "image/tiff"),
    (_exact(b"MM\x00*"), "image/tiff"),
    (_riff(b"WAVE"), "audio/wave"),
    (_riff(b"AVI "), "video/avi"),
    (_masked(b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff", b"FORM\x00\x00\x00\x00AIFF"), "audio/aiff"),
    (_exact(b".snd"), "audio/basic"),
    (_exact(b"OggS\x00"), "application/ogg"),
    (_exact(b"MThd\x00\x00\x00\x06"), "audio/midi"),
    (_exact(b"ID3"), "audio/mpeg"),
    (_mp4, "video/mp4"),
    (_exact(b"\x1aE\xdf\xa3"), "video/webm"),
    (_exact(b"OTTO"), "font/otf"),
    (_exact(b"\x00\x01\x00\x00"), "font/ttf"),
    (_exact(b"ttcf"), "font/collection"),
    (_exact(b"wOFF"), "font/woff"),
    (_exact(b"wOF2"), "font/woff2"),
    (_exact(b"\x1f\x8b\x08"), "application/x-gzip"),
    (_exact(b"PK\x03\x04"), "application/zip"),
    (_exact(b"Rar!\x1a\x07\x00"), "application/x-rar-compressed"),
    (_exact(b"Rar!\x1a\x07\x01\x00"), "application/x-rar-compressed"),
    (_exact(b"7z\xbc\xaf\x27\x1c"), "application/x-7z-compressed"),
    (_exact(b"\x00asm"), "application/wasm"),
    (_text, TEXT_PLAIN),
]


def detect_content_type(data: bytes) -> str:
    """Classify at most the first 512 bytes of ``data``."""
    data = data[:SNIFF_LEN]
    for match, content_type in SIGNATURES:
        if match(data):
            return content_type
    return OCTET_STREAM


def default_filename(content_type: str | None) -> str:
    """Filename to use when a file part has none, derived from its type."""
    if not content_type:
        return DEFAULT_FILENAME
    media_type = content_type.split(";", 1)[0].strip().lower()
    return DEFAULT_FILENAMES.get(media_type, DEFAULT_FILENAME)


def _read_prefix(source: BinaryIO, size: int) -> bytes:
    chunks: list[bytes] = []
    remaining = size
    while remaining > 0:
        try:
            data = source.read(remaining)
        except Exception as exc:
            raise ReadError(f"Failed to read sniff prefix: {exc}", exc) from exc
        if data is None:
            raise ReadError("Source returned None; non-blocking streams are not supported")
        if not isinstance(data, (bytes, bytearray)):
            raise ReadError(f"Expected bytes from read(), got {type(data).__name__}")
        if not data:
            break
        chunks.append(data)
        remaining -= len(data)
    return b"".join(chunks)


def sniff(source: bytes | BinaryIO) -> SniffResult:
    """
    Detect the content type of ``source`` from its first 512 bytes.

    Args:
        source: Bytes or any object with ``read(n)``. It is never seeked.

    Returns:
        SniffResult whose ``stream`` replays the consumed prefix followed by
        the unread remainder. Read from it, not from ``source``.

    Raises:
        ReadError: The prefix could not be read.
    """
    source = as_stream(source)
    prefix = _read_prefix(source, SNIFF_LEN)
    content_type = detect_content_type(prefix)
    logger.debug("Sniffed {} from {} prefix bytes", content_type, len(prefix))
    return SniffResult(content_type, PrefixReader(prefix, source))
