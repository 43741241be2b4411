"""
Response body decompression for gzip, deflate and brotli (br).
"""

from __future__ import annotations

import gzip
import io
import zlib

import brotli

ACCEPT_ENCODING = "gzip, deflate, br"


def decode_body(body: bytes, content_encoding: str) -> bytes:
    """
    Undo every encoding listed in a Content-Encoding header.

    Encodings are removed in reverse order of application. A body that
    fails to decode is returned unchanged.
    """
    if not content_encoding or not body:
        return body

    result = body
    for enc in reversed([e.strip() for e in content_encoding.lower().split(",")]):
        result = _decode_single(result, enc)
    return result


def _decode_single(body: bytes, encoding: str) -> bytes:
    if encoding in ("gzip", "x-gzip"):
        try:
            with gzip.GzipFile(fileobj=io.BytesIO(body)) as f:
                return f.read()
        except (OSError, EOFError, zlib.error):
            return body

    if encoding == "deflate":
        try:
            return zlib.decompress(body, -zlib.MAX_WBITS)
        except zlib.error:
            try:
                return zlib.decompress(body)
            except zlib.error:
                return body

    if encoding == "br":
        try:
            return brotli.decompress(body)
        except brotli.error:
            return body

    return body


def accept_encoding(auto_decompress: bool = True) -> str:
    """Accept-Encoding value to advertise."""
    return ACCEPT_ENCODING if auto_decompress else "identity"
