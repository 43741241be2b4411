from __future__ import annotations

import json
import tempfile
from typing import BinaryIO

from loguru import logger

from .assembler import assemble_edit_form, assemble_variation_form, generation_payload
from .compression import accept_encoding
from .config import ClientSettings
from .connection import Connection
from .errors import APIError
from .headers import canonicalize_headers
from .models import (
    ImageEditRequest,
    ImageRequest,
    ImageResponse,
    ImageVariationRequest,
    Response,
)
from .multipart import MultipartEncoder
from .utils import join_url, parse_url

USER_AGENT = "imageform/0.1"
HEADER_ORDER = (
    "Host",
    "User-Agent",
    "Accept",
    "Accept-Encoding",
    "Authorization",
    "Content-Type",
    "Content-Length",
)


class ImagesClient:
    """
    Synchronous client for the image generation, edit and variation endpoints.

    Forms are fully encoded and finalized before any connection is opened, so
    an encoding failure never puts a partial body on the wire.

    Args:
        api_key: Bearer token. Defaults to ``IMAGEFORM_API_KEY``.
        base_url: API root, e.g. ``https://api.openai.com/v1``.
        organization: Optional organization header value.
        timeout: Socket timeout in seconds
        verify: Whether to verify TLS certificates
        headers: Extra headers sent with every request
        settings: Settings to take unspecified values from
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        organization: str | None = None,
        timeout: float | None = None,
        verify: bool | None = None,
        spool_max_size: int | None = None,
        headers: dict[str, str] | None = None,
        settings: ClientSettings | None = None,
    ) -> None:
        settings = settings or ClientSettings()
        self.api_key = api_key if api_key is not None else settings.api_key.get_secret_value()
        self.base_url = base_url or settings.base_url
        self.organization = organization if organization is not None else settings.organization
        self.timeout = timeout if timeout is not None else settings.timeout
        self.verify = verify if verify is not None else settings.verify
        self.auto_decompress = settings.auto_decompress
        self.spool_max_size = spool_max_size if spool_max_size is not None else settings.spool_max_size
        self.chunk_size = settings.chunk_size
        self.headers = dict(headers or {})

    def create_image(self, request: ImageRequest) -> ImageResponse:
        """POST /images/generations with a JSON body."""
        body = json.dumps(generation_payload(request)).encode("utf-8")
        return self._send("/images/generations", body, "application/json", len(body))

    def create_edit_image(self, request: ImageEditRequest) -> ImageResponse:
        """POST /images/edits with a multipart body."""
        with tempfile.SpooledTemporaryFile(max_size=self.spool_max_size) as spool:
            encoder = assemble_edit_form(request, self._encoder(spool))
            return self._send_form("/images/edits", encoder)

    def create_variation(self, request: ImageVariationRequest) -> ImageResponse:
        """POST /images/variations with a multipart body."""
        with tempfile.SpooledTemporaryFile(max_size=self.spool_max_size) as spool:
            encoder = assemble_variation_form(request, self._encoder(spool))
            return self._send_form("/images/variations", encoder)

    def _encoder(self, sink: BinaryIO) -> MultipartEncoder:
        return MultipartEncoder(sink, chunk_size=self.chunk_size)

    def _send_form(self, suffix: str, encoder: MultipartEncoder) -> ImageResponse:
        encoder.sink.seek(0)
        logger.debug(
            "Form for {}: {} parts, {} bytes", suffix, encoder.part_count, encoder.bytes_written
        )
        return self._send(
            suffix, encoder.sink, encoder.content_type_header(), encoder.bytes_written
        )

    def _build_headers(self, host: str, content_type: str, content_length: int) -> list[tuple[str, str]]:
        computed = {
            "Host": host,
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
            "Accept-Encoding": accept_encoding(self.auto_decompress),
            "Connection": "close",
            "Content-Type": content_type,
            "Content-Length": str(content_length),
        }
        if self.api_key:
            computed["Authorization"] = f"Bearer {self.api_key}"
        if self.organization:
            computed["OpenAI-Organization"] = self.organization
        return canonicalize_headers(computed.items(), self.headers, order=HEADER_ORDER)

    def _send(
        self,
        suffix: str,
        body: bytes | BinaryIO,
        content_type: str,
        content_length: int,
    ) -> ImageResponse:
        parsed, host, port, path = parse_url(join_url(self.base_url, suffix))
        headers = self._build_headers(host, content_type, content_length)
        conn = Connection(
            host,
            port,
            parsed.scheme,
            timeout=self.timeout,
            verify=self.verify,
            auto_decompress=self.auto_decompress,
        )
        with conn:
            response = conn.request("POST", path, headers, body, self.chunk_size)
        if not response.ok:
            raise api_error(response)
        return ImageResponse.from_response(response)

    def __enter__(self) -> ImagesClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


def api_error(response: Response) -> APIError:
    """Map an error response to :class:`APIError`."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return APIError(
            response.status_code,
            error.get("message") or response.reason,
            type=error.get("type"),
            code=error.get("code"),
            param=error.get("param"),
        )
    return APIError(response.status_code, response.text or response.reason)
