from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import BinaryIO

# Image sizes accepted by the images API.
SIZE_256X256 = "256x256"
SIZE_512X512 = "512x512"
SIZE_1024X1024 = "1024x1024"
# dall-e-3 only.
SIZE_1792X1024 = "1792x1024"
SIZE_1024X1792 = "1024x1792"
# gpt-image-1 only.
SIZE_1536X1024 = "1536x1024"
SIZE_1024X1536 = "1024x1536"

# dall-e-2 and dall-e-3 only.
RESPONSE_FORMAT_B64_JSON = "b64_json"
RESPONSE_FORMAT_URL = "url"

MODEL_DALL_E_2 = "dall-e-2"
MODEL_DALL_E_3 = "dall-e-3"
MODEL_GPT_IMAGE_1 = "gpt-image-1"

QUALITY_HD = "hd"
QUALITY_STANDARD = "standard"
# gpt-image-1 only.
QUALITY_HIGH = "high"
QUALITY_MEDIUM = "medium"
QUALITY_LOW = "low"

# dall-e-3 only.
STYLE_VIVID = "vivid"
STYLE_NATURAL = "natural"

# gpt-image-1 only.
BACKGROUND_TRANSPARENT = "transparent"
BACKGROUND_OPAQUE = "opaque"
MODERATION_LOW = "low"
OUTPUT_FORMAT_PNG = "png"
OUTPUT_FORMAT_JPEG = "jpeg"
OUTPUT_FORMAT_WEBP = "webp"


class Response:
    """
    Lightweight HTTP response that preserves header order while
    exposing convenient helpers.
    """

    def __init__(
        self,
        status_code: int,
        reason: str,
        http_version: str,
        headers: Iterable[tuple[str, str]],
        body: bytes,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.http_version = http_version
        self.raw_headers: list[tuple[str, str]] = list(headers)
        self._body = body

    @property
    def headers(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for name, value in self.raw_headers:
            out[name.lower()] = value
        return out

    @property
    def content(self) -> bytes:
        return self._body

    @property
    def text(self) -> str:
        encoding = "utf-8"
        ctype = self.headers.get("content-type")
        if ctype and "charset=" in ctype:
            encoding = ctype.split("charset=")[-1].split(";")[0].strip() or encoding
        try:
            return self._body.decode(encoding, errors="replace")
        except LookupError:
            return self._body.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> object:
        return json.loads(self.text)

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {len(self._body)} bytes>"


@dataclass
class ImageRequest:
    """Body of a JSON image generation request."""

    prompt: str
    model: str = ""
    n: int = 0
    quality: str = ""
    size: str = ""
    style: str = ""
    response_format: str = ""
    user: str = ""
    background: str = ""
    moderation: str = ""
    output_compression: int = 0
    output_format: str = ""


@dataclass
class ImageEditRequest:
    """Multipart image edit request. ``image`` and ``mask`` are read once."""

    image: BinaryIO | bytes
    prompt: str
    mask: BinaryIO | bytes | None = None
    model: str = ""
    n: int = 0
    size: str = ""
    response_format: str = ""
    quality: str = ""
    user: str = ""


@dataclass
class ImageVariationRequest:
    """Multipart image variation request. ``image`` is read once."""

    image: BinaryIO | bytes
    model: str = ""
    n: int = 0
    size: str = ""
    response_format: str = ""
    user: str = ""


@dataclass
class ImageData:
    url: str = ""
    b64_json: str = ""
    revised_prompt: str = ""


@dataclass
class ImageUsage:
    total_tokens: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    text_tokens: int = 0
    image_tokens: int = 0


@dataclass
class ImageResponse:
    created: int = 0
    data: list[ImageData] = field(default_factory=list)
    usage: ImageUsage = field(default_factory=ImageUsage)
    response: Response | None = field(default=None, repr=False)

    @classmethod
    def from_response(cls, response: Response) -> ImageResponse:
        payload = response.json()
        if not isinstance(payload, dict):
            payload = {}
        usage = payload.get("usage") or {}
        details = usage.get("input_tokens_details") or {}
        return cls(
            created=payload.get("created", 0),
            data=[
                ImageData(
                    url=item.get("url", ""),
                    b64_json=item.get("b64_json", ""),
                    revised_prompt=item.get("revised_prompt", ""),
                )
                for item in payload.get("data") or []
            ],
            usage=ImageUsage(
                total_tokens=usage.get("total_tokens", 0),
                input_tokens=usage.get("input_tokens", 0),
                output_tokens=usage.get("output_tokens", 0),
                text_tokens=details.get("text_tokens", 0),
                image_tokens=details.get("image_tokens", 0),
            ),
            response=response,
        )
