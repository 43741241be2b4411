"""
Builds request forms for the image operations, field by field, through the
model capability policy.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import BinaryIO

from loguru import logger

from .errors import EncodeError
from .models import ImageEditRequest, ImageRequest, ImageVariationRequest
from .multipart import MultipartEncoder
from .policy import (
    OPERATION_EDIT,
    OPERATION_GENERATE,
    OPERATION_VARIATION,
    REQUIRED_FIELDS,
    capabilities,
    should_include,
)


class FieldAssembler:
    """
    Feeds fields into ``encoder`` only when ``model`` accepts them for
    ``operation``. Disallowed or unset optional fields are skipped silently.
    """

    def __init__(self, operation: str, model: str | None, encoder: MultipartEncoder) -> None:
        capabilities(operation, model)
        self.operation = operation
        self.model = model or ""
        self.encoder = encoder

    def _allowed(self, name: str, value: object) -> bool:
        if should_include(self.operation, self.model, name, value):
            return True
        logger.debug(
            "Skipping {!r} for {} on {}", name, self.model or "default model", self.operation
        )
        return False

    def add_field(self, name: str, value: object) -> bool:
        """Add ``name`` if allowed. Returns whether it was added."""
        if not self._allowed(name, value):
            return False
        self.encoder.add_field(name, value)
        return True

    def add_file(
        self,
        name: str,
        content: BinaryIO | bytes | None,
        filename: str = "",
        mime_type: str | None = None,
    ) -> bool:
        if content is None:
            if name in REQUIRED_FIELDS[self.operation]:
                raise EncodeError(f"Missing required file {name!r}")
            return False
        if not self._allowed(name, content):
            return False
        self.encoder.add_file(name, content, filename, mime_type)
        return True

    def finalize(self) -> MultipartEncoder:
        self.encoder.finalize()
        return self.encoder


def assemble_edit_form(
    request: ImageEditRequest, encoder: MultipartEncoder | None = None
) -> MultipartEncoder:
    """Encode and finalize an image edit form."""
    form = FieldAssembler(OPERATION_EDIT, request.model, encoder or MultipartEncoder())
    form.add_file("image", request.image)
    form.add_file("mask", request.mask)
    form.add_field("prompt", request.prompt)
    form.add_field("model", request.model)
    form.add_field("n", request.n)
    form.add_field("size", request.size)
    form.add_field("response_format", request.response_format)
    form.add_field("quality", request.quality)
    form.add_field("user", request.user)
    return form.finalize()


def assemble_variation_form(
    request: ImageVariationRequest, encoder: MultipartEncoder | None = None
) -> MultipartEncoder:
    """Encode and finalize an image variation form."""
    form = FieldAssembler(OPERATION_VARIATION, request.model, encoder or MultipartEncoder())
    form.add_file("image", request.image)
    form.add_field("model", request.model)
    form.add_field("n", request.n)
    form.add_field("size", request.size)
    form.add_field("response_format", request.response_format)
    form.add_field("user", request.user)
    return form.finalize()


def generation_payload(request: ImageRequest) -> dict[str, object]:
    """JSON body for a generation request, filtered by the same policy."""
    return {
        name: value
        for name, value in asdict(request).items()
        if should_include(OPERATION_GENERATE, request.model, name, value)
    }
