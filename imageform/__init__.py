from loguru import logger

from imageform.assembler import (
    FieldAssembler,
    assemble_edit_form,
    assemble_variation_form,
    generation_payload,
)
from imageform.client import ImagesClient
from imageform.config import ClientSettings
from imageform.errors import (
    APIError,
    EncodeError,
    ImageFormError,
    ReadError,
)
from imageform.models import (
    ImageEditRequest,
    ImageRequest,
    ImageResponse,
    ImageVariationRequest,
)
from imageform.multipart import MultipartEncoder, build_multipart
from imageform.policy import should_include
from imageform.readers import NamedReader
from imageform.sniff import SniffResult, default_filename, sniff

# Library logging stays silent until the application calls logger.enable("imageform").
logger.disable("imageform")

__all__ = [
    "APIError",
    "ClientSettings",
    "EncodeError",
    "FieldAssembler",
    "ImageEditRequest",
    "ImageFormError",
    "ImageRequest",
    "ImageResponse",
    "ImageVariationRequest",
    "ImagesClient",
    "MultipartEncoder",
    "NamedReader",
    "ReadError",
    "SniffResult",
    "assemble_edit_form",
    "assemble_variation_form",
    "build_multipart",
    "default_filename",
    "generation_payload",
    "should_include",
    "sniff",
]
