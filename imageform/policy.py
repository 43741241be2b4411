"""
Which optional form fields each model accepts, per operation.

The table is static and read-only. A field missing from a model's set is
left out of the request entirely; it is never sent blank or defaulted.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .models import MODEL_DALL_E_2, MODEL_DALL_E_3, MODEL_GPT_IMAGE_1

OPERATION_GENERATE = "images.generate"
OPERATION_EDIT = "images.edit"
OPERATION_VARIATION = "images.variation"

REQUIRED_FIELDS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        OPERATION_GENERATE: frozenset({"prompt"}),
        OPERATION_EDIT: frozenset({"image", "prompt"}),
        OPERATION_VARIATION: frozenset({"image"}),
    }
)

_GENERATE_COMMON = frozenset({"model", "n", "quality", "size", "user"})
_EDIT_ALL = frozenset({"mask", "model", "n", "size", "response_format", "quality", "user"})
_VARIATION_ALL = frozenset({"model", "n", "size", "response_format", "user"})

# Models missing from CAPABILITIES get the operation default.
DEFAULT_CAPABILITIES: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        OPERATION_GENERATE: _GENERATE_COMMON | {"response_format"},
        OPERATION_EDIT: _EDIT_ALL,
        OPERATION_VARIATION: _VARIATION_ALL,
    }
)

CAPABILITIES: Mapping[tuple[str, str], frozenset[str]] = MappingProxyType(
    {
        (OPERATION_GENERATE, MODEL_DALL_E_2): _GENERATE_COMMON | {"response_format"},
        (OPERATION_GENERATE, MODEL_DALL_E_3): _GENERATE_COMMON | {"response_format", "style"},
        (OPERATION_GENERATE, MODEL_GPT_IMAGE_1): _GENERATE_COMMON
        | {"background", "moderation", "output_compression", "output_format"},
        (OPERATION_EDIT, MODEL_DALL_E_2): _EDIT_ALL,
        (OPERATION_EDIT, MODEL_GPT_IMAGE_1): _EDIT_ALL - {"response_format", "quality"},
        (OPERATION_VARIATION, MODEL_DALL_E_2): _VARIATION_ALL,
        (OPERATION_VARIATION, MODEL_GPT_IMAGE_1): _VARIATION_ALL - {"response_format"},
    }
)


def capabilities(operation: str, model: str | None) -> frozenset[str]:
    """Optional fields ``model`` accepts for ``operation``."""
    if operation not in DEFAULT_CAPABILITIES:
        raise ValueError(f"Unknown operation: {operation!r}")
    return CAPABILITIES.get((operation, model or ""), DEFAULT_CAPABILITIES[operation])


def is_set(value: object) -> bool:
    """Unset means None, an empty string or zero."""
    if value is None:
        return False
    if isinstance(value, (str, bytes, int, float)):
        return bool(value)
    return True


def should_include(operation: str, model: str | None, field_name: str, field_value: object) -> bool:
    """
    Decide whether ``field_name`` belongs in an ``operation`` request for ``model``.

    Required fields are always included. Optional fields are included only
    when set and listed in the model's capability set.
    """
    allowed = capabilities(operation, model)
    if field_name in REQUIRED_FIELDS[operation]:
        return True
    return is_set(field_value) and field_name in allowed
