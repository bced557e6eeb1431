#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/operations/image.py
"""Built-in image operations.

Every handler takes the current encoded buffer and the spec's params and
returns a new encoded buffer in the same format. Handlers raise
``ValueError`` (or ``OperationError``) for bad geometry; the image pipeline
wraps anything else into ``OperationError`` naming the tag.
"""

from __future__ import annotations

import logging
from typing import Mapping

from mediaforge import imaging
from mediaforge.constants import (
    DEFAULT_FLATTEN_BACKGROUND,
    DEFAULT_IMAGE_QUALITY,
    DEFAULT_PAD_BACKGROUND,
    MAX_OUTPUT_DIMENSION,
    ParamValue,
)
from mediaforge.exceptions import OperationError
from mediaforge.operations.metadata import NUMBER, OperationMetadata, ParameterSpec
from mediaforge.operations.registry import OperationRegistry

logger = logging.getLogger(__name__)

Params = Mapping[str, ParamValue]


def _check_size(key: str, value: int) -> int:
    if value > MAX_OUTPUT_DIMENSION:
        raise ValueError(f"'{key}' must be at most {MAX_OUTPUT_DIMENSION}, got {value}")
    return value


def _dimension(params: Params, key: str) -> int:
    value = int(params[key])
    if value <= 0:
        raise ValueError(f"'{key}' must be positive, got {params[key]!r}")
    return _check_size(key, value)


def _optional_dimension(params: Params, key: str) -> int | None:
    return _dimension(params, key) if params.get(key) else None


def fill(buffer: bytes, params: Params) -> bytes:
    """Cover-fit to exactly w x h."""
    width, height = _dimension(params, "w"), _dimension(params, "h")
    return imaging.transform_buffer(buffer, lambda img: imaging.resize_cover(img, width, height))


def crop(buffer: bytes, params: Params) -> bytes:
    width, height = _dimension(params, "w"), _dimension(params, "h")
    left, top = int(params["x"]), int(params["y"])
    return imaging.transform_buffer(buffer, lambda img: imaging.extract_region(img, left, top, width, height))


def pad(buffer: bytes, params: Params) -> bytes:
    width, height = _dimension(params, "w"), _dimension(params, "h")
    background = str(params.get("b", DEFAULT_PAD_BACKGROUND))
    return imaging.transform_buffer(buffer, lambda img: imaging.resize_contain(img, width, height, background))


def scale(buffer: bytes, params: Params) -> bytes:
    """Aspect-preserving resize driven by w and/or h."""
    width, height = _optional_dimension(params, "w"), _optional_dimension(params, "h")
    if width is None and height is None:
        raise OperationError("c_scale requires 'w' and/or 'h'", operation="c_scale")
    return imaging.transform_buffer(buffer, lambda img: imaging.resize_inside(img, width, height))


def fit(buffer: bytes, params: Params) -> bytes:
    width, height = _dimension(params, "w"), _dimension(params, "h")
    return imaging.transform_buffer(buffer, lambda img: imaging.resize_inside(img, width, height))


def background_fill(buffer: bytes, params: Params) -> bytes:
    background = str(params.get("b", DEFAULT_FLATTEN_BACKGROUND))
    return imaging.transform_buffer(buffer, lambda img: imaging.flatten(img, background))


def aspect_ratio(buffer: bytes, params: Params) -> bytes:
    """Cover-fit to a box derived from ``ar`` and one of w/h.

    Without w or h the buffer passes through unchanged.
    """
    ratio = imaging.parse_aspect_ratio(params["ar"])
    box = imaging.aspect_box(ratio, width=params.get("w") or None, height=params.get("h") or None)
    if box is None:
        logger.debug("ar without w or h, leaving image unchanged")
        return buffer
    width, height = _check_size("w", box[0]), _check_size("h", box[1])
    return imaging.transform_buffer(buffer, lambda img: imaging.resize_cover(img, width, height))


def gravity_auto(buffer: bytes, params: Params) -> bytes:
    # Smart gravity is not implemented; a centred cover crop stands in.
    return fill(buffer, params)


def quality(buffer: bytes, params: Params) -> bytes:
    level = int(params["quality"])
    if not 1 <= level <= 100:
        raise ValueError(f"quality must be between 1 and 100, got {level}")
    return imaging.transform_buffer(buffer, lambda img: img, quality=level)


_SIZE_PARAMS = {
    "w": ParameterSpec(type=NUMBER, required=True, help="Target width in pixels"),
    "h": ParameterSpec(type=NUMBER, required=True, help="Target height in pixels"),
}

BUILTIN_IMAGE_OPERATIONS: list[OperationMetadata] = [
    OperationMetadata(
        name="c_fill",
        description="Resize to exactly w x h, cropping to cover",
        handler=fill,
        parameters=dict(_SIZE_PARAMS),
        tags=["resize"],
    ),
    OperationMetadata(
        name="c_crop",
        description="Extract a w x h window at (x, y)",
        handler=crop,
        parameters={
            **_SIZE_PARAMS,
            "x": ParameterSpec(type=NUMBER, required=True, help="Left edge of the window"),
            "y": ParameterSpec(type=NUMBER, required=True, help="Top edge of the window"),
        },
        tags=["crop"],
    ),
    OperationMetadata(
        name="c_pad",
        description="Fit inside w x h and pad with a background colour",
        handler=pad,
        parameters={
            **_SIZE_PARAMS,
            "b": ParameterSpec(type=str, default=DEFAULT_PAD_BACKGROUND, help="Padding colour"),
        },
        tags=["resize"],
    ),
    OperationMetadata(
        name="c_scale",
        description="Resize preserving aspect ratio from w and/or h",
        handler=scale,
        parameters={
            "w": ParameterSpec(type=NUMBER, help="Target width in pixels"),
            "h": ParameterSpec(type=NUMBER, help="Target height in pixels"),
        },
        tags=["resize"],
    ),
    OperationMetadata(
        name="c_thumb",
        description="Thumbnail: same as c_fill",
        handler=fill,
        parameters=dict(_SIZE_PARAMS),
        tags=["resize"],
    ),
    OperationMetadata(
        name="c_fit",
        description="Resize preserving aspect ratio, bounded by w x h",
        handler=fit,
        parameters=dict(_SIZE_PARAMS),
        tags=["resize"],
    ),
    OperationMetadata(
        name="b_auto",
        description="Flatten transparency onto a background colour",
        handler=background_fill,
        parameters={"b": ParameterSpec(type=str, default=DEFAULT_FLATTEN_BACKGROUND, help="Background colour")},
        tags=["background"],
    ),
    OperationMetadata(
        name="ar",
        description="Cover-fit to a box derived from an aspect ratio and w or h",
        handler=aspect_ratio,
        parameters={
            "ar": ParameterSpec(type=(int, float, str), required=True, help="Aspect ratio (1.5 or 16:9)"),
            "w": ParameterSpec(type=NUMBER, help="Width; height is derived"),
            "h": ParameterSpec(type=NUMBER, help="Height; width is derived"),
        },
        tags=["resize"],
    ),
    OperationMetadata(
        name="g_auto",
        description="Gravity-aware crop (centred cover crop)",
        handler=gravity_auto,
        parameters=dict(_SIZE_PARAMS),
        tags=["crop"],
    ),
    OperationMetadata(
        name="q_auto",
        description="Re-encode at a quality level",
        handler=quality,
        parameters={"quality": ParameterSpec(type=NUMBER, default=DEFAULT_IMAGE_QUALITY, help="Quality 1-100")},
        tags=["encoding"],
    ),
]


def register_builtin_operations(registry: OperationRegistry) -> OperationRegistry:
    """Register the built-in image operations and custom providers."""
    from mediaforge.plugins import BUILTIN_CUSTOM_OPERATIONS

    for metadata in BUILTIN_IMAGE_OPERATIONS:
        registry.register(metadata)
    for metadata in BUILTIN_CUSTOM_OPERATIONS:
        registry.register(metadata)
    return registry


image_registry = register_builtin_operations(OperationRegistry("image"))

__all__ = [
    "BUILTIN_IMAGE_OPERATIONS",
    "image_registry",
    "register_builtin_operations",
]
