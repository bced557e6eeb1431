#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/operations/video.py
"""Built-in video operations.

Video handlers are pure: ``(VideoCommand, params) -> VideoCommand``. They
append filter expressions, set seek and duration, add output options or a
splice input, and never perform I/O. Filters keep chain order in the
rendered filter graph.
"""

from __future__ import annotations

import logging
from typing import Mapping

from mediaforge import imaging
from mediaforge.constants import (
    DEFAULT_BLUR_RADIUS,
    DEFAULT_START_OFFSET,
    DEFAULT_VIDEO_QSCALE,
    MAX_OUTPUT_DIMENSION,
    ParamValue,
)
from mediaforge.exceptions import OperationError
from mediaforge.operations.metadata import NUMBER, OperationMetadata, ParameterSpec
from mediaforge.operations.registry import OperationRegistry
from mediaforge.video_command import VideoCommand, format_number

logger = logging.getLogger(__name__)

Params = Mapping[str, ParamValue]

SPLICE_SOURCE_PREFIXES = ("video:", "video_")


def _check_size(key: str, value: int) -> int:
    if value > MAX_OUTPUT_DIMENSION:
        raise ValueError(f"'{key}' must be at most {MAX_OUTPUT_DIMENSION}, got {value}")
    return value


def _dimension(params: Params, key: str) -> int:
    value = int(params[key])
    if value <= 0:
        raise ValueError(f"'{key}' must be positive, got {params[key]!r}")
    return _check_size(key, value)


def _seconds(params: Params, key: str) -> float:
    value = params[key]
    if isinstance(value, str):
        raise OperationError(f"'{key}' must be a number of seconds, got {value!r}", operation=key)
    if value < 0:
        raise OperationError(f"'{key}' cannot be negative, got {value!r}", operation=key)
    return value


def ffmpeg_color(value: str) -> str:
    """Translate a URL colour (``rgb:ff0000``, ``ff0000``, ``red``) to ffmpeg's ``0xRRGGBB[AA]``.

    The colour is parsed rather than copied, so only hex digits reach the
    filter graph.

    Raises
    ------
    OperationError
        If the value is not a colour
    """
    try:
        red, green, blue, alpha = imaging.parse_color(str(value), "RGBA")
    except ValueError as e:
        raise OperationError(f"Invalid colour {value!r}", original_error=e) from e
    text = f"0x{red:02x}{green:02x}{blue:02x}"
    return text if alpha == 255 else f"{text}{alpha:02x}"


def _cover(width: int, height: int) -> str:
    return f"scale={width}:{height}:force_original_aspect_ratio=increase,crop={width}:{height}"


def fill(command: VideoCommand, params: Params) -> VideoCommand:
    """Scale to cover w x h and crop the overflow around the centre."""
    width, height = _dimension(params, "w"), _dimension(params, "h")
    return command.with_filter(_cover(width, height))


def crop(command: VideoCommand, params: Params) -> VideoCommand:
    """Crop a w x h window; without x/y ffmpeg centres it."""
    width, height = _dimension(params, "w"), _dimension(params, "h")
    if "x" in params or "y" in params:
        left, top = int(params.get("x", 0)), int(params.get("y", 0))
        return command.with_filter(f"crop={width}:{height}:{left}:{top}")
    return command.with_filter(f"crop={width}:{height}")


def pad(command: VideoCommand, params: Params) -> VideoCommand:
    width, height = _dimension(params, "w"), _dimension(params, "h")
    expression = (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2"
    )
    if params.get("b"):
        expression += f":{ffmpeg_color(str(params['b']))}"
    return command.with_filter(expression)


def scale(command: VideoCommand, params: Params) -> VideoCommand:
    """Scale with w and/or h; ``-2`` keeps the aspect ratio on an even size."""
    width = _dimension(params, "w") if params.get("w") else -2
    height = _dimension(params, "h") if params.get("h") else -2
    if width == -2 and height == -2:
        raise OperationError("c_scale requires 'w' and/or 'h'", operation="c_scale")
    return command.with_filter(f"scale={width}:{height}")


def fit(command: VideoCommand, params: Params) -> VideoCommand:
    width, height = _dimension(params, "w"), _dimension(params, "h")
    return command.with_filter(f"scale={width}:{height}:force_original_aspect_ratio=decrease")


def blur(command: VideoCommand, params: Params) -> VideoCommand:
    radius = format_number(params["radius"])
    return command.with_filter(f"boxblur=luma_radius={radius}:chroma_radius={radius}")


def aspect_ratio(command: VideoCommand, params: Params) -> VideoCommand:
    """Resize to the aspect ratio ``ar``.

    With w or h the box is derived as for images and the frame is cover-fit
    into it. Without either the height follows the input width.
    """
    ratio = imaging.parse_aspect_ratio(params["ar"])
    box = imaging.aspect_box(ratio, width=params.get("w") or None, height=params.get("h") or None)
    if box is None:
        return command.with_filter(f"scale=iw:trunc(iw/{format_number(ratio)}/2)*2")
    width, height = _check_size("w", box[0]), _check_size("h", box[1])
    return command.with_filter(_cover(width, height))


def gravity_auto(command: VideoCommand, params: Params) -> VideoCommand:
    logger.warning("g_auto is not supported for video, ignoring")
    return command


def quality(command: VideoCommand, params: Params) -> VideoCommand:
    return command.with_output_option("-qscale:v", format_number(params["quality"]))


def offsets(command: VideoCommand, params: Params) -> VideoCommand:
    """Apply ``so``, ``eo`` and ``du`` from one spec, in that order.

    ``eo`` is measured from the current start offset (0 without a seek);
    ``du`` sets the duration directly.
    """
    if "so" in params:
        command = command.with_seek(_seconds(params, "so"))
    if "eo" in params:
        end = _seconds(params, "eo")
        duration = end - command.start_offset
        if duration <= 0:
            raise OperationError(
                f"end offset {format_number(end)} is not after start offset {format_number(command.start_offset)}",
                operation="eo",
            )
        command = command.with_duration(duration)
    if "du" in params:
        command = command.with_duration(_seconds(params, "du"))
    return command


def splice_source(params: Params) -> str:
    """Return the public id of the asset to append.

    Accepts an ``l_video`` parameter or the CDN form ``l_video:<public_id>``.

    Raises
    ------
    OperationError
        If no splice source is given

    """
    if params.get("l_video"):
        return str(params["l_video"])

    layer = str(params.get("l", ""))
    for prefix in SPLICE_SOURCE_PREFIXES:
        if layer.startswith(prefix):
            layer = layer[len(prefix) :]
            break
    if not layer:
        raise OperationError("fl_splice requires a video layer (l_video:<public_id>)", operation="fl_splice")
    return layer


def splice(command: VideoCommand, params: Params) -> VideoCommand:
    public_id = splice_source(params)
    with_audio = params.get("a", 1) != 0
    logger.debug(f"Splicing {public_id!r} (audio={with_audio})")
    return command.with_splice(public_id, with_audio=with_audio)


_SIZE_PARAMS = {
    "w": ParameterSpec(type=NUMBER, required=True, help="Target width in pixels"),
    "h": ParameterSpec(type=NUMBER, required=True, help="Target height in pixels"),
}

_OFFSET_PARAMS = {
    "so": ParameterSpec(type=NUMBER, help="Start offset in seconds"),
    "eo": ParameterSpec(type=NUMBER, help="End offset in seconds"),
    "du": ParameterSpec(type=NUMBER, help="Duration in seconds"),
}

BUILTIN_VIDEO_OPERATIONS: list[OperationMetadata] = [
    OperationMetadata(
        name="c_fill",
        description="Scale to exactly w x h, cropping to cover",
        handler=fill,
        parameters=dict(_SIZE_PARAMS),
        tags=["resize"],
    ),
    OperationMetadata(
        name="c_crop",
        description="Crop a w x h window at (x, y), centred by default",
        handler=crop,
        parameters={
            **_SIZE_PARAMS,
            "x": ParameterSpec(type=NUMBER, help="Left edge of the window"),
            "y": ParameterSpec(type=NUMBER, help="Top edge of the window"),
        },
        tags=["crop"],
    ),
    OperationMetadata(
        name="c_pad",
        description="Fit inside w x h and pad the remainder",
        handler=pad,
        parameters={**_SIZE_PARAMS, "b": ParameterSpec(type=str, help="Padding colour")},
        tags=["resize"],
    ),
    OperationMetadata(
        name="c_scale",
        description="Scale from w and/or h keeping the aspect ratio",
        handler=scale,
        parameters={
            "w": ParameterSpec(type=NUMBER, help="Target width in pixels"),
            "h": ParameterSpec(type=NUMBER, help="Target height in pixels"),
        },
        tags=["resize"],
    ),
    OperationMetadata(
        name="c_fit",
        description="Scale to fit inside w x h",
        handler=fit,
        parameters=dict(_SIZE_PARAMS),
        tags=["resize"],
    ),
    OperationMetadata(
        name="b_blurred",
        description="Box blur the frame",
        handler=blur,
        parameters={"radius": ParameterSpec(type=NUMBER, default=DEFAULT_BLUR_RADIUS, help="Blur radius")},
        tags=["filter"],
    ),
    OperationMetadata(
        name="ar",
        description="Resize to an aspect ratio",
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
        description="Gravity-aware crop (not supported for video)",
        handler=gravity_auto,
        tags=["crop"],
    ),
    OperationMetadata(
        name="q_auto",
        description="Set the encoder quality scale",
        handler=quality,
        parameters={"quality": ParameterSpec(type=NUMBER, default=DEFAULT_VIDEO_QSCALE, help="qscale value")},
        tags=["encoding"],
    ),
    OperationMetadata(
        name="so",
        description="Seek to a start offset",
        handler=offsets,
        parameters={
            **_OFFSET_PARAMS,
            "so": ParameterSpec(type=NUMBER, default=DEFAULT_START_OFFSET, help="Start offset in seconds"),
        },
        tags=["trim"],
    ),
    OperationMetadata(
        name="eo",
        description="Stop at an end offset",
        handler=offsets,
        parameters={**_OFFSET_PARAMS, "eo": ParameterSpec(type=NUMBER, required=True, help="End offset in seconds")},
        tags=["trim"],
    ),
    OperationMetadata(
        name="du",
        description="Limit the output duration",
        handler=offsets,
        parameters={**_OFFSET_PARAMS, "du": ParameterSpec(type=NUMBER, required=True, help="Duration in seconds")},
        tags=["trim"],
    ),
    OperationMetadata(
        name="fl_splice",
        description="Concatenate a second video after the current one",
        handler=splice,
        parameters={
            "l": ParameterSpec(type=(int, float, str), help="Layer, as video:<public_id>"),
            "a": ParameterSpec(type=NUMBER, default=1, help="0 to concatenate video only"),
        },
        tags=["compose"],
    ),
]


def register_builtin_operations(registry: OperationRegistry) -> OperationRegistry:
    """Register the built-in video operations."""
    for metadata in BUILTIN_VIDEO_OPERATIONS:
        registry.register(metadata)
    return registry


video_registry = register_builtin_operations(OperationRegistry("video"))

__all__ = [
    "BUILTIN_VIDEO_OPERATIONS",
    "register_builtin_operations",
    "splice_source",
    "video_registry",
]
