#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/imaging.py
"""Image decode, encode and geometry primitives built on Pillow.

Image operations work buffer to buffer: every operation decodes its input,
transforms the decoded image and encodes the result in the input's format.
The helpers here hold the Pillow specifics so the operation handlers in
``mediaforge.operations.image`` stay declarative.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Callable, Optional, Union

from PIL import Image, ImageColor, ImageOps, UnidentifiedImageError

from mediaforge.constants import DEFAULT_IMAGE_FORMAT, DEFAULT_IMAGE_QUALITY, QUALITY_AWARE_FORMATS
from mediaforge.exceptions import OperationError

logger = logging.getLogger(__name__)

RESAMPLE = Image.Resampling.LANCZOS

Color = Union[int, tuple[int, ...]]


def decode_image(buffer: bytes) -> Image.Image:
    """Decode an encoded image buffer.

    Raises
    ------
    OperationError
        If Pillow cannot identify or read the data

    """
    try:
        image = Image.open(io.BytesIO(buffer))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise OperationError(f"Cannot decode image: {e}", original_error=e) from e
    return image


def encode_image(image: Image.Image, fmt: Optional[str] = None, quality: Optional[int] = None) -> bytes:
    """Encode ``image`` as ``fmt`` (default PNG).

    JPEG cannot store transparency or palettes, so such images are converted
    to RGB first. ``quality`` only applies to lossy formats; lossless formats
    ignore it.
    """
    fmt = (fmt or DEFAULT_IMAGE_FORMAT).upper()
    save_kwargs: dict[str, Any] = {}

    if fmt == "JPEG" and image.mode not in ("RGB", "L", "CMYK"):
        image = image.convert("RGB")

    if fmt in QUALITY_AWARE_FORMATS:
        save_kwargs["quality"] = int(quality if quality is not None else DEFAULT_IMAGE_QUALITY)
    elif quality is not None:
        logger.debug(f"Quality {quality} ignored for lossless format {fmt}")
        save_kwargs["optimize"] = True

    out = io.BytesIO()
    image.save(out, format=fmt, **save_kwargs)
    return out.getvalue()


def transform_buffer(
    buffer: bytes,
    func: Callable[[Image.Image], Image.Image],
    quality: Optional[int] = None,
) -> bytes:
    """Decode ``buffer``, apply ``func`` and re-encode in the source format."""
    image = decode_image(buffer)
    fmt = image.format
    return encode_image(func(image), fmt, quality=quality)


def normalize_mode(image: Image.Image) -> Image.Image:
    """Bring palette and exotic modes to RGB or RGBA for geometry operations."""
    if image.mode in ("RGB", "RGBA", "L", "LA"):
        return image
    if image.mode == "P" and "transparency" in image.info:
        return image.convert("RGBA")
    if image.mode in ("PA", "La"):
        return image.convert("RGBA")
    return image.convert("RGB")


def has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA", "La", "RGBa") or (
        image.mode == "P" and "transparency" in image.info
    )


def parse_color(value: str, mode: str = "RGB") -> Color:
    """Parse a background colour for ``mode``.

    Accepts CSS names (``white``), ``#rrggbb`` and the CDN forms
    ``rgb:rrggbb`` and bare ``rrggbb``.

    Raises
    ------
    ValueError
        If the colour cannot be parsed
    """
    text = str(value).strip()
    if text.lower().startswith("rgb:"):
        text = "#" + text[4:]
    elif len(text) in (3, 6, 8) and all(c in "0123456789abcdefABCDEF" for c in text):
        text = "#" + text
    return ImageColor.getcolor(text, mode)


def resize_cover(image: Image.Image, width: int, height: int) -> Image.Image:
    """Resize to exactly width x height, cropping the overflow around the centre."""
    return ImageOps.fit(normalize_mode(image), (width, height), method=RESAMPLE, centering=(0.5, 0.5))


def resize_contain(image: Image.Image, width: int, height: int, background: str) -> Image.Image:
    """Fit inside width x height and pad the remainder with ``background``."""
    image = normalize_mode(image)
    color = parse_color(background, image.mode)
    return ImageOps.pad(image, (width, height), method=RESAMPLE, color=color, centering=(0.5, 0.5))


def resize_inside(image: Image.Image, width: Optional[int] = None, height: Optional[int] = None) -> Image.Image:
    """Resize preserving aspect ratio so the result fits inside the given box.

    Either side may be omitted. Enlarging is allowed.
    """
    if not width and not height:
        raise ValueError("at least one of width or height is required")

    scales = []
    if width:
        scales.append(width / image.width)
    if height:
        scales.append(height / image.height)
    scale = min(scales)

    size = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
    if size == image.size:
        return image
    return normalize_mode(image).resize(size, resample=RESAMPLE)


def extract_region(image: Image.Image, left: int, top: int, width: int, height: int) -> Image.Image:
    """Crop a width x height window whose top-left corner is (left, top).

    Raises
    ------
    ValueError
        If the window does not lie inside the image
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"crop window must be positive, got {width}x{height}")
    if left < 0 or top < 0 or left + width > image.width or top + height > image.height:
        raise ValueError(
            f"crop window {width}x{height}+{left}+{top} exceeds image bounds {image.width}x{image.height}"
        )
    return image.crop((left, top, left + width, top + height))


def flatten(image: Image.Image, background: str) -> Image.Image:
    """Composite transparent areas onto a solid ``background``."""
    if not has_alpha(image):
        return image
    rgba = image.convert("RGBA")
    base = Image.new("RGBA", rgba.size, parse_color(background, "RGBA"))
    base.alpha_composite(rgba)
    return base.convert("RGB")


def parse_aspect_ratio(value: Union[int, float, str]) -> float:
    """Read an aspect ratio given as a number (``1.5``) or ``w:h`` (``16:9``).

    Raises
    ------
    ValueError
        If the value is not a positive ratio
    """
    if isinstance(value, str):
        left, sep, right = value.partition(":")
        if not sep:
            raise ValueError(f"invalid aspect ratio {value!r}")
        ratio = float(left) / float(right)
    else:
        ratio = float(value)
    if ratio <= 0:
        raise ValueError(f"aspect ratio must be positive, got {value!r}")
    return ratio


def aspect_box(
    ratio: float, width: Optional[float] = None, height: Optional[float] = None
) -> Optional[tuple[int, int]]:
    """Derive the missing side of a box from an aspect ratio.

    Width wins when both are given. Returns None when neither is given.

    Examples
    --------
        >>> aspect_box(1.5, width=300)
        (300, 200)
        >>> aspect_box(1.5, height=200)
        (300, 200)

    """
    if width:
        return int(width), round(width / ratio)
    if height:
        return round(height * ratio), int(height)
    return None
