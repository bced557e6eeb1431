#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for the mediaforge library.

This module centralizes the URL grammar tokens, operation defaults and
streaming limits used across mediaforge so they can be discovered and
tuned in one place.

Constants are organized by category:
1. Type Definitions - Literal types and type aliases
2. URL Grammar - delimiter and separator tokens
3. Image Operation Defaults
4. Video Operation Defaults
5. Streaming and Server Defaults
6. Media Types
"""

from __future__ import annotations

from typing import Literal, Union

# =============================================================================
# Type Definitions
# =============================================================================

MediaDomain = Literal["image", "video"]
ParamValue = Union[int, float, str]

SUPPORTED_DOMAINS: tuple[str, ...] = ("image", "video")

# =============================================================================
# URL Grammar
# =============================================================================

# Path segment that separates the domain prefix from the transformation chain
CHAIN_DELIMITER = "upload"

# Separator between a parameter key and its value (``w_600``)
PARAM_SEPARATOR = "_"

# Separator between the type token and parameter tokens inside one segment
COMPONENT_SEPARATOR = ","

# Marker for a query string trailing the public id
QUERY_MARKER = "?"

# =============================================================================
# Image Operation Defaults
# =============================================================================

DEFAULT_IMAGE_QUALITY = 80
DEFAULT_PAD_BACKGROUND = "black"
DEFAULT_FLATTEN_BACKGROUND = "white"

# Canny thresholds for the edge-detection background removal provider
DEFAULT_EDGE_LOWER_THRESHOLD = 50
DEFAULT_EDGE_UPPER_THRESHOLD = 150

# Pillow formats that accept a ``quality`` keyword on save
QUALITY_AWARE_FORMATS = frozenset({"JPEG", "WEBP", "AVIF"})

# Fallback encoder when the decoded image reports no format
DEFAULT_IMAGE_FORMAT = "PNG"

# Largest width or height an operation may produce
MAX_OUTPUT_DIMENSION = 10_000

# =============================================================================
# Video Operation Defaults
# =============================================================================

DEFAULT_VIDEO_QSCALE = 5
DEFAULT_BLUR_RADIUS = 10
DEFAULT_START_OFFSET = 0

DEFAULT_FFMPEG_BINARY = "ffmpeg"

# MIME type -> (ffmpeg muxer, extra output options needed to write it to a pipe)
VIDEO_CONTAINERS: dict[str, tuple[str, tuple[str, ...]]] = {
    "video/mp4": ("mp4", ("-movflags", "frag_keyframe+empty_moov")),
    "video/quicktime": ("mov", ("-movflags", "frag_keyframe+empty_moov")),
    "video/webm": ("webm", ()),
    "video/x-matroska": ("matroska", ()),
    "video/ogg": ("ogg", ()),
    "video/mpeg": ("mpeg", ()),
    "video/x-msvideo": ("avi", ()),
}
DEFAULT_VIDEO_CONTAINER = ("matroska", ())

# =============================================================================
# Streaming and Server Defaults
# =============================================================================

DEFAULT_STREAM_CHUNK_SIZE = 64 * 1024
DEFAULT_MAX_PIPELINE_SECONDS = 300.0
DEFAULT_STDERR_TAIL_LINES = 20

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_ASSET_ROOT = "uploads"

# =============================================================================
# Media Types
# =============================================================================

# Registered with ``mimetypes`` on import of mediaforge.assets; some platforms
# ship tables without these.
EXTRA_MIME_TYPES: dict[str, str] = {
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".heic": "image/heic",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
}
