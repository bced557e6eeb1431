"""mediaforge - CDN-style media transformation URLs for images and video.

A transformation URL names a stored asset and an ordered chain of
directives::

    /image/upload/c_fill,w_200,h_200/q_auto,quality_70/photo.jpg
    /video/upload/so_5,du_10/c_scale,w_640/clip.mp4

mediaforge parses the chain, resolves every directive against a per-domain
operation registry and executes it: images eagerly with Pillow, operation
after operation; video as one ffmpeg transcode streamed to the caller.

Key Features
------------
- Tolerant URL grammar: incidental path segments are dropped, unknown
  directives are skipped with a warning
- Extensible registries with entry point plugin discovery
- Swappable custom image operations (edge-detection background removal
  ships by default)
- Streaming video with backpressure, disconnect handling and a timeout
- Threaded HTTP server and a CLI (``mediaforge serve``, ``render``,
  ``parse``, ``list-operations``)

Examples
--------
Render a URL against a directory of assets:

    >>> from mediaforge import FileSystemAssetSource, MediaDispatcher
    >>> dispatcher = MediaDispatcher(FileSystemAssetSource("uploads"))
    >>> request = dispatcher.prepare("/image/upload/c_fill,w_200,h_200/photo.jpg")
    >>> thumbnail = dispatcher.render_image(request)

Parse without executing:

    >>> from mediaforge import parse_transformation_url
    >>> public_id, chain = parse_transformation_url("/video/upload/so_5,du_10/clip.mp4")
    >>> chain[0].type, dict(chain[0].params)
    ('so_5', {'du': 10})

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# Check Python version before any imports
import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "mediaforge requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "1.0.0"

from typing import Any

from mediaforge.exceptions import (
    ConfigError,
    DependencyError,
    MalformedUrlError,
    MediaForgeError,
    NotFoundError,
    OperationError,
    SinkClosedError,
    UnsupportedMediaError,
    UnsupportedTypeError,
    ValidationError,
)
from mediaforge.parser import (
    ParsedUrl,
    TransformationChain,
    TransformationSpec,
    coerce_value,
    parse_transformation_url,
)
from mediaforge.progress import ProgressCallback, ProgressEvent

# Attributes that import Pillow and the registries, loaded on first access
_lazy_attributes = {
    "AssetSource": ("mediaforge.assets", "AssetSource"),
    "FileSystemAssetSource": ("mediaforge.assets", "FileSystemAssetSource"),
    "MemoryAssetSource": ("mediaforge.assets", "MemoryAssetSource"),
    "guess_mime_type": ("mediaforge.assets", "guess_mime_type"),
    "MediaDispatcher": ("mediaforge.dispatch", "MediaDispatcher"),
    "MediaRequest": ("mediaforge.dispatch", "MediaRequest"),
    "ImagePipeline": ("mediaforge.pipeline", "ImagePipeline"),
    "VideoPipeline": ("mediaforge.pipeline", "VideoPipeline"),
    "VideoCommand": ("mediaforge.video_command", "VideoCommand"),
    "OperationMetadata": ("mediaforge.operations", "OperationMetadata"),
    "OperationRegistry": ("mediaforge.operations", "OperationRegistry"),
    "ParameterSpec": ("mediaforge.operations", "ParameterSpec"),
    "image_registry": ("mediaforge.operations", "image_registry"),
    "video_registry": ("mediaforge.operations", "video_registry"),
    "register_custom_operation": ("mediaforge.plugins", "register_custom_operation"),
    "MediaForgeSettings": ("mediaforge.config", "MediaForgeSettings"),
    "load_settings": ("mediaforge.config", "load_settings"),
}


__all__ = [
    "__version__",
    # Parsing
    "ParsedUrl",
    "TransformationChain",
    "TransformationSpec",
    "coerce_value",
    "parse_transformation_url",
    # Execution
    "AssetSource",
    "FileSystemAssetSource",
    "MemoryAssetSource",
    "guess_mime_type",
    "ImagePipeline",
    "VideoPipeline",
    "VideoCommand",
    "MediaDispatcher",
    "MediaRequest",
    # Registries
    "OperationMetadata",
    "OperationRegistry",
    "ParameterSpec",
    "image_registry",
    "video_registry",
    "register_custom_operation",
    # Configuration
    "MediaForgeSettings",
    "load_settings",
    # Progress system
    "ProgressCallback",
    "ProgressEvent",
    # Exceptions
    "ConfigError",
    "DependencyError",
    "MalformedUrlError",
    "MediaForgeError",
    "NotFoundError",
    "OperationError",
    "SinkClosedError",
    "UnsupportedMediaError",
    "UnsupportedTypeError",
    "ValidationError",
]


def __getattr__(name: str) -> Any:
    """Lazy load the executors, registries and asset sources on first access.

    Raises
    ------
    AttributeError
        If the attribute is not found and is not a lazy-loadable item

    """
    import importlib

    if name in _lazy_attributes:
        module_path, attribute = _lazy_attributes[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attribute)
        globals()[name] = value
        return value

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
