#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/operations/__init__.py
"""Operation registries and built-in operations for each media domain.

Examples
--------
    >>> from mediaforge.operations import get_registry
    >>> get_registry("image").list_operations(tags=["resize"])
    ['ar', 'c_fill', 'c_fit', 'c_pad', 'c_scale', 'c_thumb']

"""

from mediaforge.exceptions import UnsupportedTypeError
from mediaforge.operations.metadata import NUMBER, OperationMetadata, ParameterSpec
from mediaforge.operations.registry import ENTRY_POINT_GROUPS, OperationRegistry, ResolvedOperation
from mediaforge.operations.image import BUILTIN_IMAGE_OPERATIONS, image_registry
from mediaforge.operations.video import BUILTIN_VIDEO_OPERATIONS, video_registry


def get_registry(domain: str) -> OperationRegistry:
    """Return the global registry for ``domain``.

    Raises
    ------
    UnsupportedTypeError
        If the domain is not image or video

    """
    if domain == "image":
        return image_registry
    if domain == "video":
        return video_registry
    raise UnsupportedTypeError(domain)


__all__ = [
    "BUILTIN_IMAGE_OPERATIONS",
    "BUILTIN_VIDEO_OPERATIONS",
    "ENTRY_POINT_GROUPS",
    "NUMBER",
    "OperationMetadata",
    "OperationRegistry",
    "ParameterSpec",
    "ResolvedOperation",
    "get_registry",
    "image_registry",
    "video_registry",
]
