#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/plugins/__init__.py
"""Custom image operations backed by swappable providers.

A custom operation is a tag (``e_background_removal``) whose behaviour is
supplied by a provider object implementing ``apply(buffer, params)``. It is
registered into the image registry like any built-in tag, so replacing the
provider never touches the executors or the dispatcher:

    >>> from mediaforge.plugins import register_custom_operation
    >>> register_custom_operation("e_background_removal", MyModelProvider())

"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Optional, Protocol, runtime_checkable

from mediaforge.constants import DEFAULT_EDGE_LOWER_THRESHOLD, DEFAULT_EDGE_UPPER_THRESHOLD, ParamValue
from mediaforge.operations.metadata import NUMBER, OperationMetadata, ParameterSpec
from mediaforge.plugins.background_removal import EdgeDetectionBackgroundRemoval

if TYPE_CHECKING:
    from mediaforge.operations.registry import OperationRegistry


@runtime_checkable
class CustomOperationProvider(Protocol):
    """Capability interface for custom image operations."""

    def apply(self, buffer: bytes, params: Mapping[str, ParamValue]) -> bytes:
        """Return a new encoded buffer derived from ``buffer``."""
        ...


BACKGROUND_REMOVAL_PARAMETERS = {
    "lowerThreshold": ParameterSpec(
        type=NUMBER, default=DEFAULT_EDGE_LOWER_THRESHOLD, help="Lower hysteresis threshold for edge detection"
    ),
    "upperThreshold": ParameterSpec(
        type=NUMBER, default=DEFAULT_EDGE_UPPER_THRESHOLD, help="Upper hysteresis threshold for edge detection"
    ),
}


def custom_operation(
    name: str,
    provider: CustomOperationProvider,
    description: str = "",
    parameters: Optional[dict[str, ParameterSpec]] = None,
) -> OperationMetadata:
    """Wrap a provider as operation metadata."""
    if not isinstance(provider, CustomOperationProvider):
        raise TypeError(f"provider for '{name}' must implement apply(buffer, params)")
    return OperationMetadata(
        name=name,
        description=description or f"Custom operation ({type(provider).__name__})",
        handler=provider.apply,
        parameters=dict(parameters or {}),
        tags=["custom"],
    )


def register_custom_operation(
    name: str,
    provider: CustomOperationProvider,
    description: str = "",
    parameters: Optional[dict[str, ParameterSpec]] = None,
    registry: Optional[OperationRegistry] = None,
) -> OperationMetadata:
    """Register (or replace) a custom image operation.

    Parameters
    ----------
    name : str
        URL tag of the operation
    provider : CustomOperationProvider
        Object implementing ``apply(buffer, params) -> bytes``
    description : str, optional
        Description shown by ``list-operations``
    parameters : dict[str, ParameterSpec], optional
        Parameters the provider reads
    registry : OperationRegistry, optional
        Target registry; defaults to the global image registry

    """
    if registry is None:
        from mediaforge.operations.image import image_registry

        registry = image_registry

    metadata = custom_operation(name, provider, description, parameters)
    registry.register(metadata)
    return metadata


BUILTIN_CUSTOM_OPERATIONS: list[OperationMetadata] = [
    custom_operation(
        "e_background_removal",
        EdgeDetectionBackgroundRemoval(),
        description="Remove the background by masking outside detected edge contours",
        parameters=BACKGROUND_REMOVAL_PARAMETERS,
    ),
]

__all__ = [
    "BACKGROUND_REMOVAL_PARAMETERS",
    "BUILTIN_CUSTOM_OPERATIONS",
    "CustomOperationProvider",
    "EdgeDetectionBackgroundRemoval",
    "custom_operation",
    "register_custom_operation",
]
