#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/operations/registry.py
"""Operation registries keyed by transformation tag.

Each media domain owns one registry. Executors ask the registry to
resolve every ``TransformationSpec`` of a chain; a tag that is not
registered resolves to None and is skipped with a warning, never an error.

Resolution order for a spec type:

1. exact match (``c_fill``, ``q_auto``, ``fl_splice``)
2. a ``key_value`` type whose key is registered (``so_5``, ``ar_1.5``):
   dispatched to ``key`` with the coerced value merged into the params
3. no match: unsupported, logged and skipped

Examples
--------
Register an operation in the image registry:

    >>> from mediaforge.operations import image_registry, OperationMetadata
    >>> image_registry.register(OperationMetadata(
    ...     name="e_grayscale", description="Drop colour", handler=to_grayscale
    ... ))

Plugins may also publish ``OperationMetadata`` objects under the
``mediaforge.image_operations`` or ``mediaforge.video_operations`` entry
point groups; they are discovered on first lookup.

"""

from __future__ import annotations

import importlib.metadata
import logging
from dataclasses import dataclass
from typing import Mapping, NamedTuple, Optional

from mediaforge.constants import PARAM_SEPARATOR, ParamValue
from mediaforge.operations.metadata import OperationMetadata
from mediaforge.parser import TransformationSpec, coerce_value

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUPS = {
    "image": "mediaforge.image_operations",
    "video": "mediaforge.video_operations",
}


class ResolvedOperation(NamedTuple):
    """An operation matched to a spec, with the params it should receive."""

    metadata: OperationMetadata
    params: Mapping[str, ParamValue]


@dataclass
class OperationRegistry:
    """Registry of operations for one media domain.

    Parameters
    ----------
    domain : str
        Media domain served by this registry (``"image"`` or ``"video"``)

    """

    domain: str

    def __post_init__(self) -> None:
        self._operations: dict[str, OperationMetadata] = {}
        self._initialized = False

    def _ensure_initialized(self) -> None:
        """Ensure plugin discovery has been run."""
        if not self._initialized:
            self._initialized = True
            self.discover_plugins()

    def register(self, metadata: OperationMetadata) -> None:
        """Register an operation, replacing any operation with the same tag."""
        if metadata.name in self._operations:
            logger.warning(f"{self.domain} operation '{metadata.name}' already registered, overwriting")

        self._operations[metadata.name] = metadata
        logger.debug(f"Registered {self.domain} operation: {metadata.name}")

    def unregister(self, name: str) -> bool:
        """Unregister an operation.

        Returns
        -------
        bool
            True if the operation was unregistered, False if not found

        """
        if name in self._operations:
            del self._operations[name]
            logger.debug(f"Unregistered {self.domain} operation: {name}")
            return True
        return False

    def has_operation(self, name: str) -> bool:
        """Check if an operation is registered under ``name``."""
        self._ensure_initialized()
        return name in self._operations

    def get_metadata(self, name: str) -> OperationMetadata:
        """Get metadata for an operation.

        Raises
        ------
        KeyError
            If the operation is not registered

        """
        self._ensure_initialized()

        if name not in self._operations:
            raise KeyError(f"{self.domain} operation '{name}' not registered")

        return self._operations[name]

    def list_operations(self, tags: Optional[list[str]] = None) -> list[str]:
        """List registered operation tags, sorted alphabetically.

        Parameters
        ----------
        tags : list[str], optional
            Only return operations carrying at least one of these tags

        """
        self._ensure_initialized()

        if tags is None:
            return sorted(self._operations)

        return sorted(name for name, metadata in self._operations.items() if any(t in metadata.tags for t in tags))

    def resolve(self, spec: TransformationSpec) -> Optional[ResolvedOperation]:
        """Match a spec to a registered operation.

        Returns
        -------
        ResolvedOperation or None
            None when the tag is unknown to this domain; the miss is logged

        """
        self._ensure_initialized()

        metadata = self._operations.get(spec.type)
        if metadata is not None:
            return ResolvedOperation(metadata, spec.params)

        key, sep, raw_value = spec.type.partition(PARAM_SEPARATOR)
        metadata = self._operations.get(key) if sep else None
        if metadata is not None:
            params = {key: coerce_value(raw_value), **spec.params}
            return ResolvedOperation(metadata, params)

        logger.warning(f"Unsupported transformation type for {self.domain}: {spec.type}")
        return None

    def discover_plugins(self) -> int:
        """Discover and register operations from entry points.

        Returns
        -------
        int
            Number of operations discovered and registered

        """
        group = ENTRY_POINT_GROUPS.get(self.domain)
        if group is None:
            return 0

        discovered_count = 0
        for ep in importlib.metadata.entry_points().select(group=group):
            try:
                metadata = ep.load()
            except Exception as e:
                logger.warning(f"Failed to load {self.domain} operation entry point '{ep.name}': {e}")
                continue

            if not isinstance(metadata, OperationMetadata):
                logger.warning(f"Entry point '{ep.name}' did not return OperationMetadata, skipping")
                continue

            self.register(metadata)
            discovered_count += 1

        if discovered_count:
            logger.info(f"Discovered {discovered_count} {self.domain} operation(s) from entry points")
        return discovered_count

    def clear(self) -> None:
        """Clear all registered operations.

        This is primarily useful for testing.

        """
        self._operations.clear()
        self._initialized = False


__all__ = [
    "ENTRY_POINT_GROUPS",
    "OperationRegistry",
    "ResolvedOperation",
]
