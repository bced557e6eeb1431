#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/assets.py
"""Asset storage and MIME type resolution.

Assets are addressed by their public id (the final URL segment). Storage
is behind the small ``AssetSource`` protocol so the dispatcher never
touches the filesystem directly.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Mapping, Optional, Protocol, Union, runtime_checkable

from mediaforge.constants import EXTRA_MIME_TYPES
from mediaforge.exceptions import NotFoundError

logger = logging.getLogger(__name__)

for _extension, _mime_type in EXTRA_MIME_TYPES.items():
    mimetypes.add_type(_mime_type, _extension)


@runtime_checkable
class AssetSource(Protocol):
    """Read-only access to stored assets."""

    def read(self, public_id: str) -> bytes:
        """Return the asset's bytes.

        Raises
        ------
        NotFoundError
            If no asset exists under ``public_id``

        """
        ...


class FileSystemAssetSource:
    """Assets stored as files under a root directory.

    Parameters
    ----------
    root : str or Path
        Directory holding the assets. Public ids are paths relative to it;
        ids resolving outside the root are treated as missing.

    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self.root)!r})"

    def path_for(self, public_id: str) -> Path:
        """Resolve a public id to a path inside the root.

        Raises
        ------
        NotFoundError
            If the id is empty or escapes the root

        """
        if not public_id:
            raise NotFoundError(public_id)

        path = (self.root / public_id).resolve()
        try:
            path.relative_to(self.root)
        except ValueError:
            logger.warning(f"Rejected asset id outside the asset root: {public_id!r}")
            raise NotFoundError(public_id) from None
        return path

    def read(self, public_id: str) -> bytes:
        path = self.path_for(public_id)
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise NotFoundError(public_id, original_error=e) from e


class MemoryAssetSource:
    """Assets held in a mapping, for embedding and tests."""

    def __init__(self, assets: Optional[Mapping[str, bytes]] = None):
        self.assets: dict[str, bytes] = dict(assets or {})

    def read(self, public_id: str) -> bytes:
        try:
            return self.assets[public_id]
        except KeyError:
            raise NotFoundError(public_id) from None


def guess_mime_type(public_id: str) -> Optional[str]:
    """Guess a MIME type from the public id's extension.

    Examples
    --------
        >>> guess_mime_type("photo.jpg")
        'image/jpeg'
        >>> guess_mime_type("README") is None
        True

    """
    mime_type, _ = mimetypes.guess_type(public_id, strict=False)
    return mime_type


__all__ = [
    "AssetSource",
    "FileSystemAssetSource",
    "MemoryAssetSource",
    "guess_mime_type",
]
