#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/dispatch.py
"""Media-type dispatch from a transformation URL to an executor.

``MediaDispatcher`` validates a request before any asset is read: the URL
must parse, the domain must be ``image`` or ``video`` and the public id
must map to a MIME type of that domain. Only then do ``render_image`` and
``stream_video`` read the asset and hand it to the matching executor.

Examples
--------
    >>> from mediaforge import FileSystemAssetSource, MediaDispatcher
    >>> dispatcher = MediaDispatcher(FileSystemAssetSource("uploads"))
    >>> request = dispatcher.prepare("/image/upload/c_fill,w_200,h_200/photo.jpg")
    >>> request.mime_type
    'image/jpeg'
    >>> thumbnail = dispatcher.render_image(request)

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from mediaforge.assets import AssetSource, guess_mime_type
from mediaforge.constants import SUPPORTED_DOMAINS
from mediaforge.exceptions import UnsupportedMediaError, UnsupportedTypeError
from mediaforge.operations.registry import OperationRegistry
from mediaforge.parser import TransformationChain, parse_transformation_url
from mediaforge.pipeline import ImagePipeline, OutputSink, VideoPipeline

logger = logging.getLogger(__name__)

MimeResolver = Callable[[str], Optional[str]]
Executor = Union[ImagePipeline, VideoPipeline]


@dataclass(frozen=True)
class MediaRequest:
    """A validated request, ready to execute.

    Parameters
    ----------
    domain : str
        ``"image"`` or ``"video"``
    public_id : str
        Asset identifier
    transformations : TransformationChain
        Parsed directives in URL order
    mime_type : str
        MIME type of the asset, also the response content type

    """

    domain: str
    public_id: str
    transformations: TransformationChain
    mime_type: str


class MediaDispatcher:
    """Route requests to the image or video executor.

    Parameters
    ----------
    asset_source : AssetSource
        Where assets are read from
    mime_resolver : callable, optional
        Maps a public id to a MIME type; defaults to ``guess_mime_type``
    image_pipeline : ImagePipeline, optional
        Executor for images; a default one is created if omitted
    video_pipeline : VideoPipeline, optional
        Executor for video; a default one is created if omitted

    """

    def __init__(
        self,
        asset_source: AssetSource,
        mime_resolver: MimeResolver = guess_mime_type,
        image_pipeline: Optional[ImagePipeline] = None,
        video_pipeline: Optional[VideoPipeline] = None,
    ):
        self.asset_source = asset_source
        self.mime_resolver = mime_resolver
        self.image_pipeline = image_pipeline or ImagePipeline()
        self.video_pipeline = video_pipeline or VideoPipeline()

    def select(self, domain: Optional[str]) -> tuple[Executor, OperationRegistry]:
        """Return the executor and registry for ``domain``.

        Raises
        ------
        UnsupportedTypeError
            If the domain is not image or video

        """
        if domain == "image":
            return self.image_pipeline, self.image_pipeline.registry
        if domain == "video":
            return self.video_pipeline, self.video_pipeline.registry
        raise UnsupportedTypeError(domain, SUPPORTED_DOMAINS)

    def prepare(self, raw_path: str, domain: Optional[str] = None) -> MediaRequest:
        """Parse and validate a request path without reading the asset.

        Parameters
        ----------
        raw_path : str
            Transformation URL path, optionally with a query string
        domain : str, optional
            Media domain; defaults to the path segment before ``upload``

        Raises
        ------
        MalformedUrlError
            If the path is not a transformation URL
        UnsupportedTypeError
            If the domain is not image or video
        UnsupportedMediaError
            If the asset's MIME type is unknown or belongs to another domain

        """
        parsed = parse_transformation_url(raw_path)
        domain = domain if domain is not None else parsed.domain
        self.select(domain)

        mime_type = self.mime_resolver(parsed.public_id)
        if not mime_type:
            raise UnsupportedMediaError(parsed.public_id)
        if mime_type.split("/", 1)[0] != domain:
            raise UnsupportedMediaError(
                parsed.public_id, f"Unsupported file type for {domain}: {parsed.public_id} ({mime_type})"
            )

        logger.debug(f"Prepared {domain} request for {parsed.public_id!r} ({mime_type})")
        return MediaRequest(
            domain=str(domain),
            public_id=parsed.public_id,
            transformations=parsed.transformations,
            mime_type=mime_type,
        )

    def render_image(self, request: MediaRequest) -> bytes:
        """Read the asset and run the image chain.

        Raises
        ------
        NotFoundError
            If the asset does not exist; no operation runs
        OperationError
            If an operation fails

        """
        source = self.asset_source.read(request.public_id)
        return self.image_pipeline.run(source, request.transformations)

    def stream_video(self, request: MediaRequest, sink: OutputSink) -> None:
        """Read the asset and stream the transcoded video into ``sink``.

        Raises
        ------
        NotFoundError
            If the asset (or a spliced asset) does not exist
        OperationError
            If the chain is invalid or the transcode fails

        """
        source = self.asset_source.read(request.public_id)
        self.video_pipeline.run(
            source,
            request.transformations,
            sink,
            container=request.mime_type,
            asset_source=self.asset_source,
        )


__all__ = [
    "MediaDispatcher",
    "MediaRequest",
]
