#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/video_command.py
"""Declarative description of a video transcode.

Video operations never touch media. Each one receives the accumulated
``VideoCommand`` and returns an updated copy; only after the whole chain has
been folded does the video pipeline render the description into an ffmpeg
argument list and run it once.

Examples
--------
    >>> command = VideoCommand().with_seek(5).with_duration(10)
    >>> command.to_args("ffmpeg", "in.mp4")[5:]
    ['-ss', '5', '-i', 'in.mp4', '-t', '10', '-f', 'matroska', 'pipe:1']

"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional, Union

from mediaforge.constants import DEFAULT_VIDEO_CONTAINER, VIDEO_CONTAINERS

Number = Union[int, float]


def format_number(value: Number) -> str:
    """Render a number for the ffmpeg command line (``5``, ``2.5``)."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def container_for_mime(mime_type: Optional[str]) -> tuple[str, tuple[str, ...]]:
    """Return the ffmpeg muxer and pipe-safe options for a video MIME type.

    Unknown types stream as Matroska, which needs no seekable output.
    """
    if mime_type is None:
        return DEFAULT_VIDEO_CONTAINER
    return VIDEO_CONTAINERS.get(mime_type.lower(), DEFAULT_VIDEO_CONTAINER)


@dataclass(frozen=True)
class SpliceInput:
    """A second asset concatenated after the primary input.

    Parameters
    ----------
    public_id : str
        Asset to append, read through the same asset source as the primary
    with_audio : bool, default = True
        Concatenate audio streams too; both inputs must then carry audio

    """

    public_id: str
    with_audio: bool = True


@dataclass(frozen=True)
class VideoCommand:
    """Immutable transcode description built by video operations.

    Parameters
    ----------
    seek : float, optional
        Input seek in seconds, applied to the primary input only
    duration : float, optional
        Output duration in seconds
    filters : tuple of str
        Video filters applied to the primary input, in chain order
    post_splice_filters : tuple of str
        Video filters added after a splice; they apply to the concatenated
        stream
    splice : SpliceInput, optional
        Second input appended with a concat step
    output_options : tuple of str
        Extra encoder options (``-qscale:v 5``)
    container : str
        ffmpeg muxer used for the streamed output
    container_options : tuple of str
        Muxer options required for non-seekable output

    """

    seek: Optional[float] = None
    duration: Optional[float] = None
    filters: tuple[str, ...] = ()
    post_splice_filters: tuple[str, ...] = ()
    splice: Optional[SpliceInput] = None
    output_options: tuple[str, ...] = ()
    container: str = DEFAULT_VIDEO_CONTAINER[0]
    container_options: tuple[str, ...] = DEFAULT_VIDEO_CONTAINER[1]

    @classmethod
    def for_mime_type(cls, mime_type: Optional[str]) -> VideoCommand:
        """Start an empty command streaming in the container matching ``mime_type``."""
        muxer, options = container_for_mime(mime_type)
        return cls(container=muxer, container_options=options)

    def create_updated(self, **kwargs: Any) -> VideoCommand:
        """Create a new command with updated field values."""
        return replace(self, **kwargs)

    @property
    def start_offset(self) -> float:
        return self.seek if self.seek is not None else 0

    def with_seek(self, seconds: Number) -> VideoCommand:
        return self.create_updated(seek=seconds)

    def with_duration(self, seconds: Number) -> VideoCommand:
        return self.create_updated(duration=seconds)

    def with_filter(self, expression: str) -> VideoCommand:
        """Append a filter; after a splice it applies to the joined stream."""
        if self.splice is None:
            return self.create_updated(filters=self.filters + (expression,))
        return self.create_updated(post_splice_filters=self.post_splice_filters + (expression,))

    def with_output_option(self, flag: str, value: str) -> VideoCommand:
        """Set an output option, replacing an earlier value for the same flag."""
        options: list[str] = []
        existing = self.output_options
        i = 0
        while i < len(existing):
            if existing[i] == flag:
                i += 2
                continue
            options.append(existing[i])
            i += 1
        return self.create_updated(output_options=tuple(options) + (flag, value))

    def with_splice(self, public_id: str, with_audio: bool = True) -> VideoCommand:
        """Append a second input.

        Raises
        ------
        ValueError
            If the command already splices an input

        """
        if self.splice is not None:
            raise ValueError(f"only one splice per chain is supported (already splicing {self.splice.public_id!r})")
        return self.create_updated(splice=SpliceInput(public_id=public_id, with_audio=with_audio))

    def filter_graph(self) -> tuple[list[str], list[str]]:
        """Render the filter arguments.

        Returns
        -------
        tuple of (list of str, list of str)
            Filter arguments (``-vf`` or ``-filter_complex``) and the
            ``-map`` arguments that go with them

        """
        if self.splice is None:
            if not self.filters:
                return [], []
            return ["-vf", ",".join(self.filters)], []

        steps: list[str] = []
        primary = "[0:v]"
        if self.filters:
            steps.append(f"[0:v]{','.join(self.filters)}[v0]")
            primary = "[v0]"

        if self.splice.with_audio:
            steps.append(f"{primary}[0:a][1:v][1:a]concat=n=2:v=1:a=1[cv][ca]")
            audio_maps = ["-map", "[ca]"]
        else:
            steps.append(f"{primary}[1:v]concat=n=2:v=1:a=0[cv]")
            audio_maps = []

        video_label = "[cv]"
        if self.post_splice_filters:
            steps.append(f"[cv]{','.join(self.post_splice_filters)}[outv]")
            video_label = "[outv]"

        return ["-filter_complex", ";".join(steps)], ["-map", video_label, *audio_maps]

    def to_args(self, ffmpeg: str, source_path: str, splice_path: Optional[str] = None) -> list[str]:
        """Render the full ffmpeg argument list writing to stdout.

        Parameters
        ----------
        ffmpeg : str
            ffmpeg executable
        source_path : str
            Local path of the primary input
        splice_path : str, optional
            Local path of the spliced input; required when ``splice`` is set

        Raises
        ------
        ValueError
            If the command splices but no splice path is given

        """
        if self.splice is not None and splice_path is None:
            raise ValueError(f"splice input {self.splice.public_id!r} has not been staged")

        args = [ffmpeg, "-hide_banner", "-loglevel", "error", "-nostdin"]
        if self.seek is not None:
            args += ["-ss", format_number(self.seek)]
        args += ["-i", source_path]
        if self.splice is not None:
            args += ["-i", str(splice_path)]
        if self.duration is not None:
            args += ["-t", format_number(self.duration)]

        filter_args, map_args = self.filter_graph()
        args += filter_args + map_args
        args += list(self.output_options)
        args += ["-f", self.container, *self.container_options, "pipe:1"]
        return args


__all__ = [
    "SpliceInput",
    "VideoCommand",
    "container_for_mime",
    "format_number",
]
