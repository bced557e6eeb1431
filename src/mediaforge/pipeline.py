#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/pipeline.py
"""Pipeline executors for images and video.

The two media domains run a transformation chain under different
disciplines:

- ``ImagePipeline`` is eager. Each operation decodes the previous
  operation's output buffer, transforms it and re-encodes it, in chain
  order. The first failure aborts the chain and no partial result escapes.
- ``VideoPipeline`` is declarative. The chain is folded into a
  ``VideoCommand`` without touching media, then rendered to a single ffmpeg
  invocation whose stdout is copied to the caller's sink in fixed-size
  chunks.

Examples
--------
Render an image chain:

    >>> from mediaforge import parse_transformation_url
    >>> from mediaforge.pipeline import ImagePipeline
    >>> public_id, chain = parse_transformation_url("/image/upload/c_fill,w_200,h_200/photo.jpg")
    >>> thumbnail = ImagePipeline().run(source_bytes, chain)

Stream a trimmed clip into a file:

    >>> from mediaforge.pipeline import VideoPipeline
    >>> public_id, chain = parse_transformation_url("/video/upload/so_5,du_10/clip.mp4")
    >>> with open("out.mp4", "wb") as sink:
    ...     VideoPipeline().run(clip_bytes, chain, sink, container="video/mp4")

"""

from __future__ import annotations

import collections
import logging
import os
import shlex
import subprocess
import tempfile
import threading
from typing import IO, TYPE_CHECKING, Any, Iterable, Optional, Protocol, cast

from mediaforge.constants import (
    DEFAULT_FFMPEG_BINARY,
    DEFAULT_MAX_PIPELINE_SECONDS,
    DEFAULT_STDERR_TAIL_LINES,
    DEFAULT_STREAM_CHUNK_SIZE,
)
from mediaforge.exceptions import DependencyError, MediaForgeError, OperationError, SinkClosedError
from mediaforge.operations.image import image_registry
from mediaforge.operations.registry import OperationRegistry
from mediaforge.operations.video import video_registry
from mediaforge.parser import TransformationSpec
from mediaforge.progress import ProgressCallback, ProgressEvent
from mediaforge.utils.decorators import debug_timer
from mediaforge.utils.packages import find_executable
from mediaforge.video_command import VideoCommand

if TYPE_CHECKING:
    from mediaforge.assets import AssetSource

logger = logging.getLogger(__name__)

# Errors that mean the receiving side of a stream went away
DISCONNECT_ERRORS = (BrokenPipeError, ConnectionResetError, SinkClosedError)


class OutputSink(Protocol):
    """Destination of a streamed result.

    ``write`` may block; a blocked write holds the executor back. Raising
    ``BrokenPipeError``, ``ConnectionResetError`` or ``SinkClosedError``
    signals that the receiver is gone.
    """

    def write(self, data: bytes) -> Any: ...


class _ExecutorBase:
    """Shared progress reporting for the executors."""

    def __init__(self, registry: OperationRegistry, progress_callback: Optional[ProgressCallback] = None):
        self.registry = registry
        self.progress_callback = progress_callback

    def _emit_progress(
        self, event_type: str, message: str, current: int = 0, total: int = 0, metadata: Optional[dict[str, Any]] = None
    ) -> None:
        """Emit a progress event if a callback is configured.

        Callback failures are logged and never interrupt the pipeline.
        """
        if self.progress_callback is None:
            return

        try:
            event = ProgressEvent(
                event_type=event_type,  # type: ignore[arg-type]
                message=message,
                current=current,
                total=total,
                metadata=metadata or {},
            )
            self.progress_callback(event)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}", exc_info=True)

    def _apply(self, spec: TransformationSpec, target: Any) -> Any:
        """Resolve and apply one spec; returns None for unknown tags."""
        resolved = self.registry.resolve(spec)
        if resolved is None:
            return None

        try:
            return resolved.metadata.apply(target, resolved.params)
        except MediaForgeError as e:
            logger.error(f"{self.registry.domain} operation '{spec.type}' failed: {e}")
            if isinstance(e, OperationError) and e.operation is None:
                e.operation = spec.type
            raise
        except Exception as e:
            logger.error(f"{self.registry.domain} operation '{spec.type}' failed: {e}", exc_info=True)
            raise OperationError(f"{spec.type}: {e}", operation=spec.type, original_error=e) from e


class ImagePipeline(_ExecutorBase):
    """Eager, buffer-chained image executor.

    Parameters
    ----------
    registry : OperationRegistry, optional
        Registry used to resolve tags; defaults to the global image registry
    progress_callback : callable, optional
        Receives a ``ProgressEvent`` per applied or skipped operation

    """

    def __init__(
        self, registry: Optional[OperationRegistry] = None, progress_callback: Optional[ProgressCallback] = None
    ):
        super().__init__(registry if registry is not None else image_registry, progress_callback)

    def run(self, source: bytes, chain: Iterable[TransformationSpec]) -> bytes:
        """Apply ``chain`` to ``source`` in order.

        Parameters
        ----------
        source : bytes
            Encoded source image
        chain : iterable of TransformationSpec
            Directives in URL order; unknown tags are skipped

        Returns
        -------
        bytes
            Encoded result in the source's format. An empty chain returns
            ``source`` unchanged.

        Raises
        ------
        OperationError
            If any operation fails; the message names the failing tag

        """
        specs = list(chain)
        total = len(specs)
        buffer = source
        self._emit_progress("started", f"Applying {total} operation(s)", current=0, total=total)

        for index, spec in enumerate(specs, start=1):
            with debug_timer(logger, f"image {spec.type}"):
                try:
                    result = self._apply(spec, buffer)
                except MediaForgeError as e:
                    self._emit_progress(
                        "error", f"{spec.type} failed", index, total, metadata={"error": str(e), "operation": spec.type}
                    )
                    raise

            if result is None:
                self._emit_progress("skipped", spec.type, index, total, metadata={"operation": spec.type})
                continue
            if not isinstance(result, bytes):
                raise OperationError(
                    f"{spec.type}: handler returned {type(result).__name__}, expected bytes", operation=spec.type
                )

            buffer = result
            self._emit_progress("item_done", spec.type, index, total, metadata={"operation": spec.type})

        self._emit_progress("finished", "Image pipeline complete", current=total, total=total)
        return buffer


def _drain_stderr(stream: IO[bytes], tail: collections.deque) -> None:
    """Keep the last lines of ffmpeg's stderr so the pipe never fills."""
    for line in iter(stream.readline, b""):
        tail.append(line.decode("utf-8", errors="replace").rstrip())
    stream.close()


class VideoPipeline(_ExecutorBase):
    """Declarative video executor streaming one ffmpeg transcode.

    Parameters
    ----------
    registry : OperationRegistry, optional
        Registry used to resolve tags; defaults to the global video registry
    ffmpeg_binary : str, default "ffmpeg"
        Name or path of the ffmpeg executable
    chunk_size : int, default 64 KiB
        Size of the reads copied from ffmpeg's stdout to the sink
    timeout : float, default 300
        Maximum wall-clock seconds for one transcode
    progress_callback : callable, optional
        Receives ``started``, ``finished`` and ``error`` events

    """

    def __init__(
        self,
        registry: Optional[OperationRegistry] = None,
        ffmpeg_binary: str = DEFAULT_FFMPEG_BINARY,
        chunk_size: int = DEFAULT_STREAM_CHUNK_SIZE,
        timeout: float = DEFAULT_MAX_PIPELINE_SECONDS,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        super().__init__(registry if registry is not None else video_registry, progress_callback)
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.ffmpeg_binary = ffmpeg_binary
        self.chunk_size = chunk_size
        self.timeout = timeout

    def build(self, chain: Iterable[TransformationSpec], container: Optional[str] = None) -> VideoCommand:
        """Fold ``chain`` into a transcode description.

        Parameters
        ----------
        chain : iterable of TransformationSpec
            Directives in URL order; unknown tags are skipped
        container : str, optional
            MIME type of the source, used to pick the output muxer

        Raises
        ------
        OperationError
            If an operation rejects its parameters

        """
        command = VideoCommand.for_mime_type(container)
        for spec in chain:
            updated = self._apply(spec, command)
            if updated is None:
                continue
            if not isinstance(updated, VideoCommand):
                raise OperationError(
                    f"{spec.type}: handler returned {type(updated).__name__}, expected VideoCommand",
                    operation=spec.type,
                )
            command = updated
        return command

    def _resolve_binary(self) -> str:
        executable = find_executable(self.ffmpeg_binary)
        if executable is None:
            raise DependencyError(component="video", missing_packages=[], missing_executables=[self.ffmpeg_binary])
        return executable

    def run(
        self,
        source: bytes,
        chain: Iterable[TransformationSpec],
        sink: OutputSink,
        *,
        container: Optional[str] = None,
        asset_source: Optional[AssetSource] = None,
    ) -> None:
        """Transcode ``source`` through ``chain`` and stream the result into ``sink``.

        Parameters
        ----------
        source : bytes
            Encoded source video
        chain : iterable of TransformationSpec
            Directives in URL order
        sink : OutputSink
            Receives the output in chunks of at most ``chunk_size`` bytes
        container : str, optional
            MIME type of the source; selects the streaming container
        asset_source : AssetSource, optional
            Used to read the spliced asset for ``fl_splice``

        Raises
        ------
        OperationError
            If building fails, ffmpeg exits non-zero or the timeout expires.
            Bytes already written to the sink stay written.
        NotFoundError
            If a spliced asset does not exist
        DependencyError
            If the ffmpeg executable cannot be found

        Notes
        -----
        A sink raising a disconnect error stops the transcode and returns
        without raising.

        """
        command = self.build(chain, container)

        splice_bytes = None
        if command.splice is not None:
            if asset_source is None:
                raise OperationError("fl_splice requires an asset source", operation="fl_splice")
            splice_bytes = asset_source.read(command.splice.public_id)

        executable = self._resolve_binary()

        with tempfile.TemporaryDirectory(prefix="mediaforge-") as workdir:
            source_path = os.path.join(workdir, "input")
            with open(source_path, "wb") as f:
                f.write(source)

            splice_path = None
            if splice_bytes is not None:
                splice_path = os.path.join(workdir, "splice")
                with open(splice_path, "wb") as f:
                    f.write(splice_bytes)

            args = command.to_args(executable, source_path, splice_path)
            with debug_timer(logger, "video transcode"):
                self._execute(args, sink)

    def _execute(self, args: list[str], sink: OutputSink) -> None:
        logger.debug(f"Starting transcode: {shlex.join(args)}")
        self._emit_progress("started", "Starting transcode")

        try:
            process = subprocess.Popen(args, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except OSError as e:
            raise OperationError(f"Could not start ffmpeg: {e}", original_error=e) from e

        stderr_tail: collections.deque = collections.deque(maxlen=DEFAULT_STDERR_TAIL_LINES)
        drain = threading.Thread(target=_drain_stderr, args=(process.stderr, stderr_tail), daemon=True)
        drain.start()

        timed_out = threading.Event()

        def _expire() -> None:
            timed_out.set()
            process.kill()

        timer = threading.Timer(self.timeout, _expire)
        timer.daemon = True
        timer.start()

        stdout = cast(IO[bytes], process.stdout)
        bytes_written = 0
        disconnected = False
        try:
            while True:
                chunk = stdout.read1(self.chunk_size)
                if not chunk:
                    break
                try:
                    sink.write(chunk)
                except DISCONNECT_ERRORS as e:
                    logger.info(f"Client disconnected after {bytes_written} bytes ({e.__class__.__name__})")
                    disconnected = True
                    break
                bytes_written += len(chunk)
        except BaseException:
            process.kill()
            raise
        finally:
            timer.cancel()
            if disconnected:
                process.kill()
            stdout.close()
            returncode = process.wait()
            drain.join(timeout=5)

        if disconnected:
            return

        stderr_text = "\n".join(stderr_tail)
        if timed_out.is_set():
            self._emit_progress("error", "Transcode timed out", metadata={"error": stderr_text})
            raise OperationError(f"Video transcode exceeded {self.timeout:g}s and was stopped. {stderr_text}".strip())
        if returncode != 0:
            self._emit_progress("error", "Transcode failed", metadata={"error": stderr_text})
            raise OperationError(f"ffmpeg exited with status {returncode}: {stderr_text or 'no error output'}")

        logger.debug(f"Transcode streamed {bytes_written} bytes")
        self._emit_progress("finished", "Transcode complete", metadata={"bytes": bytes_written})


__all__ = [
    "DISCONNECT_ERRORS",
    "ImagePipeline",
    "OutputSink",
    "VideoPipeline",
]
