"""Test utilities for the mediaforge test suite.

This module provides generators for small test images and videos, asset
source doubles and other common testing helpers.
"""

import io
import shutil
import subprocess
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from mediaforge.assets import MemoryAssetSource

FFMPEG_AVAILABLE = shutil.which("ffmpeg") is not None
FFPROBE_AVAILABLE = shutil.which("ffprobe") is not None

requires_ffmpeg = pytest.mark.skipif(not FFMPEG_AVAILABLE, reason="ffmpeg executable not on PATH")


def create_test_temp_dir() -> Path:
    """Create a temporary directory for test files."""
    return Path(tempfile.mkdtemp(prefix="mediaforge_test_"))


def cleanup_test_dir(path: Path) -> None:
    """Remove a directory created by ``create_test_temp_dir``."""
    shutil.rmtree(path, ignore_errors=True)


def make_image_bytes(size=(400, 300), color=(200, 40, 40), fmt="JPEG", mode="RGB") -> bytes:
    """Encode a solid-colour image."""
    image = Image.new(mode, size, color)
    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


def make_transparent_logo(size=(120, 80), box=(30, 20, 90, 60), color=(0, 0, 255, 255)) -> bytes:
    """PNG with a transparent canvas and an opaque rectangle in the middle."""
    image = Image.new("RGBA", size, (0, 0, 0, 0))
    image.paste(color, box)
    out = io.BytesIO()
    image.save(out, format="PNG")
    return out.getvalue()


def make_shape_on_white(size=(100, 100), box=(30, 30, 70, 70), color=(255, 0, 0)) -> bytes:
    """PNG with a filled rectangle on a white background, for edge detection."""
    image = Image.new("RGB", size, (255, 255, 255))
    image.paste(color, box)
    out = io.BytesIO()
    image.save(out, format="PNG")
    return out.getvalue()


def open_image(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def image_size(data: bytes) -> tuple[int, int]:
    return open_image(data).size


def make_test_video(path: Path, seconds: int = 20, size: str = "320x240") -> Path:
    """Write a test-pattern clip with a sine audio track using ffmpeg."""
    subprocess.run(
        [
            "ffmpeg",
            "-hide_banner",
            "-loglevel",
            "error",
            "-y",
            "-f",
            "lavfi",
            "-i",
            f"testsrc=duration={seconds}:size={size}:rate=25",
            "-f",
            "lavfi",
            "-i",
            f"sine=frequency=440:duration={seconds}",
            "-shortest",
            "-c:v",
            "mpeg4",
            "-c:a",
            "aac",
            str(path),
        ],
        check=True,
        timeout=120,
    )
    return path


def probe_duration(path: Path) -> float:
    """Return the container duration reported by ffprobe."""
    result = subprocess.run(
        [
            "ffprobe",
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ],
        check=True,
        capture_output=True,
        text=True,
        timeout=60,
    )
    return float(result.stdout.strip())


class CountingAssetSource(MemoryAssetSource):
    """In-memory asset source that records every read."""

    def __init__(self, assets=None):
        super().__init__(assets)
        self.reads: list[str] = []

    def read(self, public_id: str) -> bytes:
        self.reads.append(public_id)
        return super().read(public_id)


class CollectingSink:
    """Sink that keeps every chunk it receives."""

    def __init__(self):
        self.chunks: list[bytes] = []

    def write(self, data: bytes) -> int:
        self.chunks.append(bytes(data))
        return len(data)

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)


class DisconnectingSink:
    """Sink whose client goes away after ``accept`` chunks."""

    def __init__(self, accept: int = 1, error: type = BrokenPipeError):
        self.accept = accept
        self.error = error
        self.received = 0

    def write(self, data: bytes) -> int:
        if self.received >= self.accept:
            raise self.error("client went away")
        self.received += 1
        return len(data)
