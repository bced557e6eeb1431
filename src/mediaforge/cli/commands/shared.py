#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/cli/commands/shared.py
"""Helpers shared by the serve and render commands."""

from __future__ import annotations

import argparse
import sys
from typing import Any, Mapping, Optional

from mediaforge.assets import FileSystemAssetSource
from mediaforge.config import MediaForgeSettings, load_settings
from mediaforge.dispatch import MediaDispatcher
from mediaforge.exceptions import ConfigError
from mediaforge.pipeline import VideoPipeline


def add_runtime_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the options that override runtime settings."""
    parser.add_argument("--root", dest="asset_root", help="Directory assets are read from")
    parser.add_argument("--ffmpeg", dest="ffmpeg_binary", help="ffmpeg executable (default: ffmpeg on PATH)")
    parser.add_argument(
        "--timeout", dest="max_pipeline_seconds", type=float, help="Maximum seconds for one video transcode"
    )


def load_cli_settings(config_path: Optional[str], overrides: Mapping[str, Any]) -> Optional[MediaForgeSettings]:
    """Load settings, printing the error and returning None on failure."""
    try:
        return load_settings(config_path=config_path, overrides=overrides)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def build_dispatcher(settings: MediaForgeSettings) -> MediaDispatcher:
    """Create a dispatcher reading from ``settings.asset_root``."""
    video_pipeline = VideoPipeline(
        ffmpeg_binary=settings.ffmpeg_binary,
        chunk_size=settings.stream_chunk_size,
        timeout=settings.max_pipeline_seconds,
    )
    return MediaDispatcher(FileSystemAssetSource(settings.asset_root), video_pipeline=video_pipeline)


def parse_command_args(parser: argparse.ArgumentParser, args: list[str]) -> argparse.Namespace | int:
    """Parse ``args``; returns the exit code instead when argparse exits (--help, errors)."""
    try:
        return parser.parse_args(args)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0
