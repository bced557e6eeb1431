#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/cli/commands/render.py
"""Render a single transformation URL without the HTTP server."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import BinaryIO, Optional

from mediaforge.cli.builder import EXIT_CONFIG_ERROR, EXIT_SUCCESS, get_exit_code_for_exception
from mediaforge.cli.commands.shared import (
    add_runtime_arguments,
    build_dispatcher,
    load_cli_settings,
    parse_command_args,
)
from mediaforge.dispatch import MediaDispatcher, MediaRequest
from mediaforge.exceptions import MediaForgeError

logger = logging.getLogger(__name__)


def _create_render_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediaforge render",
        description="Render a transformation URL to a file (or stdout).",
    )
    parser.add_argument("url", help="Transformation URL path, e.g. /image/upload/c_fill,w_200,h_200/photo.jpg")
    parser.add_argument("-o", "--out", help="Output file (default: stdout)")
    add_runtime_arguments(parser)
    return parser


def _render(dispatcher: MediaDispatcher, request: MediaRequest, out: BinaryIO) -> None:
    if request.domain == "image":
        out.write(dispatcher.render_image(request))
    else:
        dispatcher.stream_video(request, out)


def handle_render_command(args: list[str] | None = None, config_path: Optional[str] = None) -> int:
    """Handle the render command.

    Returns
    -------
    int
        Exit code (0 for success)

    """
    parsed = parse_command_args(_create_render_parser(), args or [])
    if isinstance(parsed, int):
        return parsed

    settings = load_cli_settings(
        config_path,
        {
            "asset_root": parsed.asset_root,
            "ffmpeg_binary": parsed.ffmpeg_binary,
            "max_pipeline_seconds": parsed.max_pipeline_seconds,
        },
    )
    if settings is None:
        return EXIT_CONFIG_ERROR

    dispatcher = build_dispatcher(settings)

    try:
        request = dispatcher.prepare(parsed.url)
        if parsed.out:
            with open(parsed.out, "wb") as f:
                _render(dispatcher, request, f)
            print(f"Wrote {request.mime_type} to {parsed.out}", file=sys.stderr)
        else:
            _render(dispatcher, request, sys.stdout.buffer)
            sys.stdout.buffer.flush()
    except (MediaForgeError, OSError) as e:
        logger.debug("Render failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return get_exit_code_for_exception(e)

    return EXIT_SUCCESS
