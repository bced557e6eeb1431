#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/cli/commands/serve.py
"""HTTP server command for the mediaforge CLI."""

from __future__ import annotations

import argparse
import errno
import logging
import sys
from pathlib import Path
from typing import Optional

from mediaforge.cli.builder import EXIT_CONFIG_ERROR, EXIT_ERROR, EXIT_FILE_ERROR, EXIT_SUCCESS
from mediaforge.cli.commands.shared import (
    add_runtime_arguments,
    build_dispatcher,
    load_cli_settings,
    parse_command_args,
)
from mediaforge.server import create_server
from mediaforge.utils.packages import executable_version, find_executable

logger = logging.getLogger(__name__)


def _create_serve_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediaforge serve",
        description="Serve /{image|video}/upload/{transformations}/{public_id} URLs over HTTP.",
    )
    parser.add_argument("--host", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: 3000)")
    add_runtime_arguments(parser)
    return parser


def _report_ffmpeg(binary: str) -> None:
    executable = find_executable(binary)
    if executable is None:
        logger.warning(f"ffmpeg executable '{binary}' not found; video requests will fail")
    else:
        logger.info(f"Video transcodes use {executable_version(executable) or executable}")


def handle_serve_command(args: list[str] | None = None, config_path: Optional[str] = None) -> int:
    """Handle the serve command.

    Parameters
    ----------
    args : list[str], optional
        Command arguments
    config_path : str, optional
        Config file from the global ``--config`` option

    Returns
    -------
    int
        Exit code

    """
    parsed = parse_command_args(_create_serve_parser(), args or [])
    if isinstance(parsed, int):
        return parsed

    settings = load_cli_settings(
        config_path,
        {
            "host": parsed.host,
            "port": parsed.port,
            "asset_root": parsed.asset_root,
            "ffmpeg_binary": parsed.ffmpeg_binary,
            "max_pipeline_seconds": parsed.max_pipeline_seconds,
        },
    )
    if settings is None:
        return EXIT_CONFIG_ERROR

    asset_root = Path(settings.asset_root)
    if not asset_root.is_dir():
        print(f"Error: Asset root is not a directory: {asset_root}", file=sys.stderr)
        return EXIT_FILE_ERROR

    dispatcher = build_dispatcher(settings)
    _report_ffmpeg(settings.ffmpeg_binary)

    try:
        with create_server(dispatcher, settings.host, settings.port) as httpd:
            print(f"Serving {asset_root.resolve()} at {httpd.url}")
            print("Press Ctrl+C to stop")
            try:
                httpd.serve_forever()
            except KeyboardInterrupt:
                print("\nShutting down server...")
            return EXIT_SUCCESS
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            print(f"Error: Port {settings.port} is already in use", file=sys.stderr)
        else:
            print(f"Error: Could not start server: {e}", file=sys.stderr)
        return EXIT_ERROR
