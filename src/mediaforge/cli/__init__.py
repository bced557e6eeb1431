#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/cli/__init__.py
"""Command-line interface for mediaforge.

Global options come before the command; everything after the command name
belongs to that command.

Environment Variable Support
----------------------------
Server settings can be given as ``MEDIAFORGE_<SETTING>`` environment
variables (``MEDIAFORGE_PORT``, ``MEDIAFORGE_ASSET_ROOT``) and in a config
file; command-line flags always win. ``MEDIAFORGE_CONFIG`` names a config
file when ``--config`` is not given.

Examples
--------
Serve the ``uploads`` directory::

    $ mediaforge serve --root uploads --port 3000

Render a thumbnail without HTTP::

    $ mediaforge render /image/upload/c_fill,w_200,h_200/photo.jpg --root uploads --out thumb.jpg

Inspect a chain::

    $ mediaforge parse /video/upload/so_5,du_10/clip.mp4 --json

List operations with rich formatting::

    $ mediaforge --log-level info list-operations video --rich

"""

from __future__ import annotations

import argparse
import logging
import sys

from mediaforge.cli.builder import EXIT_SUCCESS, EXIT_VALIDATION_ERROR, create_parser
from mediaforge.cli.commands import dispatch_command
from mediaforge.logging_utils import configure_logging

logger = logging.getLogger(__name__)

__all__ = ["main", "create_parser"]


def _setup_logging_level(parsed_args: argparse.Namespace) -> None:
    """Set up logging from the global options; --trace implies DEBUG."""
    log_level = logging.DEBUG if parsed_args.trace else getattr(logging, parsed_args.log_level)
    configure_logging(log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)


def main(args: list[str] | None = None) -> int:
    """Execute the CLI and return an exit code."""
    argv = list(sys.argv[1:] if args is None else args)

    parser = create_parser()
    parsed_args, remaining = parser.parse_known_args(argv)

    if parsed_args.version:
        from mediaforge import __version__

        print(f"mediaforge {__version__}")
        return EXIT_SUCCESS

    if not remaining:
        parser.print_help()
        return EXIT_SUCCESS if parsed_args.help else EXIT_VALIDATION_ERROR

    if parsed_args.help:
        # "mediaforge -h serve" asks for the command's help
        remaining.append("--help")

    _setup_logging_level(parsed_args)

    result = dispatch_command(remaining, config_path=parsed_args.config)
    if result is None:
        print(f"Error: unknown command '{remaining[0]}'", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_VALIDATION_ERROR
    return result
