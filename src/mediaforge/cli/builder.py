#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/cli/builder.py
"""Global argument parser and exit codes for the mediaforge CLI."""

from __future__ import annotations

import argparse

from mediaforge.exceptions import (
    ConfigError,
    DependencyError,
    NotFoundError,
    OperationError,
    UnsupportedMediaError,
    UnsupportedTypeError,
    ValidationError,
)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_DEPENDENCY_ERROR = 2
EXIT_VALIDATION_ERROR = 3
EXIT_FILE_ERROR = 4
EXIT_OPERATION_ERROR = 5
EXIT_CONFIG_ERROR = 6

COMMANDS = {
    "serve": "Serve transformation URLs over HTTP",
    "render": "Render one transformation URL to a file or stdout",
    "parse": "Show how a transformation URL is parsed",
    "list-operations": "List registered image and video operations",
}


def get_exit_code_for_exception(exception: Exception) -> int:
    """Map an exception to an appropriate CLI exit code.

    Parameters
    ----------
    exception : Exception
        The exception to map to an exit code

    Returns
    -------
    int
        The appropriate exit code for the exception type

    """
    if isinstance(exception, (DependencyError, ImportError)):
        return EXIT_DEPENDENCY_ERROR

    if isinstance(exception, ConfigError):
        return EXIT_CONFIG_ERROR

    if isinstance(exception, (ValidationError, UnsupportedTypeError, UnsupportedMediaError)):
        return EXIT_VALIDATION_ERROR

    if isinstance(exception, (NotFoundError, OSError)):
        return EXIT_FILE_ERROR

    if isinstance(exception, OperationError):
        return EXIT_OPERATION_ERROR

    return EXIT_ERROR


def _format_commands() -> str:
    lines = ["commands:"]
    for name, description in COMMANDS.items():
        lines.append(f"  {name:18}{description}")
    return "\n".join(lines)


def create_parser() -> argparse.ArgumentParser:
    """Create the parser for options shared by every command.

    Command-specific options are parsed by each command's own parser; this
    parser only consumes the global options and leaves the rest.
    """
    parser = argparse.ArgumentParser(
        prog="mediaforge",
        usage="mediaforge [global options] <command> [command options]",
        description="Serve and render CDN-style media transformation URLs.",
        epilog=_format_commands(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this help message and exit")
    parser.add_argument("--version", action="store_true", help="Show the version and exit")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write log output to this file")
    parser.add_argument("--trace", action="store_true", help="Debug logging with timestamps and thread names")
    parser.add_argument("--config", help="Configuration file (TOML, YAML or JSON)")
    return parser


__all__ = [
    "COMMANDS",
    "EXIT_CONFIG_ERROR",
    "EXIT_DEPENDENCY_ERROR",
    "EXIT_ERROR",
    "EXIT_FILE_ERROR",
    "EXIT_OPERATION_ERROR",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "create_parser",
    "get_exit_code_for_exception",
]
