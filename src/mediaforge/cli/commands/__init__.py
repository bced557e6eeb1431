#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/cli/commands/__init__.py
"""CLI command handlers for mediaforge.

Command handlers are imported lazily so ``--help`` does not load Pillow or
the operation registries.
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


def dispatch_command(args: list[str], config_path: Optional[str] = None) -> int | None:
    """Run the command named by ``args[0]``.

    Parameters
    ----------
    args : list[str]
        Command name followed by its arguments
    config_path : str, optional
        Config file given with the global ``--config`` option

    Returns
    -------
    int or None
        Exit code if the command was handled, None if it is unknown

    """
    if not args:
        return None

    command, rest = args[0], args[1:]
    logger.debug(f"Dispatching command {command!r}")

    if command == "serve":
        from mediaforge.cli.commands.serve import handle_serve_command

        return handle_serve_command(rest, config_path=config_path)

    if command == "render":
        from mediaforge.cli.commands.render import handle_render_command

        return handle_render_command(rest, config_path=config_path)

    if command == "parse":
        from mediaforge.cli.commands.parse import handle_parse_command

        return handle_parse_command(rest)

    if command in ("list-operations", "operations"):
        from mediaforge.cli.commands.operations import handle_list_operations_command

        return handle_list_operations_command(rest)

    return None


__all__ = ["dispatch_command"]
