#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/cli/output.py
"""Terminal output helpers for the mediaforge CLI."""

from __future__ import annotations

import argparse
import importlib.util
import logging
import sys
from typing import TextIO

logger = logging.getLogger(__name__)


def check_rich_available() -> bool:
    """Return True if the optional rich package can be imported."""
    return importlib.util.find_spec("rich") is not None


def should_use_rich_output(args: argparse.Namespace, stream: TextIO | None = None) -> bool:
    """Decide whether ``--rich`` formatting applies to this invocation.

    Rich output needs the ``--rich`` flag and an importable rich package.
    It is only used on a terminal unless ``--force-rich`` is also given, so
    piped output stays plain. Asking for it without rich installed logs a
    warning and falls back to plain text.
    """
    if not getattr(args, "rich", False):
        return False

    if not check_rich_available():
        logger.warning("--rich ignored: the optional 'rich' package is not installed (pip install mediaforge[rich])")
        return False

    if getattr(args, "force_rich", False):
        return True

    target = stream if stream is not None else sys.stdout
    isatty = getattr(target, "isatty", None)
    return bool(callable(isatty) and isatty())
