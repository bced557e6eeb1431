#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/logging_utils.py
"""Root logger setup shared by the CLI commands and the HTTP server."""

from __future__ import annotations

import logging
import sys
from typing import Optional

PLAIN_FORMAT = "%(levelname)s: %(message)s"
# Requests run on their own threads; the thread name tells them apart
TRACE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(threadName)s] [%(name)s] %(message)s"
TRACE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Pillow logs every chunk it parses at DEBUG
QUIET_LOGGERS = ("PIL",)


def resolve_level(log_level: int | str) -> int:
    """Turn a level name (``"info"``) or number into a logging level."""
    if isinstance(log_level, int):
        return log_level
    return getattr(logging, str(log_level).upper(), logging.INFO)


def _prepare(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
) -> logging.Logger:
    """Replace the root logger's handlers with a stderr and optional file handler.

    Parameters
    ----------
    log_level : int | str
        Numeric logging level or level name
    log_file : str, optional
        Also append log records to this file. A file that cannot be opened
        is reported as a warning and skipped.
    trace_mode : bool, default False
        Use the trace format with timestamps, thread and logger names, and
        leave third-party loggers at the requested level

    Returns
    -------
    logging.Logger
        The root logger

    """
    level = resolve_level(log_level)
    formatter = (
        logging.Formatter(TRACE_FORMAT, datefmt=TRACE_DATE_FORMAT) if trace_mode else logging.Formatter(PLAIN_FORMAT)
    )

    handlers = [_prepare(logging.StreamHandler(sys.stderr), level, formatter)]
    file_error: Optional[OSError] = None
    if log_file:
        try:
            handlers.append(_prepare(logging.FileHandler(log_file, encoding="utf-8"), level, formatter))
        except OSError as e:
            file_error = e

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)

    if file_error is not None:
        root.warning(f"Could not open log file {log_file}: {file_error}")
    elif log_file:
        root.info(f"Logging to file: {log_file}")

    quiet_level = level if trace_mode else max(level, logging.INFO)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    return root
