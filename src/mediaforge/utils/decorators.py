#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/utils/decorators.py
"""Decorators and context managers used around media operations."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, Iterable

from mediaforge.exceptions import DependencyError
from mediaforge.utils.packages import PackageRequirement, find_missing_packages


def requires_dependencies(component: str, packages: Iterable[PackageRequirement]) -> Callable:
    """Raise DependencyError instead of running the function when packages are unusable.

    The check runs on every call, so an operation provider can be
    registered without its optional packages and fail only when a request
    actually uses it.

    Parameters
    ----------
    component : str
        Feature name used in the error message ("background-removal")
    packages : iterable of (str, str, str)
        ``(distribution, import_name, version_spec)`` requirements

    Examples
    --------
        >>> @requires_dependencies("background-removal", [("opencv-python-headless", "cv2", "")])
        ... def remove_background(buffer, params):
        ...     import cv2
        ...     ...

    """
    requirements = list(packages)

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            missing, mismatched, import_error = find_missing_packages(requirements)
            if missing or mismatched:
                raise DependencyError(
                    component,
                    missing,
                    version_mismatches=mismatched,
                    original_import_error=import_error,
                ) from import_error
            return func(*args, **kwargs)

        return wrapper

    return decorator


@contextmanager
def debug_timer(logger: logging.Logger, operation: str) -> Generator[None, None, None]:
    """Log how long the block took, at DEBUG level only."""
    if not logger.isEnabledFor(logging.DEBUG):
        yield
        return

    started = time.perf_counter()
    try:
        yield
    finally:
        logger.debug(f"{operation} took {time.perf_counter() - started:.3f}s")
