#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/utils/packages.py
"""Lookups for installed distributions and external programs."""

from __future__ import annotations

import importlib
import logging
import shutil
import subprocess
from importlib import metadata
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

PackageRequirement = tuple[str, str, str]


def installed_version(distribution: str) -> Optional[str]:
    """Return the installed version of ``distribution``, or None."""
    try:
        return metadata.version(distribution)
    except metadata.PackageNotFoundError:
        return None


def check_version_requirement(distribution: str, version_spec: str) -> tuple[bool, Optional[str]]:
    """Check an installed distribution against a specifier such as ``>=4.8``.

    Returns
    -------
    tuple of (bool, str or None)
        Whether the requirement is met, and the installed version

    """
    installed = installed_version(distribution)
    if installed is None:
        return False, None

    from packaging.specifiers import SpecifierSet

    return SpecifierSet(version_spec).contains(installed, prereleases=True), installed


def find_missing_packages(
    packages: Iterable[PackageRequirement],
) -> tuple[list[tuple[str, str]], list[tuple[str, str, str]], Optional[ImportError]]:
    """Try to import each requirement and collect what is unusable.

    Parameters
    ----------
    packages : iterable of (str, str, str)
        ``(distribution, import_name, version_spec)``; an empty spec accepts
        any version

    Returns
    -------
    tuple
        Missing ``(distribution, spec)`` pairs, ``(distribution, required,
        installed)`` mismatches and the first ImportError seen

    """
    missing: list[tuple[str, str]] = []
    mismatched: list[tuple[str, str, str]] = []
    first_error: Optional[ImportError] = None

    for distribution, import_name, version_spec in packages:
        try:
            importlib.import_module(import_name)
        except ImportError as e:
            missing.append((distribution, version_spec))
            first_error = first_error or e
            continue

        if version_spec:
            ok, installed = check_version_requirement(distribution, version_spec)
            if not ok:
                mismatched.append((distribution, version_spec, installed or "unknown"))

    return missing, mismatched, first_error


def find_executable(name: str) -> Optional[str]:
    """Locate a program such as ``ffmpeg`` by bare name or explicit path."""
    return shutil.which(name)


def executable_version(executable: str, timeout: float = 10) -> Optional[str]:
    """Return the first line of ``<executable> -version``.

    ffmpeg answers with e.g. ``ffmpeg version 6.1.1 Copyright ...``. Returns
    None when the program cannot be run or prints nothing.
    """
    try:
        result = subprocess.run([executable, "-version"], capture_output=True, text=True, timeout=timeout, check=False)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Could not query version of {executable}: {e}")
        return None

    lines = result.stdout.strip().splitlines()
    return lines[0].strip() if lines else None
