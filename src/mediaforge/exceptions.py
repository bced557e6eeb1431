#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the mediaforge library.

This module defines the exception classes raised while parsing
transformation URLs, resolving assets and executing media pipelines.
Every failure is local to one request; the HTTP front end maps these
classes onto client error responses.

Exception Hierarchy
-------------------
- MediaForgeError (base exception)

  - ValidationError (parameter/option validation)
    - MalformedUrlError (chain delimiter absent)

  - UnsupportedTypeError (domain other than image/video)

  - UnsupportedMediaError (MIME type cannot be determined)

  - NotFoundError (asset absent from storage)

  - OperationError (a transformation operation failed)

  - SinkClosedError (the stream consumer went away)

  - ConfigError (invalid configuration file or environment)

  - DependencyError (missing/incompatible packages or executables)

Unknown transformation tags are deliberately not represented here: they
are logged and skipped by the operation registries.

"""

from __future__ import annotations

import shlex
from typing import Any


class MediaForgeError(Exception):
    """Base exception class for all mediaforge-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(MediaForgeError):
    """Exception raised for invalid input parameters or options.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class MalformedUrlError(ValidationError):
    """Exception raised when a path cannot be read as a transformation URL.

    Raised when the path has no chain delimiter segment, or when nothing
    follows the delimiter. No asset is read once this is raised.

    Parameters
    ----------
    message : str, optional
        Custom error message
    url : str, optional
        The offending path

    """

    def __init__(self, message: str | None = None, url: str | None = None):
        """Initialize the malformed URL error."""
        if message is None:
            message = "Invalid transformation URL."
        super().__init__(message, parameter_name="url", parameter_value=url)
        self.url = url


class UnsupportedTypeError(MediaForgeError):
    """Exception raised for a media domain other than the supported ones.

    Parameters
    ----------
    domain : str or None
        The requested domain
    supported : tuple of str, optional
        Domains that are accepted

    """

    def __init__(self, domain: str | None, supported: tuple[str, ...] = ("image", "video")):
        """Initialize the unsupported type error."""
        message = f"Unsupported type: '{domain}'. Expected one of: {', '.join(supported)}"
        super().__init__(message)
        self.domain = domain
        self.supported = supported


class UnsupportedMediaError(MediaForgeError):
    """Exception raised when the MIME type of an asset cannot be determined.

    Parameters
    ----------
    public_id : str
        Asset identifier whose type is unknown
    message : str, optional
        Custom error message

    """

    def __init__(self, public_id: str, message: str | None = None):
        """Initialize the unsupported media error."""
        if message is None:
            message = f"Unsupported file type: {public_id}"
        super().__init__(message)
        self.public_id = public_id


class NotFoundError(MediaForgeError):
    """Exception raised when an asset is not present in storage.

    Parameters
    ----------
    public_id : str
        Identifier that could not be resolved
    message : str, optional
        Custom error message. If not provided, uses default message
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, public_id: str, message: str | None = None, original_error: Exception | None = None):
        """Initialize the not found error."""
        if message is None:
            message = f"Asset not found: {public_id}"
        super().__init__(message, original_error=original_error)
        self.public_id = public_id


class OperationError(MediaForgeError):
    """Exception raised when a transformation operation fails.

    Aborts the whole chain. The message is surfaced to the client as-is.

    Parameters
    ----------
    message : str
        Description of the failure
    operation : str, optional
        Tag of the operation that failed (e.g. ``c_crop``)
    original_error : Exception, optional
        The underlying exception from the imaging or video backend

    Attributes
    ----------
    operation : str or None
        Tag of the operation that failed

    """

    def __init__(self, message: str, operation: str | None = None, original_error: Exception | None = None):
        """Initialize the operation error."""
        super().__init__(message, original_error)
        self.operation = operation


class SinkClosedError(MediaForgeError):
    """Exception raised by a stream sink that no longer accepts bytes.

    The video executor treats this like a client disconnect: it stops
    writing and releases the transcode process.
    """


class ConfigError(MediaForgeError):
    """Exception raised for invalid configuration files or values.

    Parameters
    ----------
    message : str
        Description of the configuration problem
    source : str, optional
        Where the bad value came from (file path or environment variable)

    """

    def __init__(self, message: str, source: str | None = None, original_error: Exception | None = None):
        """Initialize the configuration error."""
        super().__init__(message, original_error)
        self.source = source


class DependencyError(MediaForgeError):
    """Exception raised when a feature's Python packages or programs are unavailable.

    Background removal needs OpenCV and NumPy, video needs the ``ffmpeg``
    executable and ``--rich`` output needs rich. Unless a message is given,
    the error lists everything that is missing and how to install it.

    Parameters
    ----------
    component : str
        Feature that cannot run ("background-removal", "video", "rich-output")
    missing_packages : list of (str, str)
        ``(distribution, version_spec)`` pairs that could not be imported
    version_mismatches : list of (str, str, str), optional
        ``(distribution, required, installed)`` triples
    missing_executables : list of str, optional
        Programs that were not found on PATH
    message : str, optional
        Replaces the generated message
    original_import_error : ImportError, optional
        First import failure, kept as ``original_error``

    """

    def __init__(
        self,
        component: str,
        missing_packages: list[tuple[str, str]],
        version_mismatches: list[tuple[str, str, str]] | None = None,
        missing_executables: list[str] | None = None,
        message: str | None = None,
        original_import_error: ImportError | None = None,
    ):
        """Initialize the dependency error."""
        self.component = component
        self.missing_packages = list(missing_packages)
        self.version_mismatches = list(version_mismatches or [])
        self.missing_executables = list(missing_executables or [])
        self.original_import_error = original_import_error
        super().__init__(message or self._describe(), original_error=original_import_error)

    def _describe(self) -> str:
        needed = [f"'{name}{spec}'" for name, spec in self.missing_packages]
        needed += [
            f"'{name}{required}' ({installed} installed)" for name, required, installed in self.version_mismatches
        ]
        needed += [f"the '{name}' executable" for name in self.missing_executables]
        lines = [f"{self.component} requires {', '.join(needed)}"]

        pip_args = [f"{name}{spec}" for name, spec in self.missing_packages]
        pip_args += [f"{name}{required}" for name, required, _ in self.version_mismatches]
        if pip_args:
            lines.append("Install with: pip install --upgrade " + " ".join(shlex.quote(arg) for arg in pip_args))
        if self.missing_executables:
            lines.append("Put the executable on PATH or configure its location (ffmpeg_binary, --ffmpeg)")
        return "\n".join(lines)


__all__ = [
    "MediaForgeError",
    "ValidationError",
    "MalformedUrlError",
    "UnsupportedTypeError",
    "UnsupportedMediaError",
    "NotFoundError",
    "OperationError",
    "SinkClosedError",
    "ConfigError",
    "DependencyError",
]
