#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mediaforge/config.py
"""Configuration discovery and loading for mediaforge.

Settings come from four layers, lowest priority first:

1. built-in defaults (``mediaforge.constants``)
2. a config file: the explicit ``--config`` path, else the path in
   ``MEDIAFORGE_CONFIG``, else the first of ``.mediaforge.toml``,
   ``.mediaforge.yaml``, ``.mediaforge.yml``, ``.mediaforge.json`` or a
   ``pyproject.toml`` with a ``[tool.mediaforge]`` table, searched from the
   current directory up to the root and then in the home directory
3. environment variables ``MEDIAFORGE_<FIELD>`` (``MEDIAFORGE_PORT=8080``)
4. explicit overrides, typically CLI flags

Example ``.mediaforge.toml``::

    asset_root = "/srv/media"
    port = 8080
    max_pipeline_seconds = 120

"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]

import yaml

from mediaforge.constants import (
    DEFAULT_ASSET_ROOT,
    DEFAULT_FFMPEG_BINARY,
    DEFAULT_HOST,
    DEFAULT_MAX_PIPELINE_SECONDS,
    DEFAULT_PORT,
    DEFAULT_STREAM_CHUNK_SIZE,
)
from mediaforge.exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "MEDIAFORGE_"
CONFIG_ENV_VAR = "MEDIAFORGE_CONFIG"
DEDICATED_CONFIG_FILENAMES = [".mediaforge.toml", ".mediaforge.yaml", ".mediaforge.yml", ".mediaforge.json"]
CONFIG_FILENAMES = DEDICATED_CONFIG_FILENAMES + ["pyproject.toml"]


@dataclass(frozen=True)
class MediaForgeSettings:
    """Runtime settings for the server and the executors.

    Parameters
    ----------
    asset_root : str, default "uploads"
        Directory assets are served from
    host : str, default "127.0.0.1"
        Interface the HTTP server binds to
    port : int, default 3000
        Port the HTTP server listens on; 0 picks a free port
    ffmpeg_binary : str, default "ffmpeg"
        Name or path of the ffmpeg executable
    max_pipeline_seconds : float, default 300
        Upper bound on one video transcode
    stream_chunk_size : int, default 65536
        Bytes per chunk when streaming video

    """

    asset_root: str = DEFAULT_ASSET_ROOT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    ffmpeg_binary: str = DEFAULT_FFMPEG_BINARY
    max_pipeline_seconds: float = DEFAULT_MAX_PIPELINE_SECONDS
    stream_chunk_size: int = DEFAULT_STREAM_CHUNK_SIZE

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"port must be between 0 and 65535, got {self.port}")
        if self.max_pipeline_seconds <= 0:
            raise ConfigError(f"max_pipeline_seconds must be positive, got {self.max_pipeline_seconds}")
        if self.stream_chunk_size <= 0:
            raise ConfigError(f"stream_chunk_size must be positive, got {self.stream_chunk_size}")

    def create_updated(self, **kwargs: Any) -> MediaForgeSettings:
        """Create new settings with updated field values."""
        return replace(self, **kwargs)


_FIELD_TYPES: dict[str, type] = {"port": int, "stream_chunk_size": int, "max_pipeline_seconds": float}


def _coerce_field(name: str, value: Any, source: str) -> Any:
    """Convert a raw config or environment value to the field's type."""
    target = _FIELD_TYPES.get(name, str)
    if isinstance(value, bool):
        raise ConfigError(f"Invalid value for '{name}': {value!r}", source=source)
    try:
        return target(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"Invalid value for '{name}' in {source}: expected {target.__name__}, got {value!r}",
            source=source,
            original_error=e,
        ) from e


def settings_from_mapping(
    data: Mapping[str, Any], base: Optional[MediaForgeSettings] = None, source: str = "config"
) -> MediaForgeSettings:
    """Apply a mapping of setting names to values on top of ``base``.

    Raises
    ------
    ConfigError
        If a key is unknown or a value has the wrong type

    """
    base = base or MediaForgeSettings()
    known = {f.name for f in fields(MediaForgeSettings)}
    updates: dict[str, Any] = {}
    for key, value in data.items():
        name = key.replace("-", "_")
        if name not in known:
            raise ConfigError(f"Unknown setting '{key}' in {source}", source=source)
        updates[name] = _coerce_field(name, value, source)
    return base.create_updated(**updates) if updates else base


def env_settings(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Collect ``MEDIAFORGE_<FIELD>`` values from the environment."""
    environ = os.environ if environ is None else environ
    values = {}
    for f in fields(MediaForgeSettings):
        env_key = f"{ENV_PREFIX}{f.name.upper()}"
        if env_key in environ:
            values[f.name] = environ[env_key]
    return values


def _load_pyproject_section(pyproject_path: Path) -> Dict[str, Any]:
    """Return the ``[tool.mediaforge]`` table of a pyproject.toml, or an empty dict."""
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {pyproject_path}: {e}", source=str(pyproject_path), original_error=e) from e

    config = data.get("tool", {}).get("mediaforge", {})
    if not isinstance(config, dict):
        raise ConfigError(
            f"[tool.mediaforge] section in {pyproject_path} must be a table, got {type(config).__name__}",
            source=str(pyproject_path),
        )
    return config


def find_config_in_parents(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a config file in ``start_dir`` or one of its parents.

    Dedicated config files win over ``pyproject.toml``; a pyproject only
    counts when it has a ``[tool.mediaforge]`` table.
    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        for filename in DEDICATED_CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        pyproject_path = current / "pyproject.toml"
        if pyproject_path.is_file():
            try:
                if _load_pyproject_section(pyproject_path):
                    return pyproject_path
            except (ConfigError, OSError):
                logger.debug(f"Skipping unreadable {pyproject_path}")

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def discover_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a config file in the parent chain, then in the home directory."""
    found = find_config_in_parents(start_dir)
    if found:
        return found

    home = Path.home()
    for filename in DEDICATED_CONFIG_FILENAMES:
        config_path = home / filename
        if config_path.is_file():
            return config_path

    return None


def load_config_file(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from a TOML, YAML, JSON or pyproject.toml file.

    Raises
    ------
    ConfigError
        If the file is missing, unreadable or not a mapping

    """
    config_path = Path(config_path)
    source = str(config_path)

    if not config_path.is_file():
        raise ConfigError(f"Configuration file does not exist: {config_path}", source=source)

    ext = config_path.suffix.lower()
    try:
        if config_path.name.lower() == "pyproject.toml":
            return _load_pyproject_section(config_path)
        if ext == ".toml":
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        elif ext in (".yaml", ".yml"):
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        elif ext == ".json":
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            raise ConfigError(f"Unsupported config file format: {ext}. Use .toml, .yaml or .json", source=source)
    except ConfigError:
        raise
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Error reading config file {config_path}: {e}", source=source, original_error=e) from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {config_path} must contain a mapping at root level, got {type(data).__name__}",
            source=source,
        )
    return data


def load_settings(
    config_path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
    discover: bool = True,
) -> MediaForgeSettings:
    """Build settings from defaults, a config file, the environment and overrides.

    Parameters
    ----------
    config_path : str, optional
        Explicit config file (``--config``)
    overrides : mapping, optional
        Highest-priority values; ``None`` values are ignored so unset CLI
        flags can be passed straight through
    environ : mapping, optional
        Environment to read; defaults to ``os.environ``
    discover : bool, default True
        Search for a config file when none is given explicitly

    Raises
    ------
    ConfigError
        If any layer holds an unknown key or an invalid value

    """
    environ = os.environ if environ is None else environ
    settings = MediaForgeSettings()

    path: Optional[Path | str] = config_path or environ.get(CONFIG_ENV_VAR)
    if not path and discover:
        path = discover_config_file()
    if path:
        logger.debug(f"Loading configuration from {path}")
        settings = settings_from_mapping(load_config_file(path), settings, source=str(path))

    settings = settings_from_mapping(env_settings(environ), settings, source="environment")

    if overrides:
        explicit = {key: value for key, value in overrides.items() if value is not None}
        settings = settings_from_mapping(explicit, settings, source="command line")

    return settings


__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAMES",
    "MediaForgeSettings",
    "discover_config_file",
    "env_settings",
    "find_config_in_parents",
    "load_config_file",
    "load_settings",
    "settings_from_mapping",
]
