"""Pytest configuration and shared fixtures for the mediaforge test suite.

This module provides shared fixtures, test configuration, and utilities
that are used across the entire test suite.
"""

import os
from pathlib import Path
from typing import Generator

import pytest
from utils import (
    cleanup_test_dir,
    create_test_temp_dir,
    make_image_bytes,
    make_shape_on_white,
    make_transparent_logo,
)

from mediaforge.assets import FileSystemAssetSource
from mediaforge.dispatch import MediaDispatcher

# Configure Hypothesis for property-based testing
try:
    from hypothesis import Phase, Verbosity, settings

    settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
    settings.register_profile("dev", max_examples=20)
    settings.register_profile(
        "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
    )

    settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))
except ImportError:
    # Hypothesis not installed, skip configuration
    pass


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests - full pipeline tests")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")
    config.addinivalue_line("markers", "fuzzing: Property-based tests driven by Hypothesis")
    config.addinivalue_line("markers", "video: Tests that run the ffmpeg executable")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files.

    Yields
    ------
    Path
        Temporary directory path that will be cleaned up after test.

    """
    temp_path = create_test_temp_dir()
    try:
        yield temp_path
    finally:
        cleanup_test_dir(temp_path)


@pytest.fixture
def photo_jpeg() -> bytes:
    """400x300 JPEG."""
    return make_image_bytes((400, 300), fmt="JPEG")


@pytest.fixture
def logo_png() -> bytes:
    """120x80 PNG, transparent except for a blue rectangle."""
    return make_transparent_logo()


@pytest.fixture
def asset_root(temp_dir, photo_jpeg, logo_png) -> Path:
    """Asset directory holding a photo, a transparent logo and a shape on white."""
    (temp_dir / "photo.jpg").write_bytes(photo_jpeg)
    (temp_dir / "logo.png").write_bytes(logo_png)
    (temp_dir / "shape.png").write_bytes(make_shape_on_white())
    (temp_dir / "notes.txt").write_text("not media", encoding="utf-8")
    (temp_dir / "nested").mkdir()
    (temp_dir / "nested" / "inner.png").write_bytes(make_image_bytes((50, 40), fmt="PNG"))
    return temp_dir


@pytest.fixture
def asset_source(asset_root) -> FileSystemAssetSource:
    return FileSystemAssetSource(asset_root)


@pytest.fixture
def dispatcher(asset_source) -> MediaDispatcher:
    return MediaDispatcher(asset_source)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove MEDIAFORGE_* variables so tests see only what they set."""
    for key in list(os.environ):
        if key.startswith("MEDIAFORGE_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
