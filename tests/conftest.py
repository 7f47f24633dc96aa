"""Pytest configuration for Directus source test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest
import structlog


def pytest_sessionstart() -> None:
    """Put the src tree on sys.path so tests import packages directly."""
    src_path = Path(__file__).resolve().parent.parent / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Drop logging config after each test.

    ``configure_logging`` binds the current stderr, which is a per-test
    capture stream under pytest and is closed once the test finishes.
    """
    yield
    structlog.reset_defaults()
