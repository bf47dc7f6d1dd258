"""Pytest configuration for adjusting import paths."""

from __future__ import annotations

import sys
from pathlib import Path


def pytest_configure() -> None:
    """Make ``main`` and ``oauth_helper`` importable from a plain checkout."""
    src_path = str(Path(__file__).resolve().parents[1] / "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)
