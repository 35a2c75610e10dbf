"""Tests for the package version."""

from __future__ import annotations

from pathlib import Path

import ebsdExport


def test_version_matches_version_file() -> None:
    """The package version is the content of the VERSION file."""

    version_file = Path(__file__).resolve().parents[1] / "VERSION"
    assert ebsdExport.__version__ == version_file.read_text(encoding="utf-8").strip()
