"""Top-level package for EBSD map export utilities."""

from __future__ import annotations

import logging
from importlib import metadata
from pathlib import Path

_LOGGER = logging.getLogger(__name__)
_VERSION_FILE = Path(__file__).resolve().parents[1] / "VERSION"
_DISTRIBUTION = "ebsd-ctf-export"


def _read_version() -> str:
    """Return the version from the source tree, else from installed metadata."""

    try:
        return _VERSION_FILE.read_text(encoding="utf-8").strip()
    except OSError as exc:
        _LOGGER.debug("VERSION file unavailable at %s: %s", _VERSION_FILE, exc)
    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        _LOGGER.warning("Version of %s unknown; using 0.0.0.", _DISTRIBUTION)
        return "0.0.0"


__version__ = _read_version()
