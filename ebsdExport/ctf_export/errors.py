"""Error types raised while exporting EBSD maps to CTF files."""

from __future__ import annotations


class CtfExportError(Exception):
    """Base class for all CTF export failures."""


class UserCancelled(CtfExportError):
    """Raised when manual entry of acquisition parameters is aborted."""


class IOFailure(CtfExportError, OSError):
    """Raised when the target file cannot be opened, written or closed."""


class ShapeMismatch(CtfExportError, ValueError):
    """Raised when per-point field arrays disagree in shape."""


class AmbiguousGeometry(CtfExportError, ValueError):
    """Raised when the raster direction of a coordinate grid cannot be determined."""


class InvalidParameter(CtfExportError, ValueError):
    """Raised when an acquisition parameter cannot be read or parsed."""
