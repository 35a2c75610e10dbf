"""Export of gridded EBSD maps into Channel Text Files (CTF)."""

from ebsdExport.ctf_export.acquisition import (
    ConsoleParameterPrompt,
    CprMetadata,
    ParameterPrompt,
    resolve_acquisition_parameters,
)
from ebsdExport.ctf_export.errors import (
    AmbiguousGeometry,
    CtfExportError,
    InvalidParameter,
    IOFailure,
    ShapeMismatch,
    UserCancelled,
)
from ebsdExport.ctf_export.exporter import (
    CtfExporter,
    CtfExportResult,
    ExportOptions,
    export_ctf,
)
from ebsdExport.ctf_export.model import CrystalSymmetry, GriddedMap

__all__ = [
    "AmbiguousGeometry",
    "ConsoleParameterPrompt",
    "CprMetadata",
    "CrystalSymmetry",
    "CtfExportError",
    "CtfExportResult",
    "CtfExporter",
    "ExportOptions",
    "GriddedMap",
    "IOFailure",
    "InvalidParameter",
    "ParameterPrompt",
    "ShapeMismatch",
    "UserCancelled",
    "export_ctf",
    "resolve_acquisition_parameters",
]
