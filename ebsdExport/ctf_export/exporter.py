"""Export gridded EBSD maps into Channel Text Files (CTF)."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ebsdExport.ctf_export.acquisition import (
    CprMetadata,
    ParameterPrompt,
    resolve_acquisition_parameters,
)
from ebsdExport.ctf_export.assembly import (
    ZERO_SNAP_THRESHOLD,
    assemble_data_array,
    gather_fields,
)
from ebsdExport.ctf_export.geometry import ScanGeometry, detect_scan_geometry
from ebsdExport.ctf_export.model import GriddedMap
from ebsdExport.ctf_export.phases import (
    DEFAULT_PHASE_COMMENT,
    build_phase_table,
    compact_phase_ids,
)
from ebsdExport.ctf_export.writer import CtfHeader, CtfWriter


@dataclass(frozen=True)
class ExportOptions:
    """Options controlling the CTF output.

    Parameters:
        author: Author written on the "Author" line (empty when unknown).
        phase_comment: Comment written at the end of each phase line.
        legacy_phase_gap_check: Reproduce the legacy deleted-phase test.
        zero_threshold: Coordinates closer to zero than this become zero.
    """

    author: str = ""
    phase_comment: str = DEFAULT_PHASE_COMMENT
    legacy_phase_gap_check: bool = False
    zero_threshold: float = ZERO_SNAP_THRESHOLD

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ExportOptions":
        """Create options from a configuration dictionary.

        Parameters:
            config: The "ctf_export" configuration section.

        Returns:
            ExportOptions instance.
        """

        author = config.get("author")
        return cls(
            author="" if author is None else str(author),
            phase_comment=str(config.get("phase_comment", DEFAULT_PHASE_COMMENT)),
            legacy_phase_gap_check=bool(config.get("legacy_phase_gap_check", False)),
            zero_threshold=float(config.get("zero_threshold", ZERO_SNAP_THRESHOLD)),
        )


@dataclass(frozen=True)
class CtfExportResult:
    """Summary of a CTF export operation.

    Parameters:
        output_path: Path to the written CTF file.
        n_points: Number of data rows written.
        n_phases: Number of phase table entries written.
        geometry: Raster order detected on the exported map.
    """

    output_path: Path
    n_points: int
    n_phases: int
    geometry: ScanGeometry


class CtfExporter:
    """Export a gridded EBSD map to a Channel Text File.

    The export runs as one pass: optional spatial flips, acquisition
    parameter resolution, raster detection, phase table construction, data
    assembly and writing.
    """

    def __init__(
        self,
        options: Optional[ExportOptions] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize the exporter.

        Parameters:
            options: Output options; defaults are used when omitted.
            logger: Optional logger instance.
        """

        self._options = options or ExportOptions()
        self._logger = logger or logging.getLogger(__name__)
        self._writer = CtfWriter(logger=self._logger)

    def export(
        self,
        grid: GriddedMap,
        output_path: Path,
        metadata: Optional[CprMetadata] = None,
        manual: bool = False,
        prompt: Optional[ParameterPrompt] = None,
        flip_ud: bool = False,
        flip_lr: bool = False,
    ) -> CtfExportResult:
        """Export the map to a CTF file.

        Parameters:
            grid: Gridded EBSD map.
            output_path: Destination CTF path.
            metadata: Optional acquisition metadata from a .cpr file.
            manual: Whether to ask for acquisition parameters via the prompt.
            prompt: Prompt collaborator used for manual entry.
            flip_ud: Mirror the spatial data upside down.
            flip_lr: Mirror the spatial data left to right.

        Returns:
            CtfExportResult describing the written file.
        """

        output_path = Path(output_path)
        self._logger.info("Exporting 'ctf' file %s", output_path)
        if flip_ud:
            self._logger.info("Flipping EBSD spatial data upside down")
            grid = grid.flipud()
        if flip_lr:
            self._logger.info("Flipping EBSD spatial data left right")
            grid = grid.fliplr()

        parameters = resolve_acquisition_parameters(
            metadata=metadata, manual=manual, prompt=prompt, logger=self._logger
        )
        geometry = detect_scan_geometry(grid.x, grid.y)
        self._logger.debug("Detected scan geometry %s", geometry)
        phases = build_phase_table(
            grid, comment=self._options.phase_comment, logger=self._logger
        )
        phase_id = compact_phase_ids(
            grid.phase_id, legacy_gap_check=self._options.legacy_phase_gap_check
        )
        self._logger.info("Assembling data array")
        data = assemble_data_array(
            gather_fields(grid, phase_id),
            geometry,
            zero_threshold=self._options.zero_threshold,
        )
        x_cells, y_cells = geometry.cell_counts(grid.shape)
        header = CtfHeader(
            project=str(output_path),
            author=self._options.author,
            x_cells=x_cells,
            y_cells=y_cells,
            x_step=float(grid.dx),
            y_step=float(grid.dy),
            parameters=parameters,
        )
        self._writer.write_file(output_path, header, phases, data)
        self._logger.info(
            "Exported %d points and %d phases to %s",
            data.shape[0],
            len(phases),
            output_path,
        )
        return CtfExportResult(
            output_path=output_path,
            n_points=int(data.shape[0]),
            n_phases=len(phases),
            geometry=geometry,
        )


def export_ctf(
    grid: GriddedMap,
    output_path: Path,
    metadata: Optional[CprMetadata] = None,
    manual: bool = False,
    prompt: Optional[ParameterPrompt] = None,
    flip_ud: bool = False,
    flip_lr: bool = False,
    options: Optional[ExportOptions] = None,
    logger: Optional[logging.Logger] = None,
) -> CtfExportResult:
    """Export a gridded EBSD map to a CTF file.

    Parameters:
        grid: Gridded EBSD map.
        output_path: Destination CTF path.
        metadata: Optional acquisition metadata from a .cpr file.
        manual: Whether to ask for acquisition parameters via the prompt.
        prompt: Prompt collaborator used for manual entry.
        flip_ud: Mirror the spatial data upside down.
        flip_lr: Mirror the spatial data left to right.
        options: Output options.
        logger: Optional logger instance.

    Returns:
        CtfExportResult describing the written file.
    """

    exporter = CtfExporter(options=options, logger=logger)
    return exporter.export(
        grid,
        output_path,
        metadata=metadata,
        manual=manual,
        prompt=prompt,
        flip_ud=flip_ud,
        flip_lr=flip_lr,
    )
