"""Serialization of assembled EBSD data into the Channel Text File layout."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
import tempfile
from typing import Optional, Sequence, TextIO

import numpy as np

from ebsdExport.ctf_export.errors import IOFailure, ShapeMismatch
from ebsdExport.ctf_export.model import (
    DATA_COLUMNS,
    AcquisitionParameter,
    PhaseEntry,
)

CRLF = "\r\n"
ACQUISITION_PREFIX = "Euler angles refer to Sample Coordinate system (CS0)!"
DATA_FORMATS = (
    "%.0f",
    "%.4f",
    "%.4f",
    "%.0f",
    "%.0f",
    "%.4f",
    "%.4f",
    "%.4f",
    "%.4f",
    "%.0f",
    "%.0f",
)


@dataclass(frozen=True)
class CtfHeader:
    """Header values of a CTF file.

    Parameters:
        project: Project name written on the "Prj" line.
        author: Author name, empty when unknown.
        x_cells: Number of cells along x.
        y_cells: Number of cells along y.
        x_step: Step size along x.
        y_step: Step size along y.
        parameters: The 11 acquisition parameters in header order.
    """

    project: str
    author: str
    x_cells: int
    y_cells: int
    x_step: float
    y_step: float
    parameters: tuple[AcquisitionParameter, ...]


class CtfWriter:
    """Write headers, phase tables and data rows in CTF layout.

    Parameters:
        logger: Optional logger instance.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def write(
        self,
        stream: TextIO,
        header: CtfHeader,
        phases: Sequence[PhaseEntry],
        data: np.ndarray,
    ) -> None:
        """Serialize a complete CTF document into an open text stream.

        The stream must not translate newlines (open it with newline="").

        Parameters:
            stream: Writable text stream.
            header: Header values.
            phases: Phase table entries.
            data: Assembled data array shaped (n_points, 11).

        Returns:
            None.
        """

        data = np.asarray(data, dtype=np.float64)
        if data.ndim != 2 or data.shape[1] != len(DATA_COLUMNS):
            raise ShapeMismatch(
                f"Data array must be shaped (n, {len(DATA_COLUMNS)}), got {data.shape}."
            )
        self._logger.debug("Writing file header")
        self._write_header(stream, header)
        self._write_phases(stream, phases)
        self._logger.debug("Writing data array of %d points", data.shape[0])
        stream.write("\t".join(DATA_COLUMNS) + CRLF)
        if data.shape[0]:
            np.savetxt(stream, data, fmt=DATA_FORMATS, delimiter="\t", newline=CRLF)

    def write_file(
        self,
        path: Path,
        header: CtfHeader,
        phases: Sequence[PhaseEntry],
        data: np.ndarray,
    ) -> Path:
        """Write a CTF file, replacing the target only once it is complete.

        The document is written to a temporary file next to the target and
        renamed onto it on success; on failure the temporary file is removed
        and the target is left untouched.

        Parameters:
            path: Destination path.
            header: Header values.
            phases: Phase table entries.
            data: Assembled data array.

        Returns:
            Path of the written file.
        """

        path = Path(path)
        tmp_name: Optional[str] = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".part", dir=path.parent
            )
            with open(fd, "w", encoding="utf-8", newline="") as stream:
                self.write(stream, header, phases, data)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                _remove_quietly(Path(tmp_name), self._logger)
            raise IOFailure(f"Failed to write CTF file {path}: {exc}") from exc
        except BaseException:
            if tmp_name is not None:
                _remove_quietly(Path(tmp_name), self._logger)
            raise
        self._logger.info("Wrote CTF file %s", path)
        return path

    def _write_header(self, stream: TextIO, header: CtfHeader) -> None:
        lines = [
            "Channel Text File",
            f"Prj {header.project}",
            f"Author\t{header.author}",
            "JobMode\tGrid",
            f"XCells\t{header.x_cells:.0f}",
            f"YCells\t{header.y_cells:.0f}",
            f"XStep\t{header.x_step:.4f}",
            f"YStep\t{header.y_step:.4f}",
            f"AcqE1\t{0:.4f}",
            f"AcqE2\t{0:.4f}",
            f"AcqE3\t{0:.4f}",
        ]
        for line in lines:
            stream.write(line + CRLF)
        fields = "".join(
            f"{parameter.name}\t{parameter.formatted()}\t"
            for parameter in header.parameters
        )
        stream.write(f"{ACQUISITION_PREFIX}\t{fields}{CRLF}")

    def _write_phases(self, stream: TextIO, phases: Sequence[PhaseEntry]) -> None:
        stream.write(f"Phases\t{len(phases):.0f}{CRLF}")
        for phase in phases:
            lengths = ";".join(f"{value:.3f}" for value in phase.lengths)
            angles = ";".join(f"{value:.3f}" for value in phase.angles)
            stream.write(
                f"{lengths}\t{angles}\t{phase.mineral}\t{phase.laue_class:.0f}\t"
                f"{phase.space_group:.0f}\t\t\t{phase.comment}{CRLF}"
            )


def _remove_quietly(path: Path, logger: logging.Logger) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Could not remove temporary file %s: %s", path, exc)
