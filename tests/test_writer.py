"""Tests for the CTF text serializer."""

from __future__ import annotations

import io
import logging

import numpy as np
import pytest

from ebsdExport.ctf_export.acquisition import resolve_acquisition_parameters
from ebsdExport.ctf_export.errors import IOFailure, ShapeMismatch
from ebsdExport.ctf_export.model import PhaseEntry
from ebsdExport.ctf_export.writer import CtfHeader, CtfWriter


def _header(project: str = "scan.ctf") -> CtfHeader:
    """Build a header with default acquisition parameters.

    Parameters:
        project: Project name for the "Prj" line.

    Returns:
        CtfHeader instance.
    """

    return CtfHeader(
        project=project,
        author="tester",
        x_cells=3,
        y_cells=2,
        x_step=0.25,
        y_step=0.5,
        parameters=resolve_acquisition_parameters(),
    )


_PHASES = (
    PhaseEntry(
        mineral="Magnetite",
        lengths=(8.396, 8.396, 8.396),
        angles=(90.0, 90.0, 90.0),
        laue_class=11,
        space_group=0,
        comment="Created from ebsdExport",
    ),
)


def test_writer_emits_exact_layout() -> None:
    """Serialize header, phases and rows with tabs, CRLF and fixed precision."""

    data = np.array(
        [
            [1, 0.0, 0.0, 7, 0, 10.123456, 45.0, 359.99996, 0.41234, 145, 201],
            [0, 0.25, 0.0, 0, 3, 0.0, 0.0, 0.0, 0.0, 12, 30],
        ],
        dtype=float,
    )
    stream = io.StringIO(newline="")
    CtfWriter(logger=logging.getLogger(__name__)).write(stream, _header(), _PHASES, data)
    text = stream.getvalue()
    assert text.endswith("\r\n")
    assert "\n" not in text.replace("\r\n", "")
    lines = text.split("\r\n")[:-1]
    assert lines[:11] == [
        "Channel Text File",
        "Prj scan.ctf",
        "Author\ttester",
        "JobMode\tGrid",
        "XCells\t3",
        "YCells\t2",
        "XStep\t0.2500",
        "YStep\t0.5000",
        "AcqE1\t0.0000",
        "AcqE2\t0.0000",
        "AcqE3\t0.0000",
    ]
    assert lines[11] == (
        "Euler angles refer to Sample Coordinate system (CS0)!\t"
        "Mag\t0.0000\tCoverage\t0\tDevice\t0\tKV\t0.0000\tTiltAngle\t0.0000\t"
        "TiltAxis\t0\tDetectorOrientationE1\t0.0000\tDetectorOrientationE2\t0.0000\t"
        "DetectorOrientationE3\t0.0000\tWorkingDistance\t0.0000\t"
        "InsertionDistance\t0.0000\t"
    )
    assert lines[12] == "Phases\t1"
    assert lines[13] == (
        "8.396;8.396;8.396\t90.000;90.000;90.000\tMagnetite\t11\t0\t\t\t"
        "Created from ebsdExport"
    )
    assert lines[14] == "Phase\tX\tY\tBands\tError\tEuler1\tEuler2\tEuler3\tMAD\tBC\tBS"
    assert lines[15] == "1\t0.0000\t0.0000\t7\t0\t10.1235\t45.0000\t360.0000\t0.4123\t145\t201"
    assert lines[16] == "0\t0.2500\t0.0000\t0\t3\t0.0000\t0.0000\t0.0000\t0.0000\t12\t30"
    assert len(lines) == 17


def test_writer_handles_empty_phase_table_and_data() -> None:
    """An empty map still writes the complete header and column line."""

    stream = io.StringIO(newline="")
    CtfWriter().write(stream, _header(), (), np.zeros((0, 11)))
    lines = stream.getvalue().split("\r\n")[:-1]
    assert lines[12] == "Phases\t0"
    assert lines[-1].startswith("Phase\tX\tY")
    assert len(lines) == 14


def test_writer_rejects_wrong_column_count() -> None:
    """Reject data arrays without 11 columns."""

    with pytest.raises(ShapeMismatch):
        CtfWriter().write(io.StringIO(), _header(), (), np.zeros((2, 10)))


def test_write_file_produces_crlf_bytes(tmp_path) -> None:
    """Files keep CRLF line endings regardless of platform."""

    path = tmp_path / "out.ctf"
    result = CtfWriter().write_file(path, _header(str(path)), _PHASES, np.zeros((1, 11)))
    assert result == path
    raw = path.read_bytes()
    assert raw.startswith(b"Channel Text File\r\nPrj ")
    assert raw.count(b"\r\n") == raw.count(b"\n")
    assert [p.name for p in tmp_path.iterdir()] == ["out.ctf"]


def test_write_file_to_missing_directory_raises_io_failure(tmp_path) -> None:
    """Report unwritable destinations as IOFailure."""

    path = tmp_path / "missing" / "out.ctf"
    with pytest.raises(IOFailure) as excinfo:
        CtfWriter().write_file(path, _header(), _PHASES, np.zeros((1, 11)))
    assert isinstance(excinfo.value, OSError)
    assert not path.exists()


def test_os_error_during_write_closes_stream_and_removes_partial_file(
    tmp_path, monkeypatch
) -> None:
    """An I/O error after the header is written leaves no partial output."""

    path = tmp_path / "out.ctf"
    path.write_text("previous", encoding="utf-8")
    streams = []

    def _fail_on_phases(self, stream, phases) -> None:
        streams.append(stream)
        raise OSError("No space left on device")

    monkeypatch.setattr(CtfWriter, "_write_phases", _fail_on_phases)
    with pytest.raises(IOFailure, match="No space left on device"):
        CtfWriter().write_file(path, _header(), _PHASES, np.zeros((1, 11)))
    assert len(streams) == 1
    assert streams[0].closed
    assert path.read_text(encoding="utf-8") == "previous"
    assert [p.name for p in tmp_path.iterdir()] == ["out.ctf"]


def test_failed_write_leaves_existing_target_untouched(tmp_path) -> None:
    """A failure during serialization keeps the previous file and no partial file."""

    path = tmp_path / "out.ctf"
    path.write_text("previous", encoding="utf-8")
    with pytest.raises(ShapeMismatch):
        CtfWriter().write_file(path, _header(), _PHASES, np.zeros((1, 5)))
    assert path.read_text(encoding="utf-8") == "previous"
    assert [p.name for p in tmp_path.iterdir()] == ["out.ctf"]
