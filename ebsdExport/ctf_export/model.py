"""Data models for gridded EBSD maps and CTF export records."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Union

import numpy as np

from ebsdExport.ctf_export.errors import ShapeMismatch

DATA_COLUMNS = (
    "Phase",
    "X",
    "Y",
    "Bands",
    "Error",
    "Euler1",
    "Euler2",
    "Euler3",
    "MAD",
    "BC",
    "BS",
)

_QUALITY_FIELDS = ("bands", "error", "mad", "bc", "bs")


@dataclass(frozen=True)
class CrystalSymmetry:
    """Crystal symmetry description of a single phase.

    Parameters:
        mineral: Mineral or phase name.
        a: Lattice length a.
        b: Lattice length b.
        c: Lattice length c.
        alpha: Lattice angle alpha in radians.
        beta: Lattice angle beta in radians.
        gamma: Lattice angle gamma in radians.
        crystal_system_id: Point-group id (1-45) keying the Laue class table.
    """

    mineral: str
    a: float
    b: float
    c: float
    alpha: float
    beta: float
    gamma: float
    crystal_system_id: int


@dataclass(frozen=True)
class PhaseEntry:
    """One row of the CTF phase table.

    Parameters:
        mineral: Mineral or phase name.
        lengths: Lattice lengths (a, b, c).
        angles: Lattice angles (alpha, beta, gamma) in degrees.
        laue_class: Channel 5 Laue class code (1-11).
        space_group: Space group number (always 0, not available).
        comment: Free text written at the end of the phase line.
    """

    mineral: str
    lengths: tuple[float, float, float]
    angles: tuple[float, float, float]
    laue_class: int
    space_group: int = 0
    comment: str = ""


@dataclass(frozen=True)
class NumericParameter:
    """Numeric acquisition parameter printed with a fixed precision."""

    name: str
    value: float
    precision: int

    def formatted(self) -> str:
        """Return the value formatted with the parameter precision.

        Returns:
            Formatted value string.
        """

        return f"{float(self.value):.{self.precision}f}"


@dataclass(frozen=True)
class TextParameter:
    """Free-text acquisition parameter printed verbatim."""

    name: str
    value: str

    def formatted(self) -> str:
        """Return the text value.

        Returns:
            Value string.
        """

        return str(self.value)


AcquisitionParameter = Union[NumericParameter, TextParameter]


@dataclass
class GriddedMap:
    """EBSD measurement points resampled onto a rectangular grid.

    All per-point arrays share the same 2D storage shape. Orientation angles
    are stored in degrees. Quality fields that are not available may be left
    as None and are exported as zeros.

    Parameters:
        phase_id: Phase id per point (0 for not indexed points).
        x: Spatial x coordinate per point.
        y: Spatial y coordinate per point.
        dx: Step size along x.
        dy: Step size along y.
        euler1: First Euler angle (phi1) in degrees.
        euler2: Second Euler angle (Phi) in degrees.
        euler3: Third Euler angle (phi2) in degrees.
        phases: Mapping of phase id to crystal symmetry.
        bands: Number of detected bands per point.
        error: Indexing error code per point.
        mad: Mean angular deviation per point.
        bc: Band contrast per point.
        bs: Band slope per point.
    """

    phase_id: np.ndarray
    x: np.ndarray
    y: np.ndarray
    dx: float
    dy: float
    euler1: np.ndarray
    euler2: np.ndarray
    euler3: np.ndarray
    phases: Dict[int, CrystalSymmetry] = field(default_factory=dict)
    bands: Optional[np.ndarray] = None
    error: Optional[np.ndarray] = None
    mad: Optional[np.ndarray] = None
    bc: Optional[np.ndarray] = None
    bs: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.phase_id = np.atleast_2d(np.asarray(self.phase_id))
        self.x = np.atleast_2d(np.asarray(self.x, dtype=np.float64))
        self.y = np.atleast_2d(np.asarray(self.y, dtype=np.float64))
        self.euler1 = np.atleast_2d(np.asarray(self.euler1, dtype=np.float64))
        self.euler2 = np.atleast_2d(np.asarray(self.euler2, dtype=np.float64))
        self.euler3 = np.atleast_2d(np.asarray(self.euler3, dtype=np.float64))
        for name in _QUALITY_FIELDS:
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, np.atleast_2d(np.asarray(value, dtype=np.float64)))
        shape = self.phase_id.shape
        if self.phase_id.ndim != 2:
            raise ShapeMismatch(f"Phase ids must be a 2D grid, got shape {shape}.")
        for name in ("x", "y", "euler1", "euler2", "euler3") + _QUALITY_FIELDS:
            value = getattr(self, name)
            if value is not None and value.shape != shape:
                raise ShapeMismatch(
                    f"Field '{name}' has shape {value.shape}, expected {shape}."
                )

    @property
    def shape(self) -> tuple[int, int]:
        """Return the storage shape of the grid.

        Returns:
            Tuple of (rows, columns).
        """

        return tuple(self.phase_id.shape)

    @property
    def size(self) -> int:
        """Return the number of grid points.

        Returns:
            Number of points.
        """

        return int(self.phase_id.size)

    def indexed_phase_ids(self) -> list[int]:
        """Return the ids of phases carried by at least one point.

        Returns:
            Ascending list of phase ids greater than zero.
        """

        ids = np.unique(self.phase_id)
        return [int(value) for value in ids if value > 0]

    def quality_field(self, name: str) -> np.ndarray:
        """Return a quality field, substituting zeros when it is absent.

        Parameters:
            name: One of "bands", "error", "mad", "bc" or "bs".

        Returns:
            2D array with the grid shape.
        """

        if name not in _QUALITY_FIELDS:
            raise KeyError(f"Unknown quality field '{name}'.")
        value = getattr(self, name)
        if value is None:
            return np.zeros(self.shape, dtype=np.float64)
        return value

    def flipud(self) -> "GriddedMap":
        """Mirror the y coordinates upside down.

        Orientation data and every other field keep their values; only the
        spatial positions of the points are reflected about the map centre.

        Returns:
            New GriddedMap with mirrored y coordinates.
        """

        return replace(self, y=_mirror(self.y))

    def fliplr(self) -> "GriddedMap":
        """Mirror the x coordinates left to right.

        Returns:
            New GriddedMap with mirrored x coordinates.
        """

        return replace(self, x=_mirror(self.x))


def _mirror(values: np.ndarray) -> np.ndarray:
    """Reflect coordinates about the centre of their extent."""

    if values.size == 0:
        return values.copy()
    return np.nanmax(values) + np.nanmin(values) - values
