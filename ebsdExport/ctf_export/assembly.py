"""Assembly of the per-point CTF data array from gridded fields."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ebsdExport.ctf_export.errors import ShapeMismatch
from ebsdExport.ctf_export.geometry import ScanGeometry
from ebsdExport.ctf_export.model import DATA_COLUMNS, GriddedMap

ZERO_SNAP_THRESHOLD = 1e-6

X_COLUMN = DATA_COLUMNS.index("X")
Y_COLUMN = DATA_COLUMNS.index("Y")


def gather_fields(grid: GriddedMap, phase_id: np.ndarray) -> list[np.ndarray]:
    """Collect the 11 data fields of a map in CTF column order.

    Parameters:
        grid: Gridded EBSD map.
        phase_id: Phase ids to export (usually compacted).

    Returns:
        List of 2D arrays ordered like DATA_COLUMNS.
    """

    return [
        phase_id,
        grid.x,
        grid.y,
        grid.quality_field("bands"),
        grid.quality_field("error"),
        grid.euler1,
        grid.euler2,
        grid.euler3,
        grid.quality_field("mad"),
        grid.quality_field("bc"),
        grid.quality_field("bs"),
    ]


def reorder_field(values: np.ndarray, geometry: ScanGeometry) -> np.ndarray:
    """Bring one field into canonical raster order.

    The result has y along the first and x along the second storage
    dimension, both increasing, so that a row-major flatten runs x fastest.

    Parameters:
        values: 2D field array in storage order.
        geometry: Detected scan geometry.

    Returns:
        Reordered 2D array.
    """

    values = np.asarray(values)
    if geometry.transposed:
        values = values.T
    if geometry.x.decreasing:
        values = values[:, ::-1]
    if geometry.y.decreasing:
        values = values[::-1, :]
    return values


def assemble_data_array(
    fields: Sequence[np.ndarray],
    geometry: ScanGeometry,
    zero_threshold: float = ZERO_SNAP_THRESHOLD,
) -> np.ndarray:
    """Build the row-major, origin-normalized and NaN-free data array.

    Parameters:
        fields: The 11 field arrays in CTF column order.
        geometry: Detected scan geometry.
        zero_threshold: Coordinates closer to zero than this become zero.

    Returns:
        Array shaped (n_points, 11).
    """

    if len(fields) != len(DATA_COLUMNS):
        raise ShapeMismatch(
            f"Expected {len(DATA_COLUMNS)} fields, got {len(fields)}."
        )
    shape = np.shape(fields[0])
    for name, values in zip(DATA_COLUMNS, fields):
        if np.shape(values) != shape:
            raise ShapeMismatch(
                f"Field '{name}' has shape {np.shape(values)}, expected {shape}."
            )
    columns = [
        np.ravel(reorder_field(values, geometry), order="C").astype(np.float64)
        for values in fields
    ]
    data = np.column_stack(columns) if columns[0].size else np.zeros((0, len(DATA_COLUMNS)))
    for column in (X_COLUMN, Y_COLUMN):
        near_zero = np.abs(data[:, column]) < zero_threshold
        data[near_zero, column] = 0.0
    data[np.isnan(data)] = 0.0
    # -0.0 would print as "-0.0000"
    data[data == 0.0] = 0.0
    if data.shape[0]:
        data[:, X_COLUMN] -= data[0, X_COLUMN]
        data[:, Y_COLUMN] -= data[0, Y_COLUMN]
    return data
