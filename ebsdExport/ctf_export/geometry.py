"""Detection of the raster order of gridded EBSD coordinates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ebsdExport.ctf_export.errors import AmbiguousGeometry, ShapeMismatch

ROWS = 0
COLUMNS = 1


@dataclass(frozen=True)
class AxisOrder:
    """Storage dimension and direction along which a spatial axis varies.

    Parameters:
        axis: Storage dimension (0 for rows, 1 for columns).
        sign: +1 if the coordinate increases along that dimension, -1 otherwise.
    """

    axis: int
    sign: int

    @property
    def decreasing(self) -> bool:
        return self.sign < 0


@dataclass(frozen=True)
class ScanGeometry:
    """Raster order of both spatial axes.

    Parameters:
        x: Order of the x coordinate.
        y: Order of the y coordinate.
    """

    x: AxisOrder
    y: AxisOrder

    @property
    def transposed(self) -> bool:
        """Return True when x varies along storage rows."""

        return self.x.axis == ROWS

    def cell_counts(self, shape: tuple[int, int]) -> tuple[int, int]:
        """Return the number of cells along x and y.

        Parameters:
            shape: Storage shape (rows, columns) of the grid.

        Returns:
            Tuple of (x cells, y cells).
        """

        return int(shape[self.x.axis]), int(shape[self.y.axis])


def _compare(first: float, second: float) -> int:
    if first < second:
        return 1
    if first > second:
        return -1
    return 0


def _detect_axis(values: np.ndarray, name: str) -> Optional[AxisOrder]:
    """Detect the order of one coordinate array.

    Parameters:
        values: 2D coordinate array.
        name: Coordinate name used in error messages.

    Returns:
        AxisOrder, or None when the grid is a single row or column.
    """

    rows, cols = values.shape
    if cols > 1:
        sign = _compare(values[0, 0], values[0, 1])
        if sign:
            return AxisOrder(axis=COLUMNS, sign=sign)
    if rows > 1:
        sign = _compare(values[0, 0], values[1, 0])
        if sign:
            return AxisOrder(axis=ROWS, sign=sign)
    if rows > 1 and cols > 1:
        raise AmbiguousGeometry(
            f"Cannot determine the raster direction of '{name}': "
            "neighbouring grid cells carry the same coordinate."
        )
    return None


def detect_scan_geometry(x: np.ndarray, y: np.ndarray) -> ScanGeometry:
    """Determine along which storage dimension and sign x and y vary.

    The first cell is compared with its right neighbour and, if equal, with
    the cell below it. An axis that cannot be compared because the grid has a
    single row or column takes the storage dimension left over by the other
    axis, increasing. Empty and 1x1 grids use x along columns and y along
    rows.

    Parameters:
        x: 2D x coordinate array.
        y: 2D y coordinate array.

    Returns:
        ScanGeometry describing both axes.
    """

    x = np.atleast_2d(np.asarray(x))
    y = np.atleast_2d(np.asarray(y))
    if x.shape != y.shape or x.ndim != 2:
        raise ShapeMismatch(f"Coordinate shapes differ: x {x.shape}, y {y.shape}.")
    if x.size == 0:
        return ScanGeometry(x=AxisOrder(axis=COLUMNS, sign=1), y=AxisOrder(axis=ROWS, sign=1))
    x_order = _detect_axis(x, "x")
    y_order = _detect_axis(y, "y")
    if x_order is None and y_order is None:
        x_order = AxisOrder(axis=COLUMNS, sign=1)
        y_order = AxisOrder(axis=ROWS, sign=1)
    elif x_order is None:
        x_order = AxisOrder(axis=1 - y_order.axis, sign=1)
    elif y_order is None:
        y_order = AxisOrder(axis=1 - x_order.axis, sign=1)
    if x_order.axis == y_order.axis:
        raise AmbiguousGeometry(
            "Both x and y vary along the same storage dimension; "
            "the grid is not a regular raster."
        )
    return ScanGeometry(x=x_order, y=y_order)
