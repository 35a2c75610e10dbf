"""Pytest configuration for local package imports and shared map fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure() -> None:
    """Ensure the repository root is on sys.path for imports."""

    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


@pytest.fixture
def cubic_phases():
    """Return two cubic phases keyed by phase ids 1 and 2."""

    from ebsdExport.ctf_export.model import CrystalSymmetry

    right_angle = float(np.deg2rad(90.0))
    return {
        1: CrystalSymmetry("Ferrite", 2.87, 2.87, 2.87, right_angle, right_angle, right_angle, 45),
        2: CrystalSymmetry("Austenite", 3.66, 3.66, 3.66, right_angle, right_angle, right_angle, 45),
    }


@pytest.fixture
def two_by_two_grid(cubic_phases):
    """Return a 2x2 map with x along columns and y along rows, both increasing."""

    from ebsdExport.ctf_export.model import GriddedMap

    return GriddedMap(
        phase_id=np.array([[1, 2], [2, 1]]),
        x=np.array([[10.0, 10.5], [10.0, 10.5]]),
        y=np.array([[5.0, 5.0], [5.5, 5.5]]),
        dx=0.5,
        dy=0.5,
        euler1=np.array([[10.0, 20.0], [30.0, 40.0]]),
        euler2=np.array([[1.0, 2.0], [3.0, 4.0]]),
        euler3=np.array([[5.0, 6.0], [7.0, 8.0]]),
        phases=cubic_phases,
        bands=np.full((2, 2), 6),
        error=np.zeros((2, 2)),
        mad=np.full((2, 2), 0.5),
        bc=np.full((2, 2), 120),
        bs=np.full((2, 2), 200),
    )
