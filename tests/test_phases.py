"""Tests for the phase table builder and phase id compaction."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from ebsdExport.ctf_export.errors import InvalidParameter
from ebsdExport.ctf_export.model import CrystalSymmetry, GriddedMap
from ebsdExport.ctf_export.phases import (
    LAUE_CLASSES,
    POINT_GROUPS,
    build_phase_table,
    compact_phase_ids,
    crystal_system_id,
    laue_class,
)


def _grid_with_phases(phase_id: np.ndarray, phases: dict) -> GriddedMap:
    """Build a map with the given phase ids and zero-valued remaining fields.

    Parameters:
        phase_id: 2D phase id array.
        phases: Mapping of phase id to crystal symmetry.

    Returns:
        GriddedMap instance.
    """

    ny, nx = phase_id.shape
    x, y = np.meshgrid(np.arange(nx, dtype=float), np.arange(ny, dtype=float))
    zeros = np.zeros(phase_id.shape)
    return GriddedMap(
        phase_id=phase_id,
        x=x,
        y=y,
        dx=1.0,
        dy=1.0,
        euler1=zeros,
        euler2=zeros,
        euler3=zeros,
        phases=phases,
    )


def test_laue_table_covers_45_point_groups() -> None:
    """Map every crystal-system id onto a Laue class between 1 and 11."""

    assert len(LAUE_CLASSES) == 45
    assert len(POINT_GROUPS) == 45
    assert set(LAUE_CLASSES) == set(range(1, 12))
    assert laue_class(1) == 1
    assert laue_class(crystal_system_id("2/m")) == 2
    assert laue_class(crystal_system_id("mmm")) == 3
    assert laue_class(crystal_system_id("4/m")) == 4
    assert laue_class(crystal_system_id("4/mmm")) == 5
    assert laue_class(crystal_system_id("-3")) == 6
    assert laue_class(crystal_system_id("-3m")) == 7
    assert laue_class(crystal_system_id("6/m")) == 8
    assert laue_class(crystal_system_id("6/mmm")) == 9
    assert laue_class(crystal_system_id("m-3")) == 10
    assert laue_class(45) == 11


def test_laue_class_rejects_out_of_range_ids() -> None:
    """Reject crystal-system ids outside the table."""

    with pytest.raises(ValueError):
        laue_class(0)
    with pytest.raises(ValueError):
        laue_class(46)


def test_crystal_system_id_rejects_unknown_point_group() -> None:
    """Reject names that are not point groups."""

    with pytest.raises(ValueError, match="Unknown point group"):
        crystal_system_id("P6_3/mmc")


def test_phase_table_lists_present_phases_in_degrees(cubic_phases) -> None:
    """Only phases carried by points are listed, angles in degrees."""

    hexagonal = CrystalSymmetry(
        "Titanium",
        2.95,
        2.95,
        4.68,
        float(np.deg2rad(90.0)),
        float(np.deg2rad(90.0)),
        float(np.deg2rad(120.0)),
        crystal_system_id("6/mmm"),
    )
    phases = dict(cubic_phases)
    phases[3] = hexagonal
    grid = _grid_with_phases(np.array([[0, 3], [1, 3]]), phases)
    table = build_phase_table(grid, comment="test", logger=logging.getLogger(__name__))
    assert [entry.mineral for entry in table] == ["Ferrite", "Titanium"]
    assert table[1].angles == pytest.approx((90.0, 90.0, 120.0))
    assert table[1].lengths == (2.95, 2.95, 4.68)
    assert table[1].laue_class == 9
    assert table[0].laue_class == 11
    assert all(entry.space_group == 0 for entry in table)
    assert all(entry.comment == "test" for entry in table)


def test_phase_table_empty_for_unindexed_map(cubic_phases) -> None:
    """An unindexed map produces an empty phase table."""

    grid = _grid_with_phases(np.zeros((2, 2), dtype=int), cubic_phases)
    assert build_phase_table(grid) == ()


def test_phase_table_requires_symmetry_for_present_phase() -> None:
    """Raise when a phase id carried by points has no symmetry."""

    grid = _grid_with_phases(np.array([[1, 2]]), {})
    with pytest.raises(InvalidParameter, match="phase id 1"):
        build_phase_table(grid)


def test_compaction_closes_gap_of_deleted_phase() -> None:
    """Phases {1, 3} become {1, 2} when phase 2 has no points."""

    phase_id = np.array([[1, 3], [0, 3]])
    compacted = compact_phase_ids(phase_id)
    assert compacted.tolist() == [[1, 2], [0, 2]]
    assert phase_id.tolist() == [[1, 3], [0, 3]]


def test_compaction_closes_several_gaps() -> None:
    """Phases {1, 3, 5} become {1, 2, 3}."""

    compacted = compact_phase_ids(np.array([1, 3, 5, 5, 0]))
    assert compacted.tolist() == [1, 2, 3, 3, 0]


def test_compaction_when_lowest_phase_deleted() -> None:
    """Phases {2, 3} become {1, 2} when phase 1 has no points."""

    compacted = compact_phase_ids(np.array([2, 3, 0]))
    assert compacted.tolist() == [1, 2, 0]


def test_compaction_keeps_contiguous_ids() -> None:
    """Contiguous ids and empty inputs are returned unchanged."""

    assert compact_phase_ids(np.array([1, 2, 3, 0])).tolist() == [1, 2, 3, 0]
    assert compact_phase_ids(np.array([0, 0])).tolist() == [0, 0]
    assert compact_phase_ids(np.array([], dtype=int)).size == 0


def test_legacy_gap_check_only_inspects_phase_one() -> None:
    """The legacy test leaves gaps while phase 1 is present."""

    phase_id = np.array([1, 3, 3])
    assert compact_phase_ids(phase_id, legacy_gap_check=True).tolist() == [1, 3, 3]
    # Without phase 1 every scanned id counts as deleted.
    phase_id = np.array([2, 4])
    assert compact_phase_ids(phase_id, legacy_gap_check=True).tolist() == [1, 1]
    assert compact_phase_ids(phase_id).tolist() == [1, 2]
