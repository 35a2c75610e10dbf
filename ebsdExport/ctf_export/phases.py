"""Phase table construction and phase id compaction for CTF export."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ebsdExport.ctf_export.errors import InvalidParameter
from ebsdExport.ctf_export.model import GriddedMap, PhaseEntry

DEFAULT_PHASE_COMMENT = "Created from ebsdExport"

# Point groups indexed by crystal-system id (1-45), including the settings of
# the monoclinic, orthorhombic and trigonal groups.
POINT_GROUPS = (
    "1", "-1",
    "211", "121", "112", "m11", "1m1", "11m", "2/m11", "12/m1", "112/m",
    "222", "2mm", "m2m", "mm2", "mmm",
    "3", "-3",
    "321", "312", "3m1", "31m", "-3m1", "-31m",
    "4", "-4", "4/m",
    "422", "4mm", "-42m", "-4m2", "4/mmm",
    "6", "-6", "6/m",
    "622", "6mm", "-62m", "-6m2", "6/mmm",
    "23", "m-3",
    "432", "-43m", "m-3m",
)

# Channel 5 Laue class code for each crystal-system id.
LAUE_CLASSES = (
    1, 1,
    2, 2, 2, 2, 2, 2, 2, 2, 2,
    3, 3, 3, 3, 3,
    6, 6,
    7, 7, 7, 7, 7, 7,
    4, 4, 4,
    5, 5, 5, 5, 5,
    8, 8, 8,
    9, 9, 9, 9, 9,
    10, 10,
    11, 11, 11,
)

_POINT_GROUP_ALIASES = {
    "2": "121",
    "m": "1m1",
    "2/m": "12/m1",
    "32": "321",
    "3m": "3m1",
    "-3m": "-3m1",
    "m3": "m-3",
    "m3m": "m-3m",
}


def laue_class(crystal_system_id: int) -> int:
    """Return the Channel 5 Laue class of a crystal-system id.

    Parameters:
        crystal_system_id: Point-group id between 1 and 45.

    Returns:
        Laue class code between 1 and 11.
    """

    if not 1 <= int(crystal_system_id) <= len(LAUE_CLASSES):
        raise ValueError(
            f"Crystal-system id must be between 1 and {len(LAUE_CLASSES)}, "
            f"got {crystal_system_id}."
        )
    return LAUE_CLASSES[int(crystal_system_id) - 1]


def crystal_system_id(point_group: str) -> int:
    """Return the crystal-system id of a point group name.

    Parameters:
        point_group: Hermann-Mauguin point group name, e.g. "m-3m" or "6/mmm".

    Returns:
        Crystal-system id between 1 and 45.
    """

    name = str(point_group).strip().replace(" ", "")
    name = _POINT_GROUP_ALIASES.get(name, name)
    try:
        return POINT_GROUPS.index(name) + 1
    except ValueError as exc:
        raise InvalidParameter(f"Unknown point group '{point_group}'.") from exc


def build_phase_table(
    grid: GriddedMap,
    comment: str = DEFAULT_PHASE_COMMENT,
    logger: Optional[logging.Logger] = None,
) -> tuple[PhaseEntry, ...]:
    """Build the phase table for the indexed phases present in a map.

    Parameters:
        grid: Gridded EBSD map.
        comment: Comment written at the end of each phase line.
        logger: Optional logger instance.

    Returns:
        Phase entries ordered by ascending original phase id.
    """

    logger = logger or logging.getLogger(__name__)
    entries = []
    for phase_id in grid.indexed_phase_ids():
        symmetry = grid.phases.get(phase_id)
        if symmetry is None:
            raise InvalidParameter(f"No crystal symmetry defined for phase id {phase_id}.")
        entry = PhaseEntry(
            mineral=symmetry.mineral,
            lengths=(float(symmetry.a), float(symmetry.b), float(symmetry.c)),
            angles=tuple(
                float(np.rad2deg(angle))
                for angle in (symmetry.alpha, symmetry.beta, symmetry.gamma)
            ),
            laue_class=laue_class(symmetry.crystal_system_id),
            space_group=0,
            comment=comment,
        )
        logger.debug("Phase %d: %s (Laue class %d)", phase_id, entry.mineral, entry.laue_class)
        entries.append(entry)
    return tuple(entries)


def compact_phase_ids(
    phase_id: np.ndarray, legacy_gap_check: bool = False
) -> np.ndarray:
    """Renumber phase ids so that no deleted phase leaves a gap.

    Ids are scanned from the largest id minus one down to 1. Whenever an id
    is carried by no point, every id above it is decremented by one.

    With legacy_gap_check the emptiness test always inspects phase id 1
    instead of the id being scanned, reproducing files written by older
    exporters.

    Parameters:
        phase_id: Array of phase ids (0 for not indexed points).
        legacy_gap_check: Reproduce the legacy gap test.

    Returns:
        New array of compacted phase ids with the input shape.
    """

    original = np.asarray(phase_id)
    compacted = original.copy()
    if original.size == 0:
        return compacted
    max_id = int(original.max())
    for k in range(max_id - 1, 0, -1):
        probe = 1 if legacy_gap_check else k
        if not np.any(original == probe):
            compacted[compacted > k] -= 1
    return compacted
