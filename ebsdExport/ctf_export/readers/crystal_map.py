"""Adapter from orix crystal maps to gridded EBSD maps."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
from orix import io as orix_io
from orix.crystal_map import CrystalMap

from ebsdExport.ctf_export.errors import InvalidParameter, IOFailure, ShapeMismatch
from ebsdExport.ctf_export.model import CrystalSymmetry, GriddedMap
from ebsdExport.ctf_export.phases import crystal_system_id

DEFAULT_PROP_ALIASES: Dict[str, List[str]] = {
    "bands": ["bands", "nbands", "band_count"],
    "error": ["error", "err"],
    "mad": ["mad", "mean_angular_deviation"],
    "bc": ["bc", "band_contrast"],
    "bs": ["bs", "band_slope"],
}


def grid_from_crystal_map(
    xmap: CrystalMap,
    prop_aliases: Optional[Dict[str, List[str]]] = None,
    logger: Optional[logging.Logger] = None,
) -> GriddedMap:
    """Build a GriddedMap from a 2D orix CrystalMap.

    Not indexed points (negative phase ids) become phase 0. If the indexed
    phase ids start at 0 they are shifted by one so that every indexed phase
    id is positive. Euler angles are converted to degrees.

    Parameters:
        xmap: Crystal map with a regular 2D grid.
        prop_aliases: Optional mapping of quality field names to property aliases.
        logger: Optional logger instance.

    Returns:
        GriddedMap with the map data.
    """

    logger = logger or logging.getLogger(__name__)
    shape = tuple(xmap.shape)
    if len(shape) != 2:
        raise ShapeMismatch(f"Only 2D crystal maps can be exported, got shape {shape}.")
    size = int(np.prod(shape))
    if xmap.size != size:
        raise ShapeMismatch(
            f"Crystal map has {xmap.size} points in data but a {shape} grid."
        )

    raw_ids = np.asarray(xmap.phase_id).reshape(shape)
    indexed_ids = [int(i) for i in xmap.phases.ids if i >= 0]
    offset = 1 if indexed_ids and min(indexed_ids) == 0 else 0
    phase_id = np.where(raw_ids < 0, 0, raw_ids + offset).astype(np.int64)

    phases: Dict[int, CrystalSymmetry] = {}
    for orix_id, phase in xmap.phases:
        if orix_id < 0:
            continue
        phases[int(orix_id) + offset] = _symmetry_from_phase(phase)

    euler = np.rad2deg(np.asarray(xmap.rotations.to_euler()))
    if euler.ndim == 3:
        logger.warning(
            "Crystal map holds %d rotations per point; exporting the first.",
            euler.shape[1],
        )
        euler = euler[:, 0]
    euler = euler.reshape(shape + (3,))

    aliases = dict(DEFAULT_PROP_ALIASES)
    aliases.update(prop_aliases or {})
    quality = {
        name: _find_prop(xmap, names, shape, logger) for name, names in aliases.items()
    }
    return GriddedMap(
        phase_id=phase_id,
        x=np.asarray(xmap.x, dtype=np.float64).reshape(shape),
        y=np.asarray(xmap.y, dtype=np.float64).reshape(shape),
        dx=float(xmap.dx),
        dy=float(xmap.dy),
        euler1=euler[..., 0],
        euler2=euler[..., 1],
        euler3=euler[..., 2],
        phases=phases,
        bands=quality.get("bands"),
        error=quality.get("error"),
        mad=quality.get("mad"),
        bc=quality.get("bc"),
        bs=quality.get("bs"),
    )


def load_grid(
    file_path: Path,
    prop_aliases: Optional[Dict[str, List[str]]] = None,
    logger: Optional[logging.Logger] = None,
) -> GriddedMap:
    """Load an EBSD file readable by orix and convert it to a GriddedMap.

    Parameters:
        file_path: Path to an .ang, .ctf or orix HDF5 file.
        prop_aliases: Optional mapping of quality field names to property aliases.
        logger: Optional logger instance.

    Returns:
        GriddedMap with the file data.
    """

    logger = logger or logging.getLogger(__name__)
    logger.info("Loading crystal map from %s", file_path)
    try:
        xmap = orix_io.load(str(file_path))
    except OSError as exc:
        raise IOFailure(f"Failed to read crystal map {file_path}: {exc}") from exc
    except (KeyError, ValueError) as exc:
        raise InvalidParameter(f"Unsupported crystal map file {file_path}: {exc}") from exc
    return grid_from_crystal_map(xmap, prop_aliases=prop_aliases, logger=logger)


def _symmetry_from_phase(phase) -> CrystalSymmetry:
    """Translate an orix Phase into a CrystalSymmetry.

    Parameters:
        phase: orix Phase with structure and point group.

    Returns:
        CrystalSymmetry with angles in radians.
    """

    if phase.point_group is None:
        raise InvalidParameter(f"Phase '{phase.name}' has no point group.")
    lattice = phase.structure.lattice
    return CrystalSymmetry(
        mineral=phase.name,
        a=float(lattice.a),
        b=float(lattice.b),
        c=float(lattice.c),
        alpha=float(np.deg2rad(lattice.alpha)),
        beta=float(np.deg2rad(lattice.beta)),
        gamma=float(np.deg2rad(lattice.gamma)),
        crystal_system_id=crystal_system_id(phase.point_group.name),
    )


def _find_prop(
    xmap: CrystalMap,
    names: List[str],
    shape: tuple,
    logger: logging.Logger,
) -> Optional[np.ndarray]:
    """Return the first crystal map property matching one of the aliases."""

    available = {str(key).lower(): key for key in xmap.prop.keys()}
    for name in names:
        key = available.get(name.lower())
        if key is not None:
            return np.asarray(xmap.prop[key], dtype=np.float64).reshape(shape)
    logger.debug("No property found for aliases %s; exporting zeros.", names)
    return None
