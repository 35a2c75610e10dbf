"""Synthetic gridded map generation for debug workflows."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, Optional

import numpy as np

from ebsdExport.ctf_export.errors import InvalidParameter
from ebsdExport.ctf_export.model import CrystalSymmetry, GriddedMap
from ebsdExport.ctf_export.phases import crystal_system_id

# Mineral, lattice lengths (Angstrom), lattice angles (degrees), point group.
_SIMULATED_PHASES = (
    ("Iron fcc", (3.660, 3.660, 3.660), (90.0, 90.0, 90.0), "m-3m"),
    ("Iron bcc", (2.867, 2.867, 2.867), (90.0, 90.0, 90.0), "m-3m"),
    ("Hematite", (5.034, 5.034, 13.750), (90.0, 90.0, 120.0), "-3m"),
    ("Magnetite", (8.396, 8.396, 8.396), (90.0, 90.0, 90.0), "m-3m"),
    ("Titanium", (2.950, 2.950, 4.680), (90.0, 90.0, 120.0), "6/mmm"),
)


@dataclass(frozen=True)
class SimulatedMapConfig:
    """Configuration for simulated map generation.

    Parameters:
        nx: Number of cells along x.
        ny: Number of cells along y.
        step: Step size along both axes.
        n_phases: Number of phases in the phase list.
        deleted_phase: Phase id carried by no point, or None.
        transposed: Store x along rows instead of columns.
        x_decreasing: Store x in decreasing order.
        y_decreasing: Store y in decreasing order.
        unindexed_fraction: Fraction of points left unindexed (NaN orientation).
        seed: Random seed for reproducible maps.
    """

    nx: int
    ny: int
    step: float
    n_phases: int
    deleted_phase: Optional[int]
    transposed: bool
    x_decreasing: bool
    y_decreasing: bool
    unindexed_fraction: float
    seed: int


class SimulatedMapFactory:
    """Factory for generating synthetic gridded EBSD maps."""

    def __init__(self, config: SimulatedMapConfig, logger: logging.Logger) -> None:
        """Initialize the factory.

        Parameters:
            config: Simulation configuration.
            logger: Logger instance.
        """

        if config.nx < 1 or config.ny < 1:
            raise InvalidParameter(
                f"Simulated maps need at least one cell, got nx={config.nx} ny={config.ny}."
            )
        if not 1 <= config.n_phases <= len(_SIMULATED_PHASES):
            raise InvalidParameter(
                f"n_phases must be between 1 and {len(_SIMULATED_PHASES)}, "
                f"got {config.n_phases}."
            )
        self._config = config
        self._logger = logger

    @classmethod
    def from_config(cls, config: Dict[str, Any], logger: logging.Logger) -> "SimulatedMapFactory":
        """Create a factory from configuration values.

        Parameters:
            config: Configuration dictionary.
            logger: Logger instance.

        Returns:
            SimulatedMapFactory instance.
        """

        deleted_phase = config.get("deleted_phase")
        try:
            sim_config = SimulatedMapConfig(
                nx=int(config.get("nx", 20)),
                ny=int(config.get("ny", 15)),
                step=float(config.get("step", 0.5)),
                n_phases=int(config.get("n_phases", 2)),
                deleted_phase=None if deleted_phase is None else int(deleted_phase),
                transposed=bool(config.get("transposed", False)),
                x_decreasing=bool(config.get("x_decreasing", False)),
                y_decreasing=bool(config.get("y_decreasing", False)),
                unindexed_fraction=float(config.get("unindexed_fraction", 0.05)),
                seed=int(config.get("seed", 123)),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidParameter(f"Invalid simulated map setting: {exc}") from exc
        return cls(sim_config, logger)

    def create(self) -> GriddedMap:
        """Create a synthetic gridded map.

        Phases occupy vertical bands of the map; the deleted phase, if any,
        keeps its phase list entry but its points become unindexed.

        Returns:
            GriddedMap instance.
        """

        cfg = self._config
        rng = np.random.default_rng(cfg.seed)
        self._logger.info(
            "Generating simulated map nx=%s ny=%s phases=%s", cfg.nx, cfg.ny, cfg.n_phases
        )
        xx, yy = np.meshgrid(np.arange(cfg.nx) * cfg.step, np.arange(cfg.ny) * cfg.step)
        column = np.broadcast_to(np.arange(cfg.nx), (cfg.ny, cfg.nx))
        phase_id = 1 + (column * cfg.n_phases) // cfg.nx
        if cfg.deleted_phase is not None:
            phase_id = np.where(phase_id == cfg.deleted_phase, 0, phase_id)
        unindexed = rng.random((cfg.ny, cfg.nx)) < cfg.unindexed_fraction
        phase_id = np.where(unindexed, 0, phase_id)

        euler1 = rng.uniform(0.0, 360.0, size=(cfg.ny, cfg.nx))
        euler2 = rng.uniform(0.0, 180.0, size=(cfg.ny, cfg.nx))
        euler3 = rng.uniform(0.0, 360.0, size=(cfg.ny, cfg.nx))
        for angles in (euler1, euler2, euler3):
            angles[phase_id == 0] = np.nan
        indexed = phase_id > 0
        fields = {
            "phase_id": phase_id,
            "x": xx,
            "y": yy,
            "euler1": euler1,
            "euler2": euler2,
            "euler3": euler3,
            "bands": np.where(indexed, rng.integers(5, 12, size=(cfg.ny, cfg.nx)), 0),
            "error": np.where(indexed, 0, 3),
            "mad": np.where(indexed, rng.uniform(0.2, 1.2, size=(cfg.ny, cfg.nx)), 0.0),
            "bc": rng.integers(60, 200, size=(cfg.ny, cfg.nx)),
            "bs": rng.integers(80, 255, size=(cfg.ny, cfg.nx)),
        }
        for name, values in fields.items():
            fields[name] = self._to_storage_order(np.asarray(values))

        phases = {}
        for index in range(cfg.n_phases):
            mineral, lengths, angles, point_group = _SIMULATED_PHASES[index]
            alpha, beta, gamma = np.deg2rad(angles)
            phases[index + 1] = CrystalSymmetry(
                mineral=mineral,
                a=lengths[0],
                b=lengths[1],
                c=lengths[2],
                alpha=float(alpha),
                beta=float(beta),
                gamma=float(gamma),
                crystal_system_id=crystal_system_id(point_group),
            )
        return GriddedMap(dx=cfg.step, dy=cfg.step, phases=phases, **fields)

    def _to_storage_order(self, values: np.ndarray) -> np.ndarray:
        """Apply the configured raster order to an array shaped (ny, nx).

        Parameters:
            values: Field array in canonical order.

        Returns:
            Field array in the configured storage order.
        """

        if self._config.x_decreasing:
            values = values[:, ::-1]
        if self._config.y_decreasing:
            values = values[::-1, :]
        if self._config.transposed:
            values = values.T
        return np.ascontiguousarray(values)
