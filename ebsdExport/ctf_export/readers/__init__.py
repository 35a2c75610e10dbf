"""Readers building gridded maps from external EBSD data models."""

from ebsdExport.ctf_export.readers.crystal_map import (
    DEFAULT_PROP_ALIASES,
    grid_from_crystal_map,
    load_grid,
)

__all__ = [
    "DEFAULT_PROP_ALIASES",
    "grid_from_crystal_map",
    "load_grid",
]
