"""Boundary regime tracking over time."""

from .dynamic_boundaries import (
    DynamicBoundaryWindow,
    boundary_change_ratio,
    find_dynamic_boundaries,
)

__all__ = [
    "DynamicBoundaryWindow",
    "boundary_change_ratio",
    "find_dynamic_boundaries",
]
