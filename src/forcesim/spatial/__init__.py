"""
Spatial data structures for the per-step force computation.

Provides the half-matrix distance/direction cache and the static 3x3/2x2
zone partition used for approximate repulsion.
"""

from .cache import EPSILON, DistanceDirectionCache, build_cache, half_matrix_size, pair_index
from .zones import (
    ADJACENCY,
    Aggregate,
    BoundingBox,
    MajorZone,
    MinorZone,
    ZoneIndex,
    ZoneWarning,
    is_adjacent,
)

__all__ = [
    "EPSILON",
    "DistanceDirectionCache",
    "build_cache",
    "half_matrix_size",
    "pair_index",
    "ADJACENCY",
    "Aggregate",
    "BoundingBox",
    "MajorZone",
    "MinorZone",
    "ZoneIndex",
    "ZoneWarning",
    "is_adjacent",
]
