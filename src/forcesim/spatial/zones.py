"""
Static two-level spatial partition for approximate repulsion.

The bounding region is split into a fixed 3x3 grid of major zones, each of
which is split into a fixed 2x2 grid of minor zones:

    +---+---+---+        +---+---+
    | 0 | 1 | 2 |        | 0 | 1 |
    +---+---+---+        +---+---+
    | 3 | 4 | 5 |        | 2 | 3 |
    +---+---+---+        +---+---+
    | 6 | 7 | 8 |
    +---+---+---+

Rows run top to bottom with "top" at the minimum y coordinate (screen
coordinates, as in the quadtree). Two major zones are adjacent when they
share a side or a corner.

Unlike a quadtree the layout never changes shape; only the assignment of
nodes to zones and the per-zone aggregate point masses are recomputed each
step.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Sequence

import numpy as np
from typing_extensions import Self

from ..validation import SimulationWarning, validate_padding
from ..vector import Vector2D

GRID_SIZE = 3
N_MAJOR_ZONES = GRID_SIZE * GRID_SIZE
N_MINOR_ZONES = 4


class ZoneWarning(SimulationWarning):
    """Warning for nodes that fall outside the zone bounding box."""

    pass


class MajorZone(IntEnum):
    """One of the nine cells of the 3x3 grid, row-major from top-left."""

    TOP_LEFT = 0
    TOP_MIDDLE = 1
    TOP_RIGHT = 2
    MIDDLE_LEFT = 3
    MIDDLE_MIDDLE = 4
    MIDDLE_RIGHT = 5
    BOTTOM_LEFT = 6
    BOTTOM_MIDDLE = 7
    BOTTOM_RIGHT = 8

    @classmethod
    def from_zone_number(cls, zone_number: int) -> MajorZone:
        """Zone from its 1-based number (1 = top-left, 9 = bottom-right)."""
        if not 1 <= zone_number <= N_MAJOR_ZONES:
            raise ValueError(f"Invalid zone number for MajorZone: {zone_number}")
        return cls(zone_number - 1)

    @classmethod
    def from_cell(cls, row: int, col: int) -> MajorZone:
        return cls(row * GRID_SIZE + col)

    @property
    def zone_number(self) -> int:
        return int(self) + 1

    @property
    def row(self) -> int:
        return int(self) // GRID_SIZE

    @property
    def col(self) -> int:
        return int(self) % GRID_SIZE

    def adjacent(self) -> tuple[MajorZone, ...]:
        """Zones sharing a side or a corner with this one."""
        return tuple(MajorZone(z) for z in sorted(ADJACENCY[self]))

    def not_adjacent(self) -> tuple[MajorZone, ...]:
        """Zones that neither touch nor equal this one."""
        return tuple(
            MajorZone(z) for z in range(N_MAJOR_ZONES) if z != self and z not in ADJACENCY[self]
        )

    def is_adjacent_to(self, other: int) -> bool:
        return int(other) in ADJACENCY[self]


class MinorZone(IntEnum):
    """One of the four cells of the 2x2 grid inside a major zone."""

    TOP_LEFT = 0
    TOP_RIGHT = 1
    BOTTOM_LEFT = 2
    BOTTOM_RIGHT = 3


def _build_adjacency() -> tuple[frozenset[int], ...]:
    table = []
    for zone in range(N_MAJOR_ZONES):
        r, c = divmod(zone, GRID_SIZE)
        neighbours = set()
        for other in range(N_MAJOR_ZONES):
            orow, ocol = divmod(other, GRID_SIZE)
            if other != zone and max(abs(orow - r), abs(ocol - c)) == 1:
                neighbours.add(other)
        table.append(frozenset(neighbours))
    return tuple(table)


# Precomputed, indexed by major zone id
ADJACENCY: tuple[frozenset[int], ...] = _build_adjacency()


def is_adjacent(a: int, b: int) -> bool:
    """Symmetric, irreflexive adjacency between two major zones."""
    return int(b) in ADJACENCY[int(a)]


@dataclass
class Aggregate:
    """
    A synthetic point mass standing in for the nodes of a zone.

    Attributes:
        mass: Total mass of the member nodes (0 for an empty zone)
        x, y: Mass-weighted centroid of the member nodes
        count: Number of member nodes
    """

    mass: float = 0.0
    x: float = 0.0
    y: float = 0.0
    count: int = 0

    @property
    def position(self) -> Vector2D:
        return Vector2D(self.x, self.y)

    def is_empty(self) -> bool:
        return self.mass <= 0.0


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned region covered by the zone grid."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    @classmethod
    def from_positions(cls, positions: Sequence[Vector2D], padding: float = 0.05) -> BoundingBox:
        """
        Square box around ``positions``, padded by a fraction of its size.

        Uses the larger extent for both axes so cells stay square. A
        degenerate extent (single point) falls back to a unit box.
        """
        if not positions:
            return cls(0.0, 0.0, 1.0, 1.0)

        min_x = min(p.x for p in positions)
        max_x = max(p.x for p in positions)
        min_y = min(p.y for p in positions)
        max_y = max(p.y for p in positions)

        size = max(max_x - min_x, max_y - min_y)
        if size <= 0.0:
            size = 1.0
        half = size * (0.5 + padding)
        cx = (min_x + max_x) / 2
        cy = (min_y + max_y) / 2
        return cls(cx - half, cy - half, cx + half, cy + half)


class ZoneIndex:
    """
    Assignment of nodes to major/minor zones plus aggregate point masses.

    Usage:
        index = ZoneIndex()
        index.rebuild(positions, masses)
        zone = index.major_of(0)
        for agg in index.minor_aggregates(MajorZone.TOP_MIDDLE):
            if not agg.is_empty():
                ...

    Every node is assigned exactly one major and one minor zone. Nodes
    outside an explicit bounding box are clamped into the nearest border
    zone.
    """

    def __init__(self, padding: float = 0.05) -> None:
        self.padding = validate_padding(padding)
        self.bounds: Optional[BoundingBox] = None
        self.major_ids: np.ndarray = np.zeros(0, dtype=np.int64)
        self.minor_ids: np.ndarray = np.zeros(0, dtype=np.int64)
        self._members: list[list[int]] = [[] for _ in range(N_MAJOR_ZONES)]
        self._major_aggregates: list[Aggregate] = [Aggregate() for _ in range(N_MAJOR_ZONES)]
        self._minor_aggregates: list[list[Aggregate]] = [
            [Aggregate() for _ in range(N_MINOR_ZONES)] for _ in range(N_MAJOR_ZONES)
        ]

    def rebuild(
        self,
        positions: Sequence[Vector2D],
        masses: Sequence[float],
        bounding_box: Optional[BoundingBox] = None,
        stacklevel: int = 2,
    ) -> Self:
        """
        Reassign every node and recompute all aggregates.

        Args:
            positions: Node positions at the start of the step
            masses: Node masses, same order as positions
            bounding_box: Region to partition. Derived from the positions
                (with ``padding``) when None.
            stacklevel: Frame the ZoneWarning is attributed to, counted
                as for ``warnings.warn`` from inside this method.
        """
        n = len(positions)
        if len(masses) != n:
            raise ValueError(f"Got {n} positions but {len(masses)} masses")

        if bounding_box is None:
            bounding_box = BoundingBox.from_positions(positions, self.padding)
        self.bounds = bounding_box

        xs = np.fromiter((p.x for p in positions), dtype=np.float64, count=n)
        ys = np.fromiter((p.y for p in positions), dtype=np.float64, count=n)
        ms = np.asarray(masses, dtype=np.float64)

        outside = int(
            np.count_nonzero(
                (xs < bounding_box.min_x)
                | (xs > bounding_box.max_x)
                | (ys < bounding_box.min_y)
                | (ys > bounding_box.max_y)
            )
        )
        if outside:
            warnings.warn(
                f"{outside} node(s) lie outside the zone bounding box and were "
                "assigned to the nearest border zone.",
                ZoneWarning,
                stacklevel=stacklevel,
            )

        # Index on a 6x6 fine grid so major and minor cells always agree
        fine = 2 * GRID_SIZE
        fine_col = np.clip(
            np.floor((xs - bounding_box.min_x) / bounding_box.width * fine), 0, fine - 1
        ).astype(np.int64)
        fine_row = np.clip(
            np.floor((ys - bounding_box.min_y) / bounding_box.height * fine), 0, fine - 1
        ).astype(np.int64)

        self.major_ids = (fine_row // 2) * GRID_SIZE + fine_col // 2
        self.minor_ids = (fine_row % 2) * 2 + fine_col % 2

        self._members = [[] for _ in range(N_MAJOR_ZONES)]
        for i, zone in enumerate(self.major_ids.tolist()):
            self._members[zone].append(i)

        self._major_aggregates = _aggregate(self.major_ids, xs, ys, ms, N_MAJOR_ZONES)
        flat_minor = _aggregate(
            self.major_ids * N_MINOR_ZONES + self.minor_ids,
            xs,
            ys,
            ms,
            N_MAJOR_ZONES * N_MINOR_ZONES,
        )
        self._minor_aggregates = [
            flat_minor[z * N_MINOR_ZONES : (z + 1) * N_MINOR_ZONES] for z in range(N_MAJOR_ZONES)
        ]
        return self

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def n_nodes(self) -> int:
        return len(self.major_ids)

    def major_of(self, node_idx: int) -> MajorZone:
        return MajorZone(int(self.major_ids[node_idx]))

    def minor_of(self, node_idx: int) -> MinorZone:
        return MinorZone(int(self.minor_ids[node_idx]))

    def members(self, zone: int) -> list[int]:
        """Indices of the nodes assigned to major zone ``zone``."""
        return self._members[int(zone)]

    def major_aggregate(self, zone: int) -> Aggregate:
        return self._major_aggregates[int(zone)]

    def minor_aggregates(self, zone: int) -> list[Aggregate]:
        """The four minor-zone aggregates of major zone ``zone``."""
        return self._minor_aggregates[int(zone)]

    def occupied_zones(self) -> list[MajorZone]:
        return [MajorZone(z) for z in range(N_MAJOR_ZONES) if self._members[z]]

    @staticmethod
    def is_adjacent(a: int, b: int) -> bool:
        return is_adjacent(a, b)

    @staticmethod
    def adjacent(zone: int) -> tuple[MajorZone, ...]:
        return MajorZone(int(zone)).adjacent()

    @staticmethod
    def not_adjacent(zone: int) -> tuple[MajorZone, ...]:
        return MajorZone(int(zone)).not_adjacent()

    def __repr__(self) -> str:
        counts = [len(m) for m in self._members]
        return f"ZoneIndex(n_nodes={self.n_nodes}, members={counts})"


def _aggregate(
    keys: np.ndarray,
    xs: np.ndarray,
    ys: np.ndarray,
    ms: np.ndarray,
    n_groups: int,
) -> list[Aggregate]:
    """Total mass and mass-weighted centroid for each group key."""
    mass = np.bincount(keys, weights=ms, minlength=n_groups)
    wx = np.bincount(keys, weights=ms * xs, minlength=n_groups)
    wy = np.bincount(keys, weights=ms * ys, minlength=n_groups)
    count = np.bincount(keys, minlength=n_groups)

    aggregates = []
    for g in range(n_groups):
        m = float(mass[g])
        if m > 0.0:
            aggregates.append(Aggregate(m, float(wx[g]) / m, float(wy[g]) / m, int(count[g])))
        else:
            aggregates.append(Aggregate(0.0, 0.0, 0.0, int(count[g])))
    return aggregates


__all__ = [
    "ADJACENCY",
    "Aggregate",
    "BoundingBox",
    "MajorZone",
    "MinorZone",
    "N_MAJOR_ZONES",
    "N_MINOR_ZONES",
    "ZoneIndex",
    "ZoneWarning",
    "is_adjacent",
]
