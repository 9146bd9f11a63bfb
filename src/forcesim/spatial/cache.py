"""
Per-step cache of pairwise distances and bearings.

Distances are symmetric and bearings are anti-symmetric, so only one entry
per unordered pair {i, j} is stored, in a flattened upper-triangular
("half") matrix. Pairs are laid out row by row:

    (0,1) (0,2) ... (0,n-1) (1,2) ... (1,n-1) ... (n-2,n-1)

which is the order produced by ``numpy.triu_indices(n, k=1)``.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from typing_extensions import Self

from ..vector import Vector2D

# Floor applied to distances before they are used as a force denominator.
# Coincident nodes are an expected transient, not an error.
EPSILON = 1e-5

TWO_PI = 2.0 * math.pi


def half_matrix_size(n: int) -> int:
    """Number of unordered pairs among ``n`` items."""
    return n * (n - 1) // 2


def pair_index(i: int, j: int, n: int) -> int:
    """
    Flat index of the unordered pair {i, j} among ``n`` nodes.

    Args:
        i, j: Distinct node indices in [0, n), in either order
        n: Total node count

    Returns:
        Index into the half-matrix buffers

    Raises:
        ValueError: If i == j or either index is out of range
    """
    if i == j:
        raise ValueError(f"No pair entry for a node with itself (index {i})")
    if i > j:
        i, j = j, i
    if i < 0 or j >= n:
        raise ValueError(f"Pair ({i}, {j}) out of bounds for {n} nodes")
    return i * n + j - i * (i + 1) // 2 - i - 1


class DistanceDirectionCache:
    """
    Half-matrix cache of pairwise distances and bearings.

    The cache always reflects exactly the positions passed to the last
    ``rebuild`` call. Buffers are allocated once per node count and reused
    across steps.

    Usage:
        cache = DistanceDirectionCache()
        cache.rebuild([Vector2D(0, 0), Vector2D(3, 4)])
        cache.distance(0, 1)   # 5.0
        cache.direction(0, 1)  # atan2(4, 3)
    """

    def __init__(self, n_nodes: int = 0, epsilon: float = EPSILON) -> None:
        self.epsilon = float(epsilon)
        self._n = 0
        self._built = False
        self._allocate(n_nodes)

    def _allocate(self, n: int) -> None:
        size = half_matrix_size(n)
        self._n = n
        self.rows, self.cols = np.triu_indices(n, k=1)
        self.distances = np.zeros(size, dtype=np.float64)
        self.clamped_distances = np.zeros(size, dtype=np.float64)
        self.directions = np.zeros(size, dtype=np.float64)
        # Unit vector components of the i -> j bearing
        self.cos = np.zeros(size, dtype=np.float64)
        self.sin = np.zeros(size, dtype=np.float64)

    @property
    def n_nodes(self) -> int:
        return self._n

    @property
    def size(self) -> int:
        return len(self.distances)

    @property
    def is_built(self) -> bool:
        return self._built

    def rebuild(self, positions: Sequence[Vector2D]) -> Self:
        """
        Recompute every pair from ``positions``.

        Each unordered pair is evaluated exactly once.
        """
        n = len(positions)
        if n != self._n:
            self._allocate(n)

        if n >= 2:
            xs = np.fromiter((p.x for p in positions), dtype=np.float64, count=n)
            ys = np.fromiter((p.y for p in positions), dtype=np.float64, count=n)
            dx = xs[self.cols] - xs[self.rows]
            dy = ys[self.cols] - ys[self.rows]

            np.hypot(dx, dy, out=self.distances)
            np.maximum(self.distances, self.epsilon, out=self.clamped_distances)
            np.arctan2(dy, dx, out=self.directions)
            np.cos(self.directions, out=self.cos)
            np.sin(self.directions, out=self.sin)

        self._built = True
        return self

    def index(self, i: int, j: int) -> int:
        return pair_index(i, j, self._n)

    def distance(self, i: int, j: int) -> float:
        """Euclidean distance between nodes i and j."""
        self._check_built()
        return float(self.distances[self.index(i, j)])

    def clamped_distance(self, i: int, j: int) -> float:
        """Distance between nodes i and j, floored at ``epsilon``."""
        self._check_built()
        return float(self.clamped_distances[self.index(i, j)])

    def direction(self, i: int, j: int) -> float:
        """
        Bearing in radians from node i towards node j.

        For i < j this is the stored ``atan2`` value; the reverse bearing is
        derived as ``direction(j, i) + pi (mod 2pi)``.
        """
        self._check_built()
        theta = float(self.directions[self.index(i, j)])
        if i < j:
            return theta
        return (theta + math.pi) % TWO_PI

    def unit(self, i: int, j: int) -> Vector2D:
        """Unit vector pointing from node i towards node j."""
        self._check_built()
        k = self.index(i, j)
        u = Vector2D(float(self.cos[k]), float(self.sin[k]))
        return u if i < j else -u

    def _check_built(self) -> None:
        if not self._built:
            raise RuntimeError("DistanceDirectionCache.rebuild() has not been called")

    def __repr__(self) -> str:
        return f"DistanceDirectionCache(n_nodes={self._n}, pairs={self.size})"


def build_cache(positions: Sequence[Vector2D], epsilon: Optional[float] = None) -> DistanceDirectionCache:
    """Create a cache and populate it from ``positions``."""
    cache = DistanceDirectionCache(len(positions), epsilon=EPSILON if epsilon is None else epsilon)
    return cache.rebuild(positions)


__all__ = [
    "EPSILON",
    "DistanceDirectionCache",
    "build_cache",
    "half_matrix_size",
    "pair_index",
]
