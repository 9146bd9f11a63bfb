"""
Net force computation for every node.

Physical model:
- Repulsion between masses m1, m2 at distance d: k_r * m1 * m2 / d^2,
  pushing the two apart (perfectly anti-symmetric)
- Attraction along an edge of weight w at distance d: k_a * w * d,
  pulling the endpoints together (a spring with zero rest length)

Two modes are supported. EXACT evaluates every unordered pair of real
nodes. ZONED evaluates pairs inside the same major zone exactly and
replaces everything else by zone aggregates: one point mass per minor zone
of each adjacent major zone, and one point mass per non-adjacent major
zone. Attraction is always exact because it only involves edge endpoints.
"""

from __future__ import annotations

import concurrent.futures
from typing import Optional, Sequence

import numpy as np

from ..spatial.cache import EPSILON, DistanceDirectionCache
from ..spatial.zones import ADJACENCY, N_MAJOR_ZONES, ZoneIndex
from ..types import Edge, Graph, SimulationMode
from ..vector import Vector2D


def repulsive_force(
    m1: float,
    m2: float,
    distance: float,
    toward_other: Vector2D,
    repulsion_constant: float = 1.0,
    epsilon: float = EPSILON,
) -> Vector2D:
    """
    Repulsive force exerted on body 1 by body 2.

    Args:
        m1, m2: Masses of the two bodies
        distance: Separation (clamped to ``epsilon`` here)
        toward_other: Unit vector from body 1 towards body 2
        repulsion_constant: k_r

    Returns:
        Force on body 1, pointing away from body 2
    """
    d = max(distance, epsilon)
    magnitude = repulsion_constant * (m1 * m2) / (d * d)
    return toward_other * -magnitude


def attractive_force(
    weight: float,
    distance: float,
    toward_other: Vector2D,
    attraction_constant: float = 1.0,
) -> Vector2D:
    """
    Spring force exerted on one endpoint of an edge.

    The magnitude grows linearly with the distance between the endpoints.

    Returns:
        Force on the endpoint, pointing towards the other endpoint
    """
    magnitude = attraction_constant * weight * distance
    return toward_other * magnitude


class ForceAccumulator:
    """
    Computes the net force on every node from a frozen snapshot.

    The accumulator only reads the node masses, the distance/direction cache
    and the zone index; each node's result goes into its own output slot.

    Example:
        acc = ForceAccumulator(repulsion_constant=1.0, attraction_constant=1.0)
        cache = DistanceDirectionCache().rebuild(graph.positions())
        forces = acc.compute_net_forces(graph, cache)
    """

    def __init__(
        self,
        repulsion_constant: float = 1.0,
        attraction_constant: float = 1.0,
        epsilon: float = EPSILON,
        workers: int = 1,
    ) -> None:
        self.repulsion_constant = float(repulsion_constant)
        self.attraction_constant = float(attraction_constant)
        self.epsilon = float(epsilon)
        self.workers = max(1, int(workers))

    # -------------------------------------------------------------------------
    # Single interactions
    # -------------------------------------------------------------------------

    def repulsion_between(
        self,
        i: int,
        j: int,
        cache: DistanceDirectionCache,
        masses: Sequence[float],
    ) -> Vector2D:
        """Repulsive force exerted on node i by node j."""
        return repulsive_force(
            masses[i],
            masses[j],
            cache.clamped_distance(i, j),
            cache.unit(i, j),
            self.repulsion_constant,
            self.epsilon,
        )

    def attraction_along(self, edge: Edge, cache: DistanceDirectionCache) -> Vector2D:
        """Attractive force exerted on ``edge.node1_idx`` by ``edge.node2_idx``."""
        a, b = edge.node1_idx, edge.node2_idx
        return attractive_force(
            edge.weight,
            cache.distance(a, b),
            cache.unit(a, b),
            self.attraction_constant,
        )

    # -------------------------------------------------------------------------
    # Net forces
    # -------------------------------------------------------------------------

    def compute_net_forces(
        self,
        graph: Graph,
        cache: DistanceDirectionCache,
        zone_index: Optional[ZoneIndex] = None,
        mode: SimulationMode = SimulationMode.EXACT,
        masses: Optional[Sequence[float]] = None,
    ) -> list[Vector2D]:
        """
        Net force on every node, in node order.

        Args:
            graph: Nodes and edges of the snapshot
            cache: Cache rebuilt from the snapshot positions
            zone_index: Zone index rebuilt from the snapshot (ZONED only)
            mode: EXACT or ZONED
            masses: Resolved node masses. Defaults to each node's ``mass``.

        Returns:
            One force vector per node
        """
        fx, fy = self.compute_force_arrays(graph, cache, zone_index, mode, masses)
        return [Vector2D(float(x), float(y)) for x, y in zip(fx, fy)]

    def compute_force_arrays(
        self,
        graph: Graph,
        cache: DistanceDirectionCache,
        zone_index: Optional[ZoneIndex] = None,
        mode: SimulationMode = SimulationMode.EXACT,
        masses: Optional[Sequence[float]] = None,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Same as ``compute_net_forces`` but returns (fx, fy) arrays."""
        n = len(graph.nodes)
        if cache.n_nodes != n:
            raise ValueError(f"Cache holds {cache.n_nodes} nodes but graph has {n}")

        if masses is None:
            masses = [node.mass for node in graph.nodes]
        m = np.asarray(masses, dtype=np.float64)

        force_x = np.zeros(n, dtype=np.float64)
        force_y = np.zeros(n, dtype=np.float64)
        if n == 0:
            return force_x, force_y

        if SimulationMode.parse(mode) == SimulationMode.ZONED:
            if zone_index is None or zone_index.n_nodes != n:
                raise ValueError("ZONED mode requires a zone index rebuilt for this snapshot")
            positions = graph.positions()
            xs = np.fromiter((p.x for p in positions), dtype=np.float64, count=n)
            ys = np.fromiter((p.y for p in positions), dtype=np.float64, count=n)
            self._compute_repulsive_zoned(cache, zone_index, m, xs, ys, force_x, force_y)
        else:
            self._compute_repulsive_exact(cache, m, force_x, force_y)

        self._compute_attractive(graph.edges, cache, force_x, force_y)
        return force_x, force_y

    def _compute_repulsive_exact(
        self,
        cache: DistanceDirectionCache,
        m: np.ndarray,
        force_x: np.ndarray,
        force_y: np.ndarray,
    ) -> None:
        """Every unordered pair once, applied with opposite signs to both ends."""
        if cache.size == 0:
            return
        rows, cols = cache.rows, cache.cols
        d = cache.clamped_distances
        magnitude = self.repulsion_constant * (m[rows] * m[cols]) / (d * d)
        px = magnitude * cache.cos
        py = magnitude * cache.sin

        # Row node is pushed away from column node and vice versa
        np.subtract.at(force_x, rows, px)
        np.subtract.at(force_y, rows, py)
        np.add.at(force_x, cols, px)
        np.add.at(force_y, cols, py)

    def _compute_repulsive_zoned(
        self,
        cache: DistanceDirectionCache,
        zone_index: ZoneIndex,
        m: np.ndarray,
        xs: np.ndarray,
        ys: np.ndarray,
        force_x: np.ndarray,
        force_y: np.ndarray,
    ) -> None:
        """Exact repulsion inside a zone, aggregate repulsion from the rest."""
        occupied = [z for z in range(N_MAJOR_ZONES) if zone_index.members(z)]

        def zone_task(zone: int) -> None:
            self._repulse_zone(zone, cache, zone_index, m, xs, ys, force_x, force_y)

        if self.workers > 1 and len(occupied) > 1:
            # Each zone writes only to the slots of its own members
            with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [executor.submit(zone_task, zone) for zone in occupied]
                for fut in futures:
                    fut.result()
        else:
            for zone in occupied:
                zone_task(zone)

    def _repulse_zone(
        self,
        zone: int,
        cache: DistanceDirectionCache,
        zone_index: ZoneIndex,
        m: np.ndarray,
        xs: np.ndarray,
        ys: np.ndarray,
        force_x: np.ndarray,
        force_y: np.ndarray,
    ) -> None:
        members = np.asarray(zone_index.members(zone), dtype=np.int64)
        n = cache.n_nodes
        k_r = self.repulsion_constant

        # Exact pairs within the zone, read from the cache
        for i in members.tolist():
            others = members[members != i]
            if len(others) == 0:
                continue
            lo = np.minimum(i, others)
            hi = np.maximum(i, others)
            k = lo * n + hi - lo * (lo + 1) // 2 - lo - 1
            sign = np.where(others > i, 1.0, -1.0)
            d = cache.clamped_distances[k]
            magnitude = k_r * (m[i] * m[others]) / (d * d)
            force_x[i] -= float(np.sum(magnitude * sign * cache.cos[k]))
            force_y[i] -= float(np.sum(magnitude * sign * cache.sin[k]))

        # Aggregates seen from this zone are the same for all its members
        agg_m, agg_x, agg_y = self._far_field(zone, zone_index)
        if len(agg_m) == 0:
            return

        mx = xs[members]
        my = ys[members]
        dx = agg_x[None, :] - mx[:, None]
        dy = agg_y[None, :] - my[:, None]
        d = np.maximum(np.hypot(dx, dy), self.epsilon)
        theta = np.arctan2(dy, dx)
        magnitude = k_r * (m[members][:, None] * agg_m[None, :]) / (d * d)
        force_x[members] -= np.sum(magnitude * np.cos(theta), axis=1)
        force_y[members] -= np.sum(magnitude * np.sin(theta), axis=1)

    @staticmethod
    def _far_field(zone: int, zone_index: ZoneIndex) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Non-empty aggregates interacting with nodes of ``zone``."""
        aggregates = []
        for other in range(N_MAJOR_ZONES):
            if other == zone:
                continue
            if other in ADJACENCY[zone]:
                aggregates.extend(zone_index.minor_aggregates(other))
            else:
                aggregates.append(zone_index.major_aggregate(other))

        aggregates = [agg for agg in aggregates if agg.mass > 0.0]
        return (
            np.array([agg.mass for agg in aggregates], dtype=np.float64),
            np.array([agg.x for agg in aggregates], dtype=np.float64),
            np.array([agg.y for agg in aggregates], dtype=np.float64),
        )

    def _compute_attractive(
        self,
        edges: Sequence[Edge],
        cache: DistanceDirectionCache,
        force_x: np.ndarray,
        force_y: np.ndarray,
    ) -> None:
        """Spring force along every real edge."""
        if not edges or cache.size == 0:
            return
        n = cache.n_nodes
        a = np.fromiter((e.node1_idx for e in edges), dtype=np.int64, count=len(edges))
        b = np.fromiter((e.node2_idx for e in edges), dtype=np.int64, count=len(edges))
        w = np.fromiter((e.weight for e in edges), dtype=np.float64, count=len(edges))

        lo = np.minimum(a, b)
        hi = np.maximum(a, b)
        k = lo * n + hi - lo * (lo + 1) // 2 - lo - 1
        # Cached bearing runs lo -> hi; flip it when node1 is the higher index
        sign = np.where(a < b, 1.0, -1.0)

        magnitude = self.attraction_constant * w * cache.distances[k]
        px = magnitude * sign * cache.cos[k]
        py = magnitude * sign * cache.sin[k]

        np.add.at(force_x, a, px)
        np.add.at(force_y, a, py)
        np.subtract.at(force_x, b, px)
        np.subtract.at(force_y, b, py)


__all__ = [
    "ForceAccumulator",
    "attractive_force",
    "repulsive_force",
]
