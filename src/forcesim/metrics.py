"""
Simulation state metrics.

Provides quantitative measures a host can use to decide when a layout has
settled:
- Kinetic energy and momentum of the nodes
- Spread of pairwise distances (0 for an equidistant configuration)
- Edge length variance
- Largest net force magnitude

All metrics read node state and never modify it.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from .types import Edge, Node
from .vector import Vector2D


def kinetic_energy(nodes: Sequence[Node], masses: Optional[Sequence[float]] = None) -> float:
    """
    Total kinetic energy, sum of 0.5 * m * |v|^2.

    Args:
        nodes: Nodes with velocity
        masses: Mass per node. Defaults to each node's ``mass``.

    Returns:
        Kinetic energy (0 for an empty or resting system)
    """
    masses = _node_masses(nodes, masses)
    return sum(0.5 * m * node.velocity.dot(node.velocity) for node, m in zip(nodes, masses))


def total_momentum(nodes: Sequence[Node], masses: Optional[Sequence[float]] = None) -> Vector2D:
    """Vector sum of m * v over all nodes."""
    masses = _node_masses(nodes, masses)
    px = sum(m * node.velocity.x for node, m in zip(nodes, masses))
    py = sum(m * node.velocity.y for node, m in zip(nodes, masses))
    return Vector2D(px, py)


def pairwise_distances(positions: Sequence[Vector2D]) -> List[float]:
    """Distance of every unordered pair, in half-matrix order."""
    n = len(positions)
    return [positions[i].distance(positions[j]) for i in range(n) for j in range(i + 1, n)]


def pairwise_distance_spread(positions: Sequence[Vector2D]) -> float:
    """
    Difference between the largest and smallest pairwise distance.

    Three nodes with a spread of 0 form an equilateral triangle.
    """
    distances = pairwise_distances(positions)
    if not distances:
        return 0.0
    return max(distances) - min(distances)


def edge_length_variance(nodes: Sequence[Node], edges: Sequence[Edge]) -> float:
    """
    Compute the variance of edge lengths.

    Lower variance indicates more uniform edge lengths.

    Args:
        nodes: List of positioned nodes
        edges: List of edges

    Returns:
        Variance of edge lengths
    """
    lengths = _get_edge_lengths(nodes, edges)
    if not lengths:
        return 0.0

    mean = sum(lengths) / len(lengths)
    variance = sum((length - mean) ** 2 for length in lengths) / len(lengths)

    return variance


def max_force_magnitude(forces: Sequence[Vector2D]) -> float:
    """Largest magnitude among ``forces`` (0 when empty)."""
    return max((f.magnitude() for f in forces), default=0.0)


def _get_edge_lengths(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[float]:
    """Get list of edge lengths."""
    n = len(nodes)
    lengths = []

    for edge in edges:
        a = edge.node1_idx
        b = edge.node2_idx

        if 0 <= a < n and 0 <= b < n:
            dx = nodes[a].position.x - nodes[b].position.x
            dy = nodes[a].position.y - nodes[b].position.y
            lengths.append(math.sqrt(dx * dx + dy * dy))

    return lengths


def _node_masses(nodes: Sequence[Node], masses: Optional[Sequence[float]]) -> Sequence[float]:
    if masses is None:
        return [node.mass for node in nodes]
    if len(masses) != len(nodes):
        raise ValueError(f"Got {len(nodes)} nodes but {len(masses)} masses")
    return masses


__all__ = [
    "kinetic_energy",
    "total_momentum",
    "pairwise_distances",
    "pairwise_distance_spread",
    "edge_length_variance",
    "max_force_magnitude",
]
