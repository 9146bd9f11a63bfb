"""
Common types for the force simulation.

This module provides the fundamental types used across the package:
- Node: Graph vertex with position, velocity and mass
- Edge: Weighted connection between two node indices
- Graph: Ordered node and edge sequences addressed by index
- FixedMass / DerivedMass: How node masses are obtained
- SimulationMode: Exact or zoned force computation
- EventType: Simulation lifecycle events
- Event: Event payload for callbacks
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional, Sequence, TypedDict, Union

from .validation import InvalidGraphError, validate_edges
from .vector import Vector2D


class EventType(IntEnum):
    """
    Simulation lifecycle events.

    - start: A run of steps has begun
    - tick: Fired once per step (for animation)
    - end: The run has finished or settled
    """

    start = 0
    tick = 1
    end = 2


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    step: int
    energy: float


class SimulationMode(IntEnum):
    """
    Force computation strategy.

    - EXACT: every real node pair is evaluated individually, O(n^2)
    - ZONED: distant interactions are approximated by zone aggregates
    """

    EXACT = 0
    ZONED = 1

    @classmethod
    def parse(cls, value: Union[SimulationMode, str, int]) -> SimulationMode:
        """Accept an enum member, its name (case-insensitive) or its value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                raise ValueError(f"Unknown simulation mode: {value!r}") from None
        return cls(value)


@dataclass(frozen=True)
class FixedMass:
    """
    Caller-supplied masses.

    If ``value`` is None each node keeps the mass it was constructed with,
    otherwise every node gets ``value``.
    """

    value: Optional[float] = None


@dataclass(frozen=True)
class DerivedMass:
    """Mass of a node is the sum of the weights of its incident edges."""


MassPolicy = Union[FixedMass, DerivedMass]


def _as_vector(value: Any) -> Vector2D:
    """Coerce a Vector2D, (x, y) pair, dict or attribute object to Vector2D."""
    if isinstance(value, Vector2D):
        return value
    if value is None:
        return Vector2D(0.0, 0.0)
    if isinstance(value, dict):
        return Vector2D(float(value.get("x", 0.0)), float(value.get("y", 0.0)))
    if isinstance(value, (tuple, list)):
        return Vector2D(float(value[0]), float(value[1]))
    return Vector2D(float(getattr(value, "x", 0.0)), float(getattr(value, "y", 0.0)))


class Node:
    """
    Graph node with kinematic state.

    Attributes:
        index: Index in the node sequence (set by the simulation)
        position: Current position
        velocity: Current velocity
        mass: Mass used by the force model (resolved per step under
            DerivedMass, caller-supplied under FixedMass)
        radius: Display radius, not used by the force model
        label: Optional display label
    """

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize node with optional properties.

        Position may be given as ``position`` (Vector2D, dict, pair) or as
        flat ``x``/``y`` keys.
        """
        self.index: Optional[int] = kwargs.get("index")
        if "position" in kwargs:
            self.position: Vector2D = _as_vector(kwargs["position"])
        else:
            self.position = Vector2D(float(kwargs.get("x", 0.0)), float(kwargs.get("y", 0.0)))
        self.velocity: Vector2D = _as_vector(kwargs.get("velocity"))
        self.mass: float = float(kwargs.get("mass", 1.0))
        self.radius: float = float(kwargs.get("radius", 1.0))
        self.label: Optional[str] = kwargs.get("label")

        # Copy any additional custom properties
        for key, value in kwargs.items():
            if key in ("x", "y"):
                continue
            if not hasattr(self, key):
                setattr(self, key, value)

    @property
    def x(self) -> float:
        return self.position.x

    @property
    def y(self) -> float:
        return self.position.y

    def to_dict(self) -> dict[str, Any]:
        """Exchange-format representation of this node."""
        return {
            "position": self.position.to_dict(),
            "velocity": self.velocity.to_dict(),
            "mass": self.mass,
            "radius": self.radius,
        }

    def __repr__(self) -> str:
        return f"Node(index={self.index}, x={self.position.x:.2f}, y={self.position.y:.2f})"


class Edge:
    """
    Weighted edge between two nodes, referenced by index.

    Attributes:
        node1_idx: Index of the first node
        node2_idx: Index of the second node
        weight: Edge weight (strictly positive)
    """

    def __init__(self, node1_idx: int, node2_idx: int, weight: float = 1.0, **kwargs: Any) -> None:
        """
        Initialize edge between two node indices.

        Raises:
            ValueError: If either index is None
        """
        if node1_idx is None:
            raise ValueError("Edge node1_idx cannot be None")
        if node2_idx is None:
            raise ValueError("Edge node2_idx cannot be None")

        self.node1_idx = int(node1_idx)
        self.node2_idx = int(node2_idx)
        self.weight = float(weight)

        for key, value in kwargs.items():
            if not hasattr(self, key):
                setattr(self, key, value)

    def has_node(self, node_idx: int) -> bool:
        return self.node1_idx == node_idx or self.node2_idx == node_idx

    def other(self, node_idx: int) -> int:
        """Index of the endpoint opposite ``node_idx``."""
        if node_idx == self.node1_idx:
            return self.node2_idx
        if node_idx == self.node2_idx:
            return self.node1_idx
        raise ValueError(f"Node {node_idx} is not an endpoint of {self!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "node1_idx": self.node1_idx,
            "node2_idx": self.node2_idx,
            "weight": self.weight,
        }

    def __repr__(self) -> str:
        return f"Edge({self.node1_idx} -- {self.node2_idx}, weight={self.weight})"


# Type aliases for Pythonic API
NodeLike = Union[Node, dict[str, Any], Any]
"""Input type for nodes: Node objects, dicts, or objects with node attributes."""

EdgeLike = Union[Edge, dict[str, Any], tuple, Any]
"""Input type for edges: Edge objects, dicts, (i, j[, w]) tuples, or objects."""


def to_node(node_data: NodeLike) -> Node:
    """Normalize a NodeLike into a Node."""
    if isinstance(node_data, Node):
        return node_data
    if isinstance(node_data, dict):
        return Node(**node_data)
    # Generic object - copy attributes
    node = Node()
    for attr in ["index", "velocity", "mass", "radius", "label"]:
        if hasattr(node_data, attr):
            setattr(node, attr, getattr(node_data, attr))
    if hasattr(node_data, "position"):
        node.position = _as_vector(node_data.position)
    elif hasattr(node_data, "x") and hasattr(node_data, "y"):
        node.position = Vector2D(float(node_data.x), float(node_data.y))
    node.velocity = _as_vector(node.velocity)
    node.mass = float(node.mass)
    return node


def to_edge(edge_data: EdgeLike) -> Edge:
    """Normalize an EdgeLike into an Edge."""
    if isinstance(edge_data, Edge):
        return edge_data
    if isinstance(edge_data, dict):
        return Edge(**edge_data)
    if isinstance(edge_data, (tuple, list)):
        return Edge(*edge_data)
    node1 = getattr(edge_data, "node1_idx", None)
    node2 = getattr(edge_data, "node2_idx", None)
    weight = getattr(edge_data, "weight", 1.0)
    return Edge(node1, node2, weight)


class Graph:
    """
    Ordered node sequence plus ordered edge sequence.

    Edges reference nodes by their index in the node sequence; indices are
    stable for the lifetime of the graph because nodes are only appended.

    Example:
        graph = Graph(
            nodes=[{"x": 0, "y": 0}, {"x": 1, "y": 0}],
            edges=[(0, 1, 1.0)],
        )
        graph.node_mass(0)  # 1.0
    """

    def __init__(
        self,
        nodes: Optional[Sequence[NodeLike]] = None,
        edges: Optional[Sequence[EdgeLike]] = None,
    ) -> None:
        self.nodes: list[Node] = []
        self.edges: list[Edge] = []
        for node_data in nodes or []:
            self.add_node(node_data)
        for edge_data in edges or []:
            self.add_edge(edge_data)

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    @property
    def n_edges(self) -> int:
        return len(self.edges)

    def add_node(self, node_data: NodeLike) -> int:
        """Append a node and return its index."""
        node = to_node(node_data)
        node.index = len(self.nodes)
        self.nodes.append(node)
        return node.index

    def add_edge(self, edge_data: EdgeLike) -> int:
        """
        Append an edge and return its index.

        Raises:
            InvalidGraphError: If the edge references a missing node or has
                a non-positive weight.
        """
        edge = to_edge(edge_data)
        validate_edges([edge], len(self.nodes), strict=True, offset=len(self.edges))
        self.edges.append(edge)
        return len(self.edges) - 1

    def get_node(self, node_idx: int) -> Optional[Node]:
        if 0 <= node_idx < len(self.nodes):
            return self.nodes[node_idx]
        return None

    def get_edge(self, edge_idx: int) -> Optional[Edge]:
        if 0 <= edge_idx < len(self.edges):
            return self.edges[edge_idx]
        return None

    def set_edge_weight(self, edge_idx: int, weight: float) -> None:
        """
        Update the weight of an existing edge.

        Raises:
            IndexError: If there is no edge at ``edge_idx``
            InvalidGraphError: If ``weight`` is not strictly positive
        """
        edge = self.get_edge(edge_idx)
        if edge is None:
            raise IndexError(f"Edge index {edge_idx} out of range [0, {len(self.edges)})")
        weight = float(weight)
        if not math.isfinite(weight) or weight <= 0:
            raise InvalidGraphError(f"Edge {edge_idx}: weight must be positive, got {weight}")
        edge.weight = weight

    def incident_edges(self, node_idx: int) -> list[Edge]:
        return [edge for edge in self.edges if edge.has_node(node_idx)]

    def node_mass(self, node_idx: int) -> float:
        """Sum of the weights of all edges incident on ``node_idx``."""
        return sum(edge.weight for edge in self.edges if edge.has_node(node_idx))

    def derived_masses(self) -> list[float]:
        """Edge-derived mass of every node, in node order."""
        masses = [0.0] * len(self.nodes)
        for edge in self.edges:
            masses[edge.node1_idx] += edge.weight
            masses[edge.node2_idx] += edge.weight
        return masses

    def positions(self) -> list[Vector2D]:
        return [node.position for node in self.nodes]

    def __repr__(self) -> str:
        return f"Graph(nodes={len(self.nodes)}, edges={len(self.edges)})"


__all__ = [
    "EventType",
    "Event",
    "SimulationMode",
    "FixedMass",
    "DerivedMass",
    "MassPolicy",
    "Node",
    "Edge",
    "Graph",
    "NodeLike",
    "EdgeLike",
    "to_node",
    "to_edge",
]
