"""
Base class for step-driven simulations.

BaseSimulation provides the shared infrastructure of a simulation that a
host advances one step at a time:

- Event system (start/tick/end events)
- Node/edge management via properties, with input normalization
- Fail-fast validation
- A run loop that repeats ``step()`` until a step budget is spent or the
  simulation settles
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional, Sequence

if TYPE_CHECKING:
    from typing_extensions import Self

from .types import (
    Edge,
    EdgeLike,
    Event,
    EventType,
    Graph,
    Node,
    NodeLike,
    to_node,
)
from .validation import validate_edges, validate_positions

Listener = Callable[[Optional[Event]], None]


class BaseSimulation(ABC):
    """
    Abstract base class for simulations driven by a host loop.

    The simulation owns its nodes: inputs are copied on assignment, so the
    host's objects are never mutated by ``step()``.

    Example:
        sim = SomeSimulation(nodes=nodes, edges=edges)
        sim.run(steps=100)

        for node in sim.nodes:
            print(f"Node {node.index}: ({node.x}, {node.y})")
    """

    def __init__(
        self,
        *,
        nodes: Optional[Sequence[NodeLike]] = None,
        edges: Optional[Sequence[EdgeLike]] = None,
        on_start: Optional[Listener] = None,
        on_tick: Optional[Listener] = None,
        on_end: Optional[Listener] = None,
    ) -> None:
        """
        Initialize simulation state.

        Args:
            nodes: Node objects, dicts, or objects with position attributes
            edges: Edge objects, dicts, or (i, j, weight) tuples
            on_start: Listener for the start of a run
            on_tick: Listener called once per committed step
            on_end: Listener for the end of a run

        Raises:
            InvalidGraphError: If an edge references a missing node or has a
                non-positive weight.
        """
        self._graph = Graph()
        self._listeners: dict[EventType, list[Listener]] = {kind: [] for kind in EventType}

        if nodes is not None:
            self.nodes = nodes
        if edges is not None:
            self.edges = edges

        for kind, listener in (
            (EventType.start, on_start),
            (EventType.tick, on_tick),
            (EventType.end, on_end),
        ):
            if listener is not None:
                self._listeners[kind].append(listener)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def nodes(self) -> list[Node]:
        """Get the list of nodes."""
        return self._graph.nodes

    @nodes.setter
    def nodes(self, value: Sequence[NodeLike]) -> None:
        """
        Replace the nodes. Existing edges are kept and revalidated.

        Raises:
            InvalidGraphError: If existing edges no longer fit the node count.
        """
        edges = self._graph.edges
        graph = Graph()
        for node_data in value:
            graph.add_node(copy.copy(to_node(node_data)))
        validate_edges(edges, graph.n_nodes, strict=True)
        graph.edges = list(edges)
        self._graph = graph

    @property
    def edges(self) -> list[Edge]:
        """Get the list of edges."""
        return self._graph.edges

    @edges.setter
    def edges(self, value: Sequence[EdgeLike]) -> None:
        """
        Replace the edges. The graph is left unchanged if any edge is invalid.

        Raises:
            InvalidGraphError: If any edge is invalid.
        """
        graph = Graph(nodes=self._graph.nodes)
        for edge_data in value:
            graph.add_edge(copy.copy(edge_data) if isinstance(edge_data, Edge) else edge_data)
        self._graph.edges = graph.edges

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Listener) -> Self:
        """
        Add a listener for ``event`` (an EventType or its name).

        Listeners of the same event run in the order they were added.

        Returns:
            self (for chaining)
        """
        kind = EventType[event] if isinstance(event, str) else EventType(event)
        self._listeners[kind].append(callback)
        return self

    def off(self, event: EventType | str) -> Self:
        """Remove every listener of ``event``."""
        kind = EventType[event] if isinstance(event, str) else EventType(event)
        self._listeners[kind].clear()
        return self

    def trigger(self, event: Event) -> None:
        """Deliver ``event`` to the listeners of its type."""
        kind = event.get("type")
        if kind is None:
            return
        for listener in list(self._listeners[kind]):
            listener(event)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> Self:
        """
        Validate current configuration.

        Checks that every edge references existing nodes with a positive
        weight and that node state is finite. Subclasses extend this with
        their own checks.

        Returns:
            self (for chaining)

        Raises:
            InvalidGraphError: If the graph is malformed.
        """
        validate_edges(self._graph.edges, self._graph.n_nodes, strict=True)
        validate_positions(self._graph.nodes, strict=True)
        return self

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    @abstractmethod
    def step(self, dt: Optional[float] = None) -> Self:
        """
        Advance the simulation by one time step.

        Returns:
            self (for chaining)
        """
        pass

    @abstractmethod
    def energy(self) -> float:
        """Scalar measure of remaining motion, reported in events."""
        pass

    def is_settled(self) -> bool:
        """True when further steps are not needed. Never, by default."""
        return False

    def run(self, steps: int, dt: Optional[float] = None) -> Self:
        """
        Run up to ``steps`` steps, stopping early once settled.

        Fires a start event, one tick event per step, and an end event.

        Returns:
            self (for chaining)
        """
        self.trigger({"type": EventType.start, "step": 0, "energy": self.energy()})
        for _ in range(max(0, int(steps))):
            self.step(dt)
            if self.is_settled():
                break
        self.trigger({"type": EventType.end, "energy": self.energy()})
        return self


__all__ = ["BaseSimulation"]
