"""
Force simulation orchestrator.

One call to ``ForceSimulation.step()``:

1. resolves node masses from the configured mass policy
2. snapshots the current positions
3. rebuilds the distance/direction cache (and the zone index in ZONED mode)
4. accumulates the net force on every node from the snapshot
5. integrates every node into new position/velocity buffers
6. commits all nodes at once

No node ever observes another node's updated position during a step, and a
step that fails leaves the simulation exactly as it was.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Union

from typing_extensions import Self

from .base import BaseSimulation, Listener
from .force.accumulator import ForceAccumulator
from .force.integrator import Integrator
from .metrics import kinetic_energy
from .spatial.cache import EPSILON, DistanceDirectionCache
from .spatial.zones import BoundingBox, ZoneIndex
from .types import (
    DerivedMass,
    EdgeLike,
    EventType,
    FixedMass,
    MassPolicy,
    NodeLike,
    SimulationMode,
)
from .validation import (
    InvalidParameterError,
    SimulationError,
    validate_bounds,
    validate_constant,
    validate_damping,
    validate_energy_threshold,
    validate_masses,
    validate_max_speed,
    validate_padding,
    validate_time_step,
)
from .vector import Vector2D


class ForceSimulation(BaseSimulation):
    """
    Force-directed simulation of a weighted graph.

    All node pairs repel each other (inverse-square in distance, scaled by
    both masses) and edges pull their endpoints together (linear in
    distance, scaled by the edge weight). Velocities and positions advance
    by semi-implicit Euler integration.

    Example:
        sim = ForceSimulation(
            nodes=[{"x": 0, "y": 0}, {"x": 1, "y": 0}, {"x": 0, "y": 1}],
            edges=[(0, 1, 1.0), (1, 2, 1.0), (2, 0, 1.0)],
            repulsion_constant=1.0,
            attraction_constant=1.0,
            damping=0.5,
        )
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
        repulsion_constant: float = 1.0,
        attraction_constant: float = 1.0,
        mode: Union[SimulationMode, str] = SimulationMode.EXACT,
        mass_policy: Optional[MassPolicy] = None,
        time_step: float = 1.0,
        damping: float = 0.0,
        max_speed: Optional[float] = None,
        bounds: Optional[Sequence[float]] = None,
        zone_padding: float = 0.05,
        workers: int = 1,
        energy_threshold: Optional[float] = None,
    ) -> None:
        """
        Initialize and validate a simulation.

        Args:
            nodes: List of nodes
            edges: List of edges
            on_start: Listener for the start of a run
            on_tick: Listener called after every committed step
            on_end: Listener for the end of a run
            repulsion_constant: k_r in k_r * m1 * m2 / d^2
            attraction_constant: k_a in k_a * w * d
            mode: EXACT or ZONED force computation
            mass_policy: DerivedMass() (default) or FixedMass(value). The
                resolved masses are held by the simulation, and each
                node.mass keeps the caller's value.
            time_step: Default dt used when step() is called without one
            damping: Fraction of velocity removed per step, in [0, 1)
            max_speed: Optional positive cap on node speed
            bounds: (min_x, min_y, max_x, max_y) partitioned by the zone
                grid. Derived from the positions each step when None.
            zone_padding: Non-negative relative padding of the derived zone
                bounds
            workers: Threads used for ZONED force accumulation
            energy_threshold: run() stops early once kinetic energy drops
                below this value

        Raises:
            InvalidGraphError: If an edge is out of range or has weight <= 0
            DegenerateMassError: If any resolved mass is <= 0
            InvalidParameterError: If a parameter is out of range
        """
        super().__init__(
            nodes=nodes,
            edges=edges,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )

        self._accumulator = ForceAccumulator(
            repulsion_constant=validate_constant("repulsion_constant", repulsion_constant),
            attraction_constant=validate_constant("attraction_constant", attraction_constant),
            epsilon=EPSILON,
            workers=workers,
        )
        self._integrator = Integrator(damping=damping, max_speed=max_speed)
        self._cache = DistanceDirectionCache(len(self.nodes))
        self._zones = ZoneIndex(padding=zone_padding)

        # Internal state
        self._step_count: int = 0
        self._stepping: bool = False
        self._masses: list[float] = []

        self.mode = mode
        self.mass_policy = mass_policy if mass_policy is not None else DerivedMass()
        self._time_step: float = validate_time_step(time_step)
        self._bounds = validate_bounds(bounds)
        self._energy_threshold = validate_energy_threshold(energy_threshold)

        self.validate()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def repulsion_constant(self) -> float:
        return self._accumulator.repulsion_constant

    @repulsion_constant.setter
    def repulsion_constant(self, value: float) -> None:
        self._accumulator.repulsion_constant = validate_constant("repulsion_constant", value)

    @property
    def attraction_constant(self) -> float:
        return self._accumulator.attraction_constant

    @attraction_constant.setter
    def attraction_constant(self, value: float) -> None:
        self._accumulator.attraction_constant = validate_constant("attraction_constant", value)

    @property
    def mode(self) -> SimulationMode:
        """Get force computation mode."""
        return self._mode

    @mode.setter
    def mode(self, value: Union[SimulationMode, str]) -> None:
        try:
            self._mode = SimulationMode.parse(value)
        except ValueError as exc:
            raise InvalidParameterError(str(exc)) from None

    @property
    def mass_policy(self) -> MassPolicy:
        """Mass policy. Setting it re-resolves the masses immediately."""
        return self._mass_policy

    @mass_policy.setter
    def mass_policy(self, value: MassPolicy) -> None:
        if not isinstance(value, (FixedMass, DerivedMass)):
            raise InvalidParameterError(
                f"mass_policy must be FixedMass or DerivedMass, got {type(value).__name__}"
            )
        self._ensure_idle("mass_policy")
        self._mass_policy = value
        self._masses = self.resolve_masses()

    @property
    def time_step(self) -> float:
        return self._time_step

    @time_step.setter
    def time_step(self, value: float) -> None:
        self._time_step = validate_time_step(value)

    @property
    def damping(self) -> float:
        return self._integrator.damping

    @damping.setter
    def damping(self, value: float) -> None:
        self._integrator.damping = validate_damping(value)

    @property
    def max_speed(self) -> Optional[float]:
        return self._integrator.max_speed

    @max_speed.setter
    def max_speed(self, value: Optional[float]) -> None:
        self._integrator.max_speed = validate_max_speed(value)

    @property
    def energy_threshold(self) -> Optional[float]:
        return self._energy_threshold

    @energy_threshold.setter
    def energy_threshold(self, value: Optional[float]) -> None:
        self._energy_threshold = validate_energy_threshold(value)

    @property
    def zone_padding(self) -> float:
        return self._zones.padding

    @zone_padding.setter
    def zone_padding(self, value: float) -> None:
        self._zones.padding = validate_padding(value)

    @property
    def bounds(self) -> Optional[tuple[float, float, float, float]]:
        """Explicit zone bounds, or None when derived each step."""
        return self._bounds

    @bounds.setter
    def bounds(self, value: Optional[Sequence[float]]) -> None:
        self._bounds = validate_bounds(value)

    @property
    def step_count(self) -> int:
        """Number of steps committed so far."""
        return self._step_count

    @property
    def is_stepping(self) -> bool:
        return self._stepping

    @property
    def cache(self) -> DistanceDirectionCache:
        """Distance/direction cache from the most recent computation."""
        return self._cache

    @property
    def zone_index(self) -> ZoneIndex:
        """Zone index from the most recent ZONED computation."""
        return self._zones

    # -------------------------------------------------------------------------
    # Masses
    # -------------------------------------------------------------------------

    def resolve_masses(self) -> list[float]:
        """Node masses under the current mass policy, in node order."""
        policy = self._mass_policy
        if isinstance(policy, FixedMass):
            if policy.value is not None:
                return [float(policy.value)] * len(self.nodes)
            return [node.mass for node in self.nodes]
        return self._graph.derived_masses()

    def _committed_masses(self) -> list[float]:
        # Resolved again after the node list is replaced between steps
        if len(self._masses) != len(self.nodes):
            self._masses = self.resolve_masses()
        return self._masses

    def validate(self) -> Self:
        """
        Validate the graph and the resolved masses.

        Raises:
            InvalidGraphError: If the graph is malformed
            DegenerateMassError: If any node would have mass <= 0
        """
        super().validate()
        validate_masses(self.resolve_masses(), strict=True)
        return self

    # -------------------------------------------------------------------------
    # Graph mutation
    # -------------------------------------------------------------------------

    def set_edge_weight(self, edge_idx: int, weight: float) -> Self:
        """
        Change the weight of an edge between steps.

        Derived masses pick up the new weight at the next step.

        Raises:
            InvalidGraphError: If ``weight`` is not strictly positive
        """
        self._ensure_idle("set_edge_weight")
        self._graph.set_edge_weight(edge_idx, weight)
        return self

    def reset_velocities(self) -> Self:
        """Bring every node to rest."""
        self._ensure_idle("reset_velocities")
        for node in self.nodes:
            node.velocity = Vector2D(0.0, 0.0)
        return self

    # -------------------------------------------------------------------------
    # Stepping
    # -------------------------------------------------------------------------

    def net_forces(self) -> list[Vector2D]:
        """
        Net force on every node for the current state, without stepping.

        Raises:
            DegenerateMassError: If any resolved mass is <= 0
        """
        masses = self.resolve_masses()
        validate_masses(masses, strict=True)
        fx, fy = self._compute_forces(self._graph.positions(), masses)
        return [Vector2D(float(x), float(y)) for x, y in zip(fx, fy)]

    def _compute_forces(self, positions: list[Vector2D], masses: Sequence[float]) -> Any:
        self._cache.rebuild(positions)
        zones = None
        if self._mode == SimulationMode.ZONED:
            box = BoundingBox(*self._bounds) if self._bounds is not None else None
            zones = self._zones.rebuild(positions, masses, box, stacklevel=4)
        return self._accumulator.compute_force_arrays(
            self._graph, self._cache, zones, self._mode, masses
        )

    def step(self, dt: Optional[float] = None) -> Self:
        """
        Advance the simulation by one time step.

        Args:
            dt: Time step. Defaults to ``time_step``.

        Returns:
            self (for chaining)

        Raises:
            SimulationError: If called while a step is in progress, or if
                the step would produce non-finite state
            DegenerateMassError: If any resolved mass is <= 0
            InvalidParameterError: If dt is not strictly positive
        """
        self._ensure_idle("step")
        dt = validate_time_step(self._time_step if dt is None else dt)

        self._stepping = True
        try:
            masses = self.resolve_masses()
            validate_masses(masses, strict=True)

            # Positions are immutable values, so this list is a frozen snapshot
            positions = self._graph.positions()
            force_x, force_y = self._compute_forces(positions, masses)

            updates = []
            for i, node in enumerate(self.nodes):
                force = Vector2D(float(force_x[i]), float(force_y[i]))
                position, velocity = self._integrator.integrate(node, force, dt, mass=masses[i])
                if not (position.is_finite() and velocity.is_finite()):
                    raise SimulationError(
                        f"Step {self._step_count + 1}: node {i} would reach a non-finite "
                        f"state (force={force!r}); simulation left unchanged"
                    )
                updates.append((position, velocity))

            # Commit
            for node, (position, velocity) in zip(self.nodes, updates):
                node.position = position
                node.velocity = velocity
            self._masses = masses
            self._step_count += 1
        finally:
            self._stepping = False

        self.trigger({"type": EventType.tick, "step": self._step_count, "energy": self.energy()})
        return self

    def _ensure_idle(self, operation: str) -> None:
        if self._stepping:
            raise SimulationError(f"{operation}() called while a step is in progress")

    def energy(self) -> float:
        """Kinetic energy of the nodes under the committed masses."""
        return kinetic_energy(self.nodes, self._committed_masses())

    def is_settled(self) -> bool:
        if self._energy_threshold is None:
            return False
        return self.energy() < self._energy_threshold

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    def positions(self) -> list[Vector2D]:
        return self._graph.positions()

    def velocities(self) -> list[Vector2D]:
        return [node.velocity for node in self.nodes]

    def masses(self) -> list[float]:
        """Committed masses (last step or last policy change), in node order."""
        return list(self._committed_masses())

    def snapshot(self) -> dict[str, Any]:
        """
        Exchange-format view of the current state.

        Field names: ``nodes[i].position.x``, ``nodes[i].position.y``,
        ``nodes[i].velocity.x/y``, ``nodes[i].mass``, ``nodes[i].radius``,
        ``edges[k].node1_idx``, ``edges[k].node2_idx``, ``edges[k].weight``.
        """
        return {
            "step": self._step_count,
            "nodes": [
                dict(node.to_dict(), mass=mass)
                for node, mass in zip(self.nodes, self._committed_masses())
            ],
            "edges": [edge.to_dict() for edge in self.edges],
        }

    def __repr__(self) -> str:
        return (
            f"ForceSimulation(nodes={len(self.nodes)}, edges={len(self.edges)}, "
            f"mode={self._mode.name}, step={self._step_count})"
        )


def create(
    nodes: Sequence[NodeLike],
    edges: Sequence[EdgeLike],
    repulsion_constant: float = 1.0,
    attraction_constant: float = 1.0,
    mode: Union[SimulationMode, str] = SimulationMode.EXACT,
    **options: Any,
) -> ForceSimulation:
    """
    Construct a validated simulation from a caller-provided graph.

    Keyword options are passed through to ForceSimulation.

    Raises:
        InvalidGraphError: If any edge index is out of range or weight <= 0
        DegenerateMassError: If any resolved mass is <= 0
    """
    return ForceSimulation(
        nodes=nodes,
        edges=edges,
        repulsion_constant=repulsion_constant,
        attraction_constant=attraction_constant,
        mode=mode,
        **options,
    )


def step(simulation: ForceSimulation, dt: Optional[float] = None) -> ForceSimulation:
    """Advance ``simulation`` by one step and return it."""
    return simulation.step(dt)


__all__ = ["ForceSimulation", "create", "step"]
