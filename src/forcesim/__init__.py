"""
forcesim: A 2D force-directed graph simulation engine.

Nodes repel each other like charged particles, edges pull their endpoints
together like springs, and a host advances the system one time step at a
time to animate the layout.

- simulation: ForceSimulation orchestrator plus create()/step()
- force: Force accumulation (exact or zoned) and integration
- spatial: Distance/direction cache and zone partition
- metrics: Energy and layout measures for convergence checks
"""

__version__ = "0.1.0"

# Base class for step-driven simulations
from .base import BaseSimulation

# Force model
from .force import ForceAccumulator, Integrator

# Metrics for convergence checks
from .metrics import (
    edge_length_variance,
    kinetic_energy,
    max_force_magnitude,
    pairwise_distance_spread,
    total_momentum,
)
from .simulation import ForceSimulation, create, step

# Spatial data structures
from .spatial import BoundingBox, DistanceDirectionCache, MajorZone, MinorZone, ZoneIndex, ZoneWarning
from .types import (
    DerivedMass,
    Edge,
    EdgeLike,
    Event,
    EventType,
    FixedMass,
    Graph,
    MassPolicy,
    Node,
    NodeLike,
    SimulationMode,
)

# Validation
from .validation import (
    DegenerateMassError,
    InvalidGraphError,
    InvalidParameterError,
    SimulationError,
    SimulationWarning,
    ValidationError,
)
from .vector import Vector2D

__all__ = [
    # Version
    "__version__",
    # Simulation
    "ForceSimulation",
    "create",
    "step",
    "BaseSimulation",
    # Types
    "Vector2D",
    "Node",
    "Edge",
    "Graph",
    "NodeLike",
    "EdgeLike",
    "FixedMass",
    "DerivedMass",
    "MassPolicy",
    "SimulationMode",
    "Event",
    "EventType",
    # Force model
    "ForceAccumulator",
    "Integrator",
    # Spatial
    "DistanceDirectionCache",
    "ZoneIndex",
    "BoundingBox",
    "MajorZone",
    "MinorZone",
    # Metrics
    "kinetic_energy",
    "total_momentum",
    "pairwise_distance_spread",
    "edge_length_variance",
    "max_force_magnitude",
    # Validation
    "ValidationError",
    "InvalidGraphError",
    "DegenerateMassError",
    "InvalidParameterError",
    "SimulationError",
    "SimulationWarning",
    "ZoneWarning",
]
