"""
Input validation utilities for the force simulation.

Provides centralized validation functions for edges, masses, time steps and
other simulation parameters. Raises descriptive exceptions on invalid input.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence


class ValidationError(ValueError):
    """Base exception for simulation validation errors."""

    pass


class InvalidGraphError(ValidationError):
    """Raised when an edge references invalid nodes or has a bad weight."""

    pass


class DegenerateMassError(ValidationError):
    """Raised when a node's mass is not strictly positive."""

    pass


class InvalidParameterError(ValidationError):
    """Raised when a simulation parameter is out of range."""

    pass


class SimulationError(RuntimeError):
    """Raised when a step cannot be carried out or committed."""

    pass


class SimulationWarning(UserWarning):
    """Warning for recoverable anomalies during a simulation."""

    pass


def validate_edges(
    edges: Sequence[Any],
    node_count: int,
    strict: bool = True,
    offset: int = 0,
) -> list[tuple[int, str]]:
    """
    Validate edge endpoints and weights.

    Args:
        edges: Sequence of Edge objects (or objects with node1_idx, node2_idx
            and weight attributes)
        node_count: Number of nodes in the graph
        strict: If True, raises on invalid. If False, returns list of issues.
        offset: Added to edge positions in messages (for appended edges)

    Returns:
        List of (edge_index, issue_description) tuples

    Raises:
        InvalidGraphError: If strict=True and invalid edges found
    """
    issues: list[tuple[int, str]] = []

    for pos, edge in enumerate(edges):
        i = pos + offset
        n1 = _get_index(edge, "node1_idx")
        n2 = _get_index(edge, "node2_idx")

        for name, idx in (("node1_idx", n1), ("node2_idx", n2)):
            if idx is None:
                issues.append((i, f"Edge {i}: {name} is None"))
            elif idx < 0 or idx >= node_count:
                issues.append((i, f"Edge {i}: {name} {idx} out of bounds [0, {node_count})"))

        if n1 is not None and n1 == n2:
            issues.append((i, f"Edge {i}: connects node {n1} to itself"))

        weight = edge.get("weight") if isinstance(edge, dict) else getattr(edge, "weight", None)
        if weight is None:
            issues.append((i, f"Edge {i}: weight is None"))
        elif not math.isfinite(weight) or weight <= 0:
            issues.append((i, f"Edge {i}: weight must be positive, got {weight}"))

    if strict and issues:
        msg = "Invalid graph:\n" + "\n".join(issue[1] for issue in issues)
        raise InvalidGraphError(msg)

    return issues


def validate_positions(nodes: Sequence[Any], strict: bool = True) -> list[tuple[int, str]]:
    """
    Validate that node positions and velocities are finite.

    Raises:
        InvalidGraphError: If strict=True and a non-finite value is found
    """
    issues: list[tuple[int, str]] = []

    for i, node in enumerate(nodes):
        if not node.position.is_finite():
            issues.append((i, f"Node {i}: position {node.position!r} is not finite"))
        if not node.velocity.is_finite():
            issues.append((i, f"Node {i}: velocity {node.velocity!r} is not finite"))

    if strict and issues:
        msg = "Invalid graph:\n" + "\n".join(issue[1] for issue in issues)
        raise InvalidGraphError(msg)

    return issues


def validate_masses(masses: Sequence[float], strict: bool = True) -> list[tuple[int, str]]:
    """
    Validate that every mass is strictly positive and finite.

    Under the edge-derived mass policy an isolated node has mass 0, which
    would produce an undefined acceleration.

    Raises:
        DegenerateMassError: If strict=True and a degenerate mass is found
    """
    issues: list[tuple[int, str]] = []

    for i, mass in enumerate(masses):
        if not math.isfinite(mass) or mass <= 0:
            issues.append((i, f"Node {i}: mass must be positive, got {mass}"))

    if strict and issues:
        msg = "Degenerate mass:\n" + "\n".join(issue[1] for issue in issues)
        raise DegenerateMassError(msg)

    return issues


def validate_time_step(dt: float) -> float:
    """
    Validate that the time step is positive and finite.

    Raises:
        InvalidParameterError: If dt <= 0 or not finite
    """
    dt = float(dt)
    if not math.isfinite(dt) or dt <= 0:
        raise InvalidParameterError(f"time step must be positive, got {dt}")
    return dt


def validate_damping(damping: float) -> float:
    """
    Validate damping is in [0, 1).

    Raises:
        InvalidParameterError: If damping not in [0, 1)
    """
    damping = float(damping)
    if not 0.0 <= damping < 1.0:
        raise InvalidParameterError(f"damping must be in [0, 1), got {damping}")
    return damping


def validate_padding(padding: float) -> float:
    """
    Validate that zone padding is finite and non-negative.

    Raises:
        InvalidParameterError: If padding < 0 or not finite
    """
    padding = float(padding)
    if not math.isfinite(padding) or padding < 0:
        raise InvalidParameterError(f"zone padding must be non-negative, got {padding}")
    return padding


def validate_max_speed(max_speed: Optional[float]) -> Optional[float]:
    """
    Validate an optional speed cap is positive and finite.

    Raises:
        InvalidParameterError: If max_speed <= 0 or not finite
    """
    if max_speed is None:
        return None
    max_speed = float(max_speed)
    if not math.isfinite(max_speed) or max_speed <= 0:
        raise InvalidParameterError(f"max_speed must be positive, got {max_speed}")
    return max_speed


def validate_energy_threshold(threshold: Optional[float]) -> Optional[float]:
    """
    Validate an optional settling threshold is finite and non-negative.

    Raises:
        InvalidParameterError: If threshold < 0 or not finite
    """
    if threshold is None:
        return None
    threshold = float(threshold)
    if not math.isfinite(threshold) or threshold < 0:
        raise InvalidParameterError(f"energy_threshold must be non-negative, got {threshold}")
    return threshold


def validate_constant(name: str, value: float) -> float:
    """
    Validate a force constant is finite and non-negative.

    Raises:
        InvalidParameterError: If the constant is negative or not finite
    """
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise InvalidParameterError(f"{name} must be a non-negative number, got {value}")
    return value


def validate_bounds(
    bounds: Optional[Sequence[float]],
) -> Optional[tuple[float, float, float, float]]:
    """
    Validate a (min_x, min_y, max_x, max_y) bounding box.

    Returns:
        Validated bounds tuple, or None if bounds is None

    Raises:
        InvalidParameterError: If the box has the wrong arity or no area
    """
    if bounds is None:
        return None
    if len(bounds) != 4:
        raise InvalidParameterError(
            f"bounds must have 4 elements [min_x, min_y, max_x, max_y], got {len(bounds)}"
        )
    min_x, min_y, max_x, max_y = (float(v) for v in bounds)
    if not all(math.isfinite(v) for v in (min_x, min_y, max_x, max_y)):
        raise InvalidParameterError(f"bounds must be finite, got {tuple(bounds)}")
    if max_x <= min_x:
        raise InvalidParameterError(f"bounds width must be positive, got {max_x - min_x}")
    if max_y <= min_y:
        raise InvalidParameterError(f"bounds height must be positive, got {max_y - min_y}")
    return min_x, min_y, max_x, max_y


def _get_index(obj: Any, attr: str) -> Optional[int]:
    """Extract an integer index attribute from an edge-like object or dict."""
    if isinstance(obj, dict):
        val = obj.get(attr)
    else:
        val = getattr(obj, attr, None)

    if val is None:
        return None
    return int(val)


__all__ = [
    "ValidationError",
    "InvalidGraphError",
    "DegenerateMassError",
    "InvalidParameterError",
    "SimulationError",
    "SimulationWarning",
    "validate_edges",
    "validate_positions",
    "validate_masses",
    "validate_time_step",
    "validate_damping",
    "validate_padding",
    "validate_max_speed",
    "validate_energy_threshold",
    "validate_constant",
    "validate_bounds",
]
