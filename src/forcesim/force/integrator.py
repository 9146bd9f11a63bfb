"""
Semi-implicit Euler integration.

The velocity is updated first from the net force, and the new velocity is
then used to advance the position within the same step:

    v' = v + (F / m) * dt
    p' = p + v' * dt
"""

from __future__ import annotations

import math
from typing import Optional

from ..types import Node
from ..validation import (
    DegenerateMassError,
    validate_damping,
    validate_max_speed,
    validate_time_step,
)
from ..vector import Vector2D


class Integrator:
    """
    Advances a node's velocity and position from its net force.

    Args:
        damping: Fraction of velocity removed each step, in [0, 1).
            0 gives the plain semi-implicit Euler update.
        max_speed: Optional positive cap on the magnitude of the new velocity.

    Example:
        integrator = Integrator()
        position, velocity = integrator.integrate(node, force, dt=0.1)
    """

    def __init__(self, damping: float = 0.0, max_speed: Optional[float] = None) -> None:
        self.damping = validate_damping(damping)
        self.max_speed = validate_max_speed(max_speed)

    def integrate(
        self,
        node: Node,
        net_force: Vector2D,
        dt: float,
        mass: Optional[float] = None,
    ) -> tuple[Vector2D, Vector2D]:
        """
        Compute the next (position, velocity) of ``node``.

        The node itself is not modified. ``mass`` overrides ``node.mass``
        when given.

        Raises:
            DegenerateMassError: If the node's mass is not strictly positive
            InvalidParameterError: If dt is not strictly positive
        """
        dt = validate_time_step(dt)
        if mass is None:
            mass = node.mass
        if not math.isfinite(mass) or mass <= 0:
            raise DegenerateMassError(
                f"Node {node.index}: mass must be positive to integrate, got {mass}"
            )

        velocity = node.velocity + (net_force / mass) * dt
        if self.damping:
            velocity = velocity * (1.0 - self.damping)
        if self.max_speed is not None:
            speed = velocity.magnitude()
            if speed > self.max_speed:
                velocity = velocity * (self.max_speed / speed)

        position = node.position + velocity * dt
        return position, velocity


__all__ = ["Integrator"]
