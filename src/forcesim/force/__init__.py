"""
Force model and time integration.

- ForceAccumulator: Net repulsive and attractive force on every node
- Integrator: Semi-implicit Euler update of velocity and position
"""

from .accumulator import ForceAccumulator, attractive_force, repulsive_force
from .integrator import Integrator

__all__ = [
    "ForceAccumulator",
    "Integrator",
    "attractive_force",
    "repulsive_force",
]
