"""Tests for semi-implicit Euler integration."""

import pytest

from forcesim.force.integrator import Integrator
from forcesim.types import Node
from forcesim.validation import DegenerateMassError, InvalidParameterError
from forcesim.vector import Vector2D


class TestIntegrate:
    """Tests for a single integration step."""

    def test_velocity_then_position(self):
        """Position advances with the updated velocity."""
        node = Node(x=0, y=0, velocity=(1.0, 0.0), mass=2.0)
        position, velocity = Integrator().integrate(node, Vector2D(4.0, 2.0), dt=0.5)
        # v' = (1, 0) + (2, 1) * 0.5 = (2, 0.5)
        assert velocity == Vector2D(2.0, 0.5)
        # p' = (0, 0) + (2, 0.5) * 0.5
        assert position == Vector2D(1.0, 0.25)

    def test_node_not_modified(self):
        node = Node(x=1, y=1, mass=1.0)
        Integrator().integrate(node, Vector2D(1.0, 1.0), dt=1.0)
        assert node.position == Vector2D(1.0, 1.0)
        assert node.velocity == Vector2D(0.0, 0.0)

    def test_zero_force_keeps_velocity(self):
        """Without force a node drifts at constant velocity."""
        node = Node(x=0, y=0, velocity=(0.5, -0.5))
        position, velocity = Integrator().integrate(node, Vector2D(0.0, 0.0), dt=2.0)
        assert velocity == Vector2D(0.5, -0.5)
        assert position == Vector2D(1.0, -1.0)

    def test_mass_override(self):
        """An explicit mass takes precedence over node.mass."""
        node = Node(x=0, y=0, mass=1.0)
        _, velocity = Integrator().integrate(node, Vector2D(4.0, 0.0), dt=1.0, mass=4.0)
        assert velocity == Vector2D(1.0, 0.0)

    def test_zero_mass_raises(self):
        node = Node(x=0, y=0, mass=0.0)
        with pytest.raises(DegenerateMassError, match="mass must be positive"):
            Integrator().integrate(node, Vector2D(1.0, 0.0), dt=1.0)

    def test_non_positive_dt_raises(self):
        node = Node(x=0, y=0)
        with pytest.raises(InvalidParameterError, match="time step must be positive"):
            Integrator().integrate(node, Vector2D(1.0, 0.0), dt=0.0)


class TestDampingAndSpeedLimit:
    """Tests for optional velocity damping and clamping."""

    def test_damping_scales_velocity(self):
        node = Node(x=0, y=0, velocity=(2.0, 0.0))
        position, velocity = Integrator(damping=0.5).integrate(node, Vector2D(0.0, 0.0), dt=1.0)
        assert velocity == Vector2D(1.0, 0.0)
        assert position == Vector2D(1.0, 0.0)

    def test_max_speed_clamps(self):
        node = Node(x=0, y=0)
        _, velocity = Integrator(max_speed=1.0).integrate(node, Vector2D(30.0, 40.0), dt=1.0)
        assert velocity.magnitude() == pytest.approx(1.0)
        assert velocity.x == pytest.approx(0.6)

    def test_invalid_damping(self):
        with pytest.raises(InvalidParameterError):
            Integrator(damping=1.0)

    def test_invalid_max_speed(self):
        """A non-positive cap would flip or zero the velocity."""
        with pytest.raises(InvalidParameterError, match="max_speed must be positive"):
            Integrator(max_speed=-0.5)
        with pytest.raises(InvalidParameterError):
            Integrator(max_speed=0.0)

    def test_max_speed_keeps_direction(self):
        node = Node(x=0, y=0)
        _, velocity = Integrator(max_speed=0.5).integrate(node, Vector2D(-1.0, 0.0), dt=1.0)
        assert velocity == Vector2D(-0.5, 0.0)
