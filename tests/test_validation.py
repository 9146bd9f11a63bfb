"""Tests for input validation module."""

import pytest

from forcesim import Edge, Node
from forcesim.validation import (
    DegenerateMassError,
    InvalidGraphError,
    InvalidParameterError,
    ValidationError,
    validate_bounds,
    validate_constant,
    validate_damping,
    validate_edges,
    validate_energy_threshold,
    validate_masses,
    validate_max_speed,
    validate_padding,
    validate_positions,
    validate_time_step,
)


class TestEdgeValidation:
    """Tests for edge index and weight validation."""

    def test_valid_edges(self):
        """Valid edges pass validation."""
        edges = [Edge(0, 1), Edge(1, 2, 2.0)]
        assert validate_edges(edges, 3) == []

    def test_out_of_bounds_raises(self):
        """Edge index past the node count raises."""
        with pytest.raises(InvalidGraphError, match="out of bounds"):
            validate_edges([Edge(0, 5)], 3)

    def test_negative_index_raises(self):
        with pytest.raises(InvalidGraphError, match="out of bounds"):
            validate_edges([Edge(-1, 0)], 3)

    def test_self_loop_raises(self):
        """Edge from a node to itself raises."""
        with pytest.raises(InvalidGraphError, match="to itself"):
            validate_edges([Edge(1, 1)], 3)

    def test_zero_weight_raises(self):
        with pytest.raises(InvalidGraphError, match="weight must be positive"):
            validate_edges([Edge(0, 1, 0.0)], 2)

    def test_negative_weight_raises(self):
        with pytest.raises(InvalidGraphError, match="weight must be positive"):
            validate_edges([Edge(0, 1, -2.0)], 2)

    def test_nan_weight_raises(self):
        with pytest.raises(InvalidGraphError, match="weight must be positive"):
            validate_edges([Edge(0, 1, float("nan"))], 2)

    def test_dict_edges(self):
        """Dict edges are validated like objects."""
        issues = validate_edges([{"node1_idx": 0, "node2_idx": 9, "weight": 1.0}], 2, strict=False)
        assert len(issues) == 1

    def test_non_strict_returns_all_issues(self):
        """Non-strict mode collects every issue."""
        edges = [Edge(0, 5), Edge(0, 1, -1.0)]
        issues = validate_edges(edges, 2, strict=False)
        assert [i for i, _ in issues] == [0, 1]

    def test_offset_in_messages(self):
        with pytest.raises(InvalidGraphError, match="Edge 7"):
            validate_edges([Edge(0, 5)], 2, offset=7)


class TestPositionValidation:
    """Tests for node state validation."""

    def test_finite_positions_pass(self):
        assert validate_positions([Node(x=0, y=0), Node(x=1, y=1)]) == []

    def test_nan_position_raises(self):
        with pytest.raises(InvalidGraphError, match="not finite"):
            validate_positions([Node(x=float("nan"), y=0)])

    def test_infinite_velocity_raises(self):
        with pytest.raises(InvalidGraphError, match="velocity"):
            validate_positions([Node(x=0, y=0, velocity=(float("inf"), 0))])


class TestMassValidation:
    """Tests for mass validation."""

    def test_positive_masses_pass(self):
        assert validate_masses([1.0, 2.5]) == []

    def test_zero_mass_raises(self):
        """Isolated node under derived masses is degenerate."""
        with pytest.raises(DegenerateMassError, match="Node 1: mass must be positive"):
            validate_masses([1.0, 0.0])

    def test_non_strict(self):
        issues = validate_masses([0.0, -1.0, 2.0], strict=False)
        assert [i for i, _ in issues] == [0, 1]


class TestParameterValidation:
    """Tests for scalar parameter validation."""

    def test_time_step(self):
        assert validate_time_step(0.5) == 0.5
        with pytest.raises(InvalidParameterError, match="time step must be positive"):
            validate_time_step(0)
        with pytest.raises(InvalidParameterError):
            validate_time_step(float("inf"))

    def test_damping(self):
        assert validate_damping(0.0) == 0.0
        assert validate_damping(0.9) == 0.9
        with pytest.raises(InvalidParameterError, match=r"damping must be in \[0, 1\)"):
            validate_damping(1.0)
        with pytest.raises(InvalidParameterError):
            validate_damping(-0.1)

    def test_padding(self):
        assert validate_padding(0.0) == 0.0
        assert validate_padding(0.25) == 0.25
        with pytest.raises(InvalidParameterError, match="zone padding must be non-negative"):
            validate_padding(-0.5)
        with pytest.raises(InvalidParameterError):
            validate_padding(float("nan"))

    def test_max_speed(self):
        """Speed cap is optional but must be positive when given."""
        assert validate_max_speed(None) is None
        assert validate_max_speed(2) == 2.0
        with pytest.raises(InvalidParameterError, match="max_speed must be positive"):
            validate_max_speed(-0.5)
        with pytest.raises(InvalidParameterError):
            validate_max_speed(0.0)
        with pytest.raises(InvalidParameterError):
            validate_max_speed(float("inf"))

    def test_energy_threshold(self):
        assert validate_energy_threshold(None) is None
        assert validate_energy_threshold(0.0) == 0.0
        with pytest.raises(InvalidParameterError, match="energy_threshold"):
            validate_energy_threshold(-1e-6)
        with pytest.raises(InvalidParameterError):
            validate_energy_threshold(float("nan"))

    def test_constant(self):
        assert validate_constant("repulsion_constant", 0) == 0.0
        with pytest.raises(InvalidParameterError, match="repulsion_constant"):
            validate_constant("repulsion_constant", -1)

    def test_bounds(self):
        assert validate_bounds(None) is None
        assert validate_bounds([0, 0, 10, 5]) == (0.0, 0.0, 10.0, 5.0)

    def test_bounds_invalid(self):
        with pytest.raises(InvalidParameterError, match="4 elements"):
            validate_bounds([0, 0, 10])
        with pytest.raises(InvalidParameterError, match="width must be positive"):
            validate_bounds([10, 0, 10, 5])
        with pytest.raises(InvalidParameterError, match="height must be positive"):
            validate_bounds([0, 5, 10, 0])


class TestExceptionHierarchy:
    """Tests for exception class hierarchy."""

    def test_all_inherit_from_validation_error(self):
        """All validation exceptions inherit from ValidationError."""
        assert issubclass(InvalidGraphError, ValidationError)
        assert issubclass(DegenerateMassError, ValidationError)
        assert issubclass(InvalidParameterError, ValidationError)

    def test_validation_error_is_value_error(self):
        """ValidationError is a ValueError."""
        assert issubclass(ValidationError, ValueError)
