"""Tests for the static major/minor zone partition."""

import pytest

from forcesim.spatial.zones import (
    ADJACENCY,
    BoundingBox,
    MajorZone,
    MinorZone,
    ZoneIndex,
    ZoneWarning,
    is_adjacent,
)
from forcesim.validation import InvalidParameterError
from forcesim.vector import Vector2D


def grid_positions():
    """One node at the center of each cell of a 3x3 grid over [0, 2]^2."""
    return [Vector2D(float(col), float(row)) for row in range(3) for col in range(3)]


class TestMajorZone:
    """Tests for major zone numbering and adjacency."""

    def test_zone_numbers(self):
        """Zones are numbered 1-9 row-major from top-left."""
        assert MajorZone.TOP_LEFT.zone_number == 1
        assert MajorZone.BOTTOM_RIGHT.zone_number == 9
        assert MajorZone.from_zone_number(5) is MajorZone.MIDDLE_MIDDLE

    def test_from_cell(self):
        assert MajorZone.from_cell(0, 2) is MajorZone.TOP_RIGHT
        assert MajorZone.from_cell(2, 1) is MajorZone.BOTTOM_MIDDLE
        assert MajorZone.MIDDLE_RIGHT.row == 1
        assert MajorZone.MIDDLE_RIGHT.col == 2

    def test_invalid_zone_number(self):
        with pytest.raises(ValueError):
            MajorZone.from_zone_number(10)

    def test_corner_adjacency(self):
        """Corner zone touches three zones."""
        assert set(MajorZone.TOP_LEFT.adjacent()) == {
            MajorZone.TOP_MIDDLE,
            MajorZone.MIDDLE_LEFT,
            MajorZone.MIDDLE_MIDDLE,
        }

    def test_edge_adjacency(self):
        """Edge-middle zone touches five zones."""
        assert len(MajorZone.TOP_MIDDLE.adjacent()) == 5
        assert MajorZone.BOTTOM_LEFT not in MajorZone.TOP_MIDDLE.adjacent()

    def test_center_adjacent_to_all(self):
        assert len(MajorZone.MIDDLE_MIDDLE.adjacent()) == 8
        assert MajorZone.MIDDLE_MIDDLE.not_adjacent() == ()

    def test_adjacent_and_not_adjacent_partition(self):
        """Every other zone is either adjacent or not."""
        for zone in MajorZone:
            others = set(zone.adjacent()) | set(zone.not_adjacent())
            assert others == set(MajorZone) - {zone}
            assert not set(zone.adjacent()) & set(zone.not_adjacent())

    def test_is_adjacent_to(self):
        assert MajorZone.TOP_LEFT.is_adjacent_to(MajorZone.MIDDLE_MIDDLE)
        assert MajorZone.TOP_LEFT.is_adjacent_to(1)
        assert not MajorZone.TOP_LEFT.is_adjacent_to(MajorZone.BOTTOM_RIGHT)
        assert not MajorZone.TOP_LEFT.is_adjacent_to(MajorZone.TOP_LEFT)

    def test_adjacency_symmetric_and_irreflexive(self):
        for a in range(9):
            assert not is_adjacent(a, a)
            for b in ADJACENCY[a]:
                assert is_adjacent(b, a)


class TestBoundingBox:
    """Tests for zone bounding boxes."""

    def test_from_positions_is_square_and_padded(self):
        box = BoundingBox.from_positions([Vector2D(0, 0), Vector2D(4, 2)], padding=0.05)
        assert box.width == pytest.approx(box.height)
        assert box.width == pytest.approx(4.4)
        assert box.contains(0, 0)
        assert box.contains(4, 2)

    def test_padding_scales_box(self):
        """Half-side is size * (0.5 + padding)."""
        box = BoundingBox.from_positions([Vector2D(0, 0), Vector2D(2, 2)], padding=0.5)
        assert box.min_x == pytest.approx(-1.0)
        assert box.max_y == pytest.approx(3.0)
        assert box.width == pytest.approx(4.0)

    def test_single_point_uses_unit_extent(self):
        box = BoundingBox.from_positions([Vector2D(3, 3)], padding=0.0)
        assert box.width == pytest.approx(1.0)
        assert box.contains(3, 3)


class TestZoneIndex:
    """Tests for node assignment and aggregates."""

    def test_one_node_per_zone(self):
        """A 3x3 grid of nodes lands one node in each major zone."""
        index = ZoneIndex().rebuild(grid_positions(), [1.0] * 9)
        for i in range(9):
            assert index.major_of(i) == MajorZone(i)
            assert index.members(i) == [i]
        assert len(index.occupied_zones()) == 9

    def test_top_is_minimum_y(self):
        """Row 0 holds the smallest y values."""
        index = ZoneIndex().rebuild([Vector2D(0, 0), Vector2D(0, 10)], [1.0, 1.0])
        assert index.major_of(0).row == 0
        assert index.major_of(1).row == 2

    def test_every_node_assigned_exactly_once(self):
        positions = [Vector2D(i * 0.37 % 5, i * 0.91 % 3) for i in range(40)]
        index = ZoneIndex().rebuild(positions, [1.0] * 40)
        members = sorted(i for zone in MajorZone for i in index.members(zone))
        assert members == list(range(40))

    def test_minor_zone_assignment(self):
        """Quadrants of the middle zone map to the four minor zones."""
        box = BoundingBox(0.0, 0.0, 6.0, 6.0)
        positions = [
            Vector2D(2.5, 2.5),
            Vector2D(3.5, 2.5),
            Vector2D(2.5, 3.5),
            Vector2D(3.5, 3.5),
        ]
        index = ZoneIndex().rebuild(positions, [1.0] * 4, box)
        for i in range(4):
            assert index.major_of(i) is MajorZone.MIDDLE_MIDDLE
        assert index.minor_of(0) is MinorZone.TOP_LEFT
        assert index.minor_of(1) is MinorZone.TOP_RIGHT
        assert index.minor_of(2) is MinorZone.BOTTOM_LEFT
        assert index.minor_of(3) is MinorZone.BOTTOM_RIGHT

    def test_major_aggregate_is_mass_weighted_centroid(self):
        box = BoundingBox(0.0, 0.0, 3.0, 3.0)
        positions = [Vector2D(0.1, 0.1), Vector2D(0.7, 0.4)]
        index = ZoneIndex().rebuild(positions, [1.0, 3.0], box)
        agg = index.major_aggregate(MajorZone.TOP_LEFT)
        assert agg.mass == pytest.approx(4.0)
        assert agg.x == pytest.approx((0.1 + 3 * 0.7) / 4)
        assert agg.y == pytest.approx((0.1 + 3 * 0.4) / 4)
        assert agg.count == 2

    def test_minor_aggregates_sum_to_major(self):
        positions = [Vector2D(i * 0.53 % 4, i * 0.29 % 4) for i in range(25)]
        masses = [1.0 + (i % 3) for i in range(25)]
        index = ZoneIndex().rebuild(positions, masses)
        for zone in MajorZone:
            minor_mass = sum(agg.mass for agg in index.minor_aggregates(zone))
            assert minor_mass == pytest.approx(index.major_aggregate(zone).mass)

    def test_empty_zone_has_zero_mass(self):
        index = ZoneIndex().rebuild([Vector2D(0, 0), Vector2D(1, 1)], [1.0, 1.0])
        assert index.major_aggregate(MajorZone.TOP_RIGHT).is_empty()

    def test_outside_node_clamped_with_warning(self):
        """Nodes outside an explicit box go to the nearest border zone."""
        box = BoundingBox(0.0, 0.0, 3.0, 3.0)
        with pytest.warns(ZoneWarning, match="outside the zone bounding box") as record:
            index = ZoneIndex().rebuild([Vector2D(-5, 10), Vector2D(1.5, 1.5)], [1.0, 1.0], box)
        assert record[0].filename == __file__
        assert index.major_of(0) is MajorZone.BOTTOM_LEFT
        assert index.major_of(1) is MajorZone.MIDDLE_MIDDLE

    def test_mismatched_masses_raise(self):
        with pytest.raises(ValueError, match="masses"):
            ZoneIndex().rebuild([Vector2D(0, 0)], [1.0, 2.0])

    def test_padding_applied_to_derived_bounds(self):
        index = ZoneIndex(padding=0.5).rebuild(grid_positions(), [1.0] * 9)
        assert index.bounds.width == pytest.approx(4.0)
        assert index.major_of(0) is MajorZone.TOP_LEFT
        assert index.major_of(8) is MajorZone.BOTTOM_RIGHT

    def test_negative_padding_rejected(self):
        with pytest.raises(InvalidParameterError, match="zone padding"):
            ZoneIndex(padding=-0.5)
