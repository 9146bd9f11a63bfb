"""Tests for the half-matrix distance/direction cache."""

import math

import pytest

from forcesim.spatial.cache import (
    DistanceDirectionCache,
    build_cache,
    half_matrix_size,
    pair_index,
)
from forcesim.vector import Vector2D


class TestPairIndex:
    """Tests for half-matrix indexing."""

    def test_size(self):
        assert half_matrix_size(0) == 0
        assert half_matrix_size(1) == 0
        assert half_matrix_size(4) == 6

    def test_row_major_order(self):
        """Pairs are laid out row by row."""
        n = 4
        expected = [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]
        for k, (i, j) in enumerate(expected):
            assert pair_index(i, j, n) == k

    def test_symmetric(self):
        assert pair_index(3, 1, 5) == pair_index(1, 3, 5)

    def test_bijective(self):
        """Every unordered pair maps to a distinct slot."""
        n = 7
        slots = {pair_index(i, j, n) for i in range(n) for j in range(i + 1, n)}
        assert slots == set(range(half_matrix_size(n)))

    def test_self_pair_raises(self):
        with pytest.raises(ValueError, match="itself"):
            pair_index(2, 2, 4)

    def test_out_of_range_raises(self):
        with pytest.raises(ValueError, match="out of bounds"):
            pair_index(0, 4, 4)


class TestCacheRebuild:
    """Tests for rebuilding the cache from positions."""

    def test_distance_and_direction(self):
        """3-4-5 triangle."""
        cache = build_cache([Vector2D(0, 0), Vector2D(3, 4)])
        assert cache.distance(0, 1) == pytest.approx(5.0)
        assert cache.direction(0, 1) == pytest.approx(math.atan2(4, 3))

    def test_distance_symmetric(self):
        cache = build_cache([Vector2D(0, 0), Vector2D(1, 2), Vector2D(-3, 1)])
        for i in range(3):
            for j in range(3):
                if i != j:
                    assert cache.distance(i, j) == cache.distance(j, i)

    def test_reverse_direction(self):
        """Reverse bearing differs by pi, modulo 2pi."""
        cache = build_cache([Vector2D(0, 0), Vector2D(1, 1)])
        forward = cache.direction(0, 1)
        backward = cache.direction(1, 0)
        assert backward == pytest.approx((forward + math.pi) % (2 * math.pi))
        assert backward == pytest.approx(5 * math.pi / 4)

    def test_unit_vectors_antisymmetric(self):
        """unit(i, j) is exactly -unit(j, i)."""
        cache = build_cache([Vector2D(0.3, 0.1), Vector2D(2.7, -1.9)])
        assert cache.unit(0, 1) == -cache.unit(1, 0)
        assert cache.unit(0, 1).magnitude() == pytest.approx(1.0)

    def test_coincident_nodes_clamped(self):
        """Zero distance is stored raw and floored in the clamped buffer."""
        cache = build_cache([Vector2D(1, 1), Vector2D(1, 1)])
        assert cache.distance(0, 1) == 0.0
        assert cache.clamped_distance(0, 1) == cache.epsilon

    def test_reflects_latest_positions(self):
        """Rebuild replaces all pairs."""
        cache = DistanceDirectionCache(2)
        cache.rebuild([Vector2D(0, 0), Vector2D(1, 0)])
        cache.rebuild([Vector2D(0, 0), Vector2D(0, 2)])
        assert cache.distance(0, 1) == pytest.approx(2.0)
        assert cache.direction(0, 1) == pytest.approx(math.pi / 2)

    def test_resizes_with_node_count(self):
        cache = DistanceDirectionCache()
        cache.rebuild([Vector2D(0, 0), Vector2D(1, 0), Vector2D(2, 0)])
        assert cache.n_nodes == 3
        assert cache.size == 3

    def test_single_node_has_no_pairs(self):
        cache = build_cache([Vector2D(0, 0)])
        assert cache.size == 0
        assert cache.is_built

    def test_query_before_build_raises(self):
        cache = DistanceDirectionCache(2)
        with pytest.raises(RuntimeError, match="rebuild"):
            cache.distance(0, 1)
