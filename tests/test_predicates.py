"""
Tests for geometric predicates and float constructions
"""

import math

import pytest
import numpy as np
from hypothesis import given, settings, strategies as st

from alpha3d.geom import Pt, unique_points, tet_circumcenters, tet_circumradii, tri_circumspheres
from alpha3d.predicates import (
    Sign, orientation, in_sphere, collinear, _orientation_exact,
)

O = Pt(0.0, 0.0, 0.0)
X = Pt(1.0, 0.0, 0.0)
Y = Pt(0.0, 1.0, 0.0)
Z = Pt(0.0, 0.0, 1.0)

# сітка з кроком 1/7: багато точних виродженостей, без underflow
coord = st.integers(min_value=-1000, max_value=1000).map(lambda k: k / 7.0)
point = st.builds(Pt, coord, coord, coord)


class TestOrientation:
    """Test suite for orientation predicates."""

    def test_positive_and_negative(self):
        assert orientation(O, X, Y, Z) == Sign.POSITIVE
        assert orientation(X, O, Y, Z) == Sign.NEGATIVE

    def test_coplanar_is_zero(self):
        assert orientation(O, X, Y, Pt(3.0, -7.0, 0.0)) == Sign.ZERO

    def test_coplanar_non_representable_plane(self):
        """Points on z = 0.3 and on x + y = z are exactly coplanar."""
        assert orientation(Pt(0.1, 0.7, 0.3), Pt(5.5, 0.2, 0.3),
                           Pt(-3.1, 2.9, 0.3), Pt(0.123, 0.456, 0.3)) == Sign.ZERO
        assert orientation(Pt(1, 2, 3), Pt(4, -1, 3), Pt(-2, 7, 5), Pt(10, 10, 20)) == Sign.ZERO

    def test_tiny_offset_from_plane(self):
        d = Pt(0.25, 0.25, 1e-300)
        assert orientation(O, X, Y, d) == Sign.POSITIVE
        assert orientation(O, Y, X, d) == Sign.NEGATIVE

    @given(point, point, point, point)
    @settings(max_examples=200, deadline=None)
    def test_matches_exact(self, a, b, c, d):
        assert orientation(a, b, c, d) == _orientation_exact(a, b, c, d)

    @given(point, point, point, point)
    @settings(max_examples=100, deadline=None)
    def test_antisymmetric(self, a, b, c, d):
        assert orientation(a, b, c, d) == -orientation(b, a, c, d)


class TestInSphere:
    """Test suite for in-sphere predicates (unit corner tetrahedron)."""

    def test_inside_outside(self):
        assert in_sphere(O, X, Y, Z, Pt(0.25, 0.25, 0.25)) == Sign.POSITIVE
        assert in_sphere(O, X, Y, Z, Pt(2.0, 2.0, 2.0)) == Sign.NEGATIVE

    def test_independent_of_orientation(self):
        e = Pt(0.25, 0.25, 0.25)
        assert in_sphere(X, O, Y, Z, e) == Sign.POSITIVE
        assert in_sphere(X, O, Y, Z, Pt(-1.0, 0.0, 0.0)) == Sign.NEGATIVE

    def test_on_sphere_is_zero(self):
        # центр (0.5, 0.5, 0.5), r² = 0.75
        assert in_sphere(O, X, Y, Z, Pt(1.0, 1.0, 1.0)) == Sign.ZERO
        assert in_sphere(O, X, Y, Z, Pt(1.0, 1.0, 0.0)) == Sign.ZERO

    def test_flat_cell_is_zero(self):
        assert in_sphere(O, X, Y, Pt(1.0, 1.0, 0.0), Pt(0.2, 0.2, 0.0)) == Sign.ZERO


class TestHelpers:
    """Test suite for collinearity."""

    def test_collinear(self):
        assert collinear(O, Pt(1, 1, 1), Pt(2, 2, 2))
        assert collinear(O, Pt(0.1, 0.2, 0.3), Pt(0.2, 0.4, 0.6))
        assert not collinear(O, X, Pt(0.0, 1e-20, 0.0))


class TestConstructions:
    """Test suite for vectorized circumsphere constructions and dedup."""

    def test_regular_tetra_radius(self, regular_tetra, regular_tetra_radius):
        a, b, c, d = (regular_tetra[i][None, :] for i in range(4))
        r = tet_circumradii(a, b, c, d)
        assert r[0] == pytest.approx(regular_tetra_radius, rel=1e-12)

    def test_flat_tetra_radius_is_inf(self):
        a = np.array([[0.0, 0.0, 0.0]])
        b = np.array([[1.0, 0.0, 0.0]])
        c = np.array([[0.0, 1.0, 0.0]])
        d = np.array([[1.0, 1.0, 0.0]])
        assert np.isinf(tet_circumradii(a, b, c, d)[0])

    def test_triangle_smallest_sphere(self, regular_tetra):
        a, b, c = (regular_tetra[i][None, :] for i in range(3))
        centers, radii = tri_circumspheres(a, b, c)
        assert radii[0] == pytest.approx(1.0 / math.sqrt(3.0), rel=1e-12)
        np.testing.assert_allclose(centers[0], regular_tetra[:3].mean(axis=0), atol=1e-12)

    def test_degenerate_triangle(self):
        a = np.array([[0.0, 0.0, 0.0]])
        b = np.array([[1.0, 0.0, 0.0]])
        c = np.array([[2.0, 0.0, 0.0]])
        _, radii = tri_circumspheres(a, b, c)
        assert np.isinf(radii[0])

    def test_unique_points_first_wins(self):
        raw = [(0, 0, 0), (1, 0, 0), (0, 0, 1e-12), (1, 0, 0), (0, 1, 0)]
        pts, sources, duplicates = unique_points(raw)
        assert len(pts) == 3
        assert sources == [0, 1, 4]
        assert duplicates == [(2, 0), (3, 1)]

    def test_circumcenter_equidistant(self, regular_tetra):
        a, b, c, d = (regular_tetra[i][None, :] for i in range(4))
        center = tet_circumcenters(a, b, c, d)[0]
        dist = np.linalg.norm(regular_tetra - center, axis=1)
        np.testing.assert_allclose(dist, dist[0], rtol=1e-12)
        np.testing.assert_allclose(center, regular_tetra.mean(axis=0), atol=1e-12)

    @pytest.mark.parametrize("factor", [1e-10, 1.0, 1e8])
    def test_unique_points_scale_invariant(self, factor):
        rng = np.random.default_rng(0)
        raw = rng.random((50, 3)) * factor
        pts, sources, duplicates = unique_points(np.vstack([raw, raw[:3]]).tolist())
        assert len(pts) == 50
        assert sources == list(range(50))
        assert duplicates == [(50, 0), (51, 1), (52, 2)]

    def test_unique_points_far_from_origin(self):
        raw = [(1e6, 1e6, 1e6), (1e6 + 1e-3, 1e6, 1e6), (1e6, 1e6 + 1.0, 1e6)]
        pts, _, duplicates = unique_points(raw)
        assert len(pts) == 3
        assert duplicates == []
