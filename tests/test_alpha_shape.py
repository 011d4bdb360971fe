"""
Tests for alpha intervals and the alpha shape extractor
"""

import math

import pytest
import numpy as np
from hypothesis import assume, given, settings, strategies as st
from scipy.spatial import ConvexHull

from alpha3d.delaunay import Delaunay3D
from alpha3d.errors import DegenerateInput, InvalidInput
from alpha3d.intervals import AlphaComplex, AlphaInterval, Classification
from alpha3d.shape import AlphaShape3D, Mode


def euler_characteristic(faces):
    faces = np.asarray(faces)
    V = len(np.unique(faces))
    edges = {tuple(sorted(e)) for f in faces for e in ((f[0], f[1]), (f[1], f[2]), (f[2], f[0]))}
    return V - len(edges) + len(faces)


class TestRegularTetrahedron:
    """Scenario: one regular tetrahedron with edge 1."""

    @pytest.fixture
    def tetra_shape(self, regular_tetra):
        return AlphaShape3D(regular_tetra)

    def test_counts(self, tetra_shape):
        cx = tetra_shape.complex
        assert len(cx.cells) == 1
        assert len(cx.facets) == 4
        assert len(cx.edges) == 6
        assert len(cx.vertices) == 4

    def test_same_radius_everywhere(self, tetra_shape, regular_tetra_radius):
        cx = tetra_shape.complex
        assert cx.cells.alpha_mid[0] == pytest.approx(regular_tetra_radius)
        np.testing.assert_allclose(cx.facets.alpha_mid, regular_tetra_radius)
        assert np.isinf(cx.facets.alpha_max).all()

    def test_below_and_above_radius(self, tetra_shape, regular_tetra_radius):
        r = regular_tetra_radius
        assert len(tetra_shape.facets(r * (1 - 1e-6))) == 0
        assert len(tetra_shape.facets(r * (1 + 1e-6))) == 4
        assert tetra_shape.classify_cells(r * (1 + 1e-6))[0] == Classification.INTERIOR

    def test_general_mode_shows_singular_facets(self, tetra_shape, regular_tetra_radius):
        # найменша сфера грані 1/√3 < r: грані висять як SINGULAR
        alpha = 0.5 * (1.0 / math.sqrt(3.0) + regular_tetra_radius)
        assert len(tetra_shape.facets(alpha, Mode.GENERAL)) == 4
        assert len(tetra_shape.facets(alpha, Mode.REGULARIZED)) == 0
        assert (tetra_shape.classify_facets(alpha) == Classification.SINGULAR).all()

    def test_intervals(self, tetra_shape, regular_tetra_radius):
        cx = tetra_shape.complex
        cell = cx.interval(3, 0)
        assert cell.alpha_min is None
        assert cell.alpha_mid == pytest.approx(regular_tetra_radius)
        assert cell.member == cell.alpha_mid
        facet = cx.interval(2, 0)
        assert facet.alpha_min == pytest.approx(1.0 / math.sqrt(3.0))
        assert facet.interior == math.inf
        edge = cx.interval(1, 0)
        assert edge.alpha_min == pytest.approx(0.5)
        assert edge.member == pytest.approx(0.5)

    def test_outward_orientation(self, tetra_shape, regular_tetra):
        center = regular_tetra.mean(axis=0)
        for a, b, c in tetra_shape.triangles(1.0):
            n = np.cross(b - a, c - a)
            assert np.dot(n, a - center) > 0

    def test_solid_alpha(self, tetra_shape, regular_tetra_radius):
        assert tetra_shape.find_alpha_solid() == pytest.approx(regular_tetra_radius)
        crit = tetra_shape.critical_alphas()
        assert (np.diff(crit) > 0).all()
        assert crit[-1] == pytest.approx(regular_tetra_radius)


class TestAlphaInterval:
    """Test suite for single-simplex classification."""

    def test_classify_gabriel(self):
        iv = AlphaInterval(0.1, 0.2, 0.3)
        assert iv.classify(0.05) == Classification.EXTERIOR
        assert iv.classify(0.1) == Classification.SINGULAR
        assert iv.classify(0.25) == Classification.REGULAR
        assert iv.classify(0.3) == Classification.INTERIOR

    def test_classify_attached_and_hull(self):
        iv = AlphaInterval(None, 0.2, math.inf)
        assert iv.classify(0.15) == Classification.EXTERIOR
        assert iv.classify(math.inf) == Classification.REGULAR
        assert iv.member == 0.2


class TestExtremes:
    """Test suite for α = 0 and α = ∞."""

    def test_alpha_zero(self, shape, random_points):
        res = shape.query(0.0, Mode.GENERAL)
        assert res.ok
        assert len(res.faces) == 0
        assert len(res.edges) == 0
        assert sorted(res.vertices) == list(range(len(random_points)))

    def test_alpha_infinity_is_convex_hull(self, shape, random_points):
        faces = shape.facets(math.inf)
        hull = ConvexHull(random_points)
        assert len(faces) == len(hull.simplices)
        assert {tuple(sorted(f)) for f in faces} == {tuple(sorted(s)) for s in hull.simplices}
        assert euler_characteristic(faces) == 2
        assert sorted(shape.vertices(math.inf)) == sorted(hull.vertices)

    def test_hull_outward(self, shape, random_points):
        center = random_points.mean(axis=0)
        for a, b, c in shape.triangles(math.inf):
            assert np.dot(np.cross(b - a, c - a), a - center) > 0

    def test_closed_shape_euler(self, sphere_points):
        s = AlphaShape3D(sphere_points, seed=1)
        alpha = 2.0 * float(s.complex.cells.alpha_max.max())
        faces = s.facets(alpha)
        assert len(faces) > 0
        # кожне ребро межі рівно у двох трикутниках
        edges = {}
        for f in faces:
            for e in ((f[0], f[1]), (f[1], f[2]), (f[2], f[0])):
                key = tuple(sorted(e))
                edges[key] = edges.get(key, 0) + 1
        assert set(edges.values()) == {2}
        assert euler_characteristic(faces) == 2


class TestMonotonicity:
    """Test suite for monotone classification."""

    def test_codes_never_decrease(self, shape):
        crit = shape.critical_alphas()
        alphas = np.concatenate([[0.0], crit[:: max(1, len(crit) // 25)], [math.inf]])
        prev = None
        for a in alphas:
            codes = [shape.classify_vertices(a), shape.classify_edges(a),
                     shape.classify_facets(a), shape.classify_cells(a)]
            if prev is not None:
                for p, c in zip(prev, codes):
                    assert (c >= p).all()
            prev = codes

    def test_member_sets_grow(self, shape):
        lo, hi = 0.05, 0.2
        for table in (shape.complex.facets, shape.complex.edges, shape.complex.cells):
            small = table.classify(lo) != Classification.EXTERIOR
            large = table.classify(hi) != Classification.EXTERIOR
            assert not (small & ~large).any()

    def test_intervals_ordered(self, alpha_complex):
        for dim in range(4):
            t = alpha_complex.table(dim)
            gabriel = ~np.isnan(t.alpha_min)
            assert (t.alpha_min[gabriel] <= t.alpha_mid[gabriel]).all()
            assert (t.alpha_mid <= t.alpha_max).all()

    def test_tables_are_read_only(self, alpha_complex):
        with pytest.raises(ValueError):
            alpha_complex.facets.alpha_mid[0] = 0.0


class TestQuery:
    """Test suite for the query boundary."""

    def test_idempotent(self, shape):
        a = shape.query(0.15)
        b = shape.query(0.15)
        assert np.array_equal(a.faces, b.faces)
        assert a.triangles.tobytes() == b.triangles.tobytes()
        assert np.array_equal(a.edges, b.edges)

    @pytest.mark.parametrize("bad", [-0.1, float("nan"), "abc", None])
    def test_invalid_alpha_reported(self, shape, bad):
        res = shape.query(bad)
        assert not res.ok
        assert res.error
        assert res.counts == {"facets": 0, "edges": 0, "vertices": 0}

    def test_invalid_alpha_raises_in_filters(self, shape):
        with pytest.raises(InvalidInput):
            shape.facets(-1.0)
        with pytest.raises(InvalidInput):
            shape.classify_edges(float("nan"))

    def test_invalid_mode_reported(self, shape):
        res = shape.query(0.1, mode="bogus")
        assert not res.ok

    def test_result_shapes(self, shape):
        res = shape.query(0.2)
        F = len(res.faces)
        assert res.triangles.shape == (F, 3, 3)
        assert shape.lines(0.2).shape == (3 * F, 2, 3)
        assert res.edges.shape[1] == 2
        # регуляризована межа: ребра й вершини рівно ті, що в трикутниках
        assert set(np.unique(res.faces)) == set(res.vertices)

    def test_counts_by_class(self, shape):
        counts = shape.counts(0.1)
        assert sum(counts["cells"].values()) == len(shape.complex.cells)
        assert counts["cells"]["singular"] == 0


class TestOffExport:
    """Test suite for OFF output."""

    def test_to_off_header(self, regular_tetra):
        s = AlphaShape3D(regular_tetra)
        text = s.to_off(1.0)
        lines = text.splitlines()
        assert lines[0] == "OFF"
        assert lines[1] == "4 4 0"
        assert all(line.startswith("3 ") for line in lines[-4:])

    def test_write_off(self, regular_tetra, tmp_path):
        s = AlphaShape3D(regular_tetra)
        path = tmp_path / "tetra.off"
        s.write_off(str(path), 1.0)
        assert path.read_text(encoding="utf-8") == s.to_off(1.0)


lattice = st.integers(min_value=-5, max_value=5).map(float)


class TestProperties:
    """Property-based tests for the alpha complex on small point sets."""

    @given(st.lists(st.tuples(lattice, lattice, lattice), min_size=6, max_size=12),
           st.floats(min_value=0.0, max_value=10.0),
           st.floats(min_value=0.0, max_value=10.0))
    @settings(max_examples=30, deadline=None)
    def test_monotone_membership(self, pts, a1, a2):
        try:
            cx = AlphaComplex(Delaunay3D(pts, seed=0).build())
        except (InvalidInput, DegenerateInput):
            assume(False)
        lo, hi = min(a1, a2), max(a1, a2)
        for dim in range(4):
            t = cx.table(dim)
            assert (t.classify(hi) >= t.classify(lo)).all()

    @given(st.lists(st.tuples(lattice, lattice, lattice), min_size=6, max_size=12))
    @settings(max_examples=30, deadline=None)
    def test_infinite_alpha_is_hull(self, pts):
        try:
            s = AlphaShape3D(pts, seed=0)
        except (InvalidInput, DegenerateInput):
            assume(False)
        faces = s.facets(math.inf)
        # замкнена поверхня: кожне ребро у двох трикутниках
        edges = {}
        for f in faces:
            for e in ((f[0], f[1]), (f[1], f[2]), (f[2], f[0])):
                key = tuple(sorted(e))
                edges[key] = edges.get(key, 0) + 1
        assert set(edges.values()) == {2}
        assert euler_characteristic(faces) == 2
