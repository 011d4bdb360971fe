"""
Pytest configuration and fixtures for alpha3d tests.
"""

import math

import pytest
import numpy as np

from alpha3d.config import ConfigManager
from alpha3d.delaunay import Delaunay3D
from alpha3d.intervals import AlphaComplex
from alpha3d.shape import AlphaShape3D


@pytest.fixture
def config_manager():
    """Fixture providing a configuration manager instance."""
    return ConfigManager()


@pytest.fixture
def regular_tetra():
    """Regular tetrahedron with edge length 1."""
    return np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.5, math.sqrt(3.0) / 2.0, 0.0],
        [0.5, math.sqrt(3.0) / 6.0, math.sqrt(2.0 / 3.0)],
    ])


@pytest.fixture
def regular_tetra_radius():
    """Circumradius of the regular tetrahedron with edge 1."""
    return math.sqrt(6.0) / 4.0


@pytest.fixture
def cube_points():
    """Unit cube corners plus interior points (cospherical corners)."""
    return np.array([
        (0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0),
        (0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1),
        (0.5, 0.5, 0.5), (0.2, 0.8, 0.3), (0.8, 0.2, 0.7),
    ], dtype=float)


@pytest.fixture
def random_points():
    """Points in general position inside the unit cube."""
    rng = np.random.default_rng(12345)
    return rng.random((60, 3))


@pytest.fixture
def sphere_points():
    """Points on the unit sphere: every point is a hull vertex."""
    rng = np.random.default_rng(2024)
    pts = rng.normal(size=(80, 3))
    return pts / np.linalg.norm(pts, axis=1, keepdims=True)


@pytest.fixture
def built_triangulation(random_points):
    """Internal Delaunay triangulation of random_points."""
    return Delaunay3D(random_points, seed=7).build()


@pytest.fixture
def alpha_complex(built_triangulation):
    """Alpha intervals of built_triangulation."""
    return AlphaComplex(built_triangulation)


@pytest.fixture
def shape(alpha_complex):
    """Regularized alpha shape extractor over alpha_complex."""
    return AlphaShape3D(alpha_complex)
