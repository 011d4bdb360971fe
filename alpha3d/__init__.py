"""
alpha3d — 3D Делоне-тетраедралізація і альфа-форми (Py 3.10+).
Інкрементальний Bowyer–Watson з нескінченною вершиною, альфа-інтервали
всіх симплексів за один прохід, дешеві запити для довільного α.
"""

__version__ = "0.2.0"

from alpha3d.geom import Pt, DEDUP_SCALE, unique_points
from alpha3d.predicates import Sign, orientation, in_sphere, collinear
from alpha3d.errors import (
    Alpha3DError, InvalidInput, DegenerateInput, CoincidentPoints,
    PredicateDegenerate, BuildCancelled,
)
from alpha3d.mesh import TetMesh, INFINITE
from alpha3d.delaunay import Delaunay3D, DualEdge
from alpha3d.intervals import AlphaComplex, AlphaInterval, Classification
from alpha3d.shape import AlphaShape3D, AlphaBoundary, Mode
from alpha3d.config import ConfigManager
from alpha3d.pipeline import triangulate, alpha_shape
from alpha3d.io import load_csv, normalize_points, write_off

__all__ = [
    "Pt", "DEDUP_SCALE", "unique_points",
    "Sign", "orientation", "in_sphere", "collinear",
    "Alpha3DError", "InvalidInput", "DegenerateInput", "CoincidentPoints",
    "PredicateDegenerate", "BuildCancelled",
    "TetMesh", "INFINITE", "Delaunay3D", "DualEdge",
    "AlphaComplex", "AlphaInterval", "Classification",
    "AlphaShape3D", "AlphaBoundary", "Mode",
    "ConfigManager", "triangulate", "alpha_shape",
    "load_csv", "normalize_points", "write_off",
    "__version__",
]
