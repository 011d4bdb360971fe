from __future__ import annotations
import logging
from typing import Optional

from scipy.spatial import Delaunay, QhullError

from .config import ConfigManager
from .delaunay import Delaunay3D, DEFAULT_MAX_WALK_STEPS
from .errors import DegenerateInput, PredicateDegenerate
from .geom import DEDUP_SCALE
from .intervals import AlphaComplex
from .shape import AlphaShape3D, Mode

logger = logging.getLogger(__name__)

BACKENDS = ("internal", "scipy")


def triangulate(
    points,
    backend: str = "internal",
    seed: Optional[int] = None,
    dedup: str = "merge",
    scale: float = DEDUP_SCALE,
    max_walk_steps: int = DEFAULT_MAX_WALK_STEPS,
    cancel=None,
) -> Delaunay3D:
    """
    Повний пайплайн тріангуляції:
      - валідація і дедуплікація точок;
      - 3D Делоне нашою інкрементальною реалізацією (backend='internal')
        або через SciPy/Qhull (backend='scipy');
      - якщо вихід Qhull непридатний (плоскі тетраедри, пропущені точки),
        будуємо внутрішньою реалізацією з попередженням у лог;
      - у будь-якому разі — та сама сітка з привид-комірками.

    Повертає побудовану Delaunay3D.
    """
    tri = Delaunay3D(points, seed=seed, dedup=dedup, scale=scale, max_walk_steps=max_walk_steps)
    backend = backend.lower()

    if backend == "internal":
        return tri.build(cancel=cancel)

    if backend == "scipy":
        arr = tri.points_array()
        tri.check_dimension()
        try:
            # без QJ: joggle зсунув би точки, а сітка має бути над вхідними координатами
            dela = Delaunay(arr)
        except QhullError as e:
            raise DegenerateInput(f"Qhull failed: {e}") from e
        if len(dela.coplanar):
            # сітка має містити всі точки
            logger.warning(f"Qhull left {len(dela.coplanar)} point(s) out of the triangulation, using the internal build")
            return tri.build(cancel=cancel)
        simplices = [tuple(int(i) for i in simplex) for simplex in dela.simplices]
        try:
            return tri.build_from_simplices(simplices)
        except PredicateDegenerate as e:
            # співсферичні точки (напр. решітка): Qhull лишає плоскі тетраедри
            logger.warning(f"Qhull output rejected ({e}), using the internal build")
            return tri.build(cancel=cancel)

    raise ValueError(f"Unknown backend: {backend!r}, expected one of {BACKENDS}")


def alpha_shape(
    points,
    config: Optional[ConfigManager] = None,
    backend: Optional[str] = None,
    mode: Optional[str] = None,
    seed: Optional[int] = None,
    cancel=None,
) -> AlphaShape3D:
    """
    Точки -> тріангуляція -> альфа-інтервали -> екстрактор.
    Явні аргументи мають пріоритет над конфігурацією.
    """
    config = config or ConfigManager()
    dl = config.get_delaunay_params()
    dd = config.get_dedup_params()

    tri = triangulate(
        points,
        backend=backend or dl.get("backend", "internal"),
        seed=seed if seed is not None else dl.get("seed"),
        dedup=dd.get("policy", "merge"),
        scale=float(dd.get("scale", DEDUP_SCALE)),
        max_walk_steps=int(dl.get("max_walk_steps", DEFAULT_MAX_WALK_STEPS)),
        cancel=cancel,
    )
    shape = AlphaShape3D(AlphaComplex(tri), mode=Mode(mode or config.get("alpha.mode", "regularized")))
    logger.info(f"Alpha shape ready: {tri.number_of_vertices()} points, mode={shape.mode.value}")
    return shape
