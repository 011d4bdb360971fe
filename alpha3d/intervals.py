# alpha3d/intervals.py
"""
Альфа-інтервали для всіх скінченних симплексів тріангуляції Делоне.

Для кожного симплекса зберігаємо трійку (alpha_min, alpha_mid, alpha_max):
  α ≥ alpha_max           -> INTERIOR  (alpha_max = inf: ніколи, симплекс на оболонці)
  α ≥ alpha_mid           -> REGULAR
  α ≥ alpha_min (якщо є)  -> SINGULAR
  інакше                  -> EXTERIOR
alpha_min = NaN для «прикріплених» (не-Габріелевих) симплексів: їхня найменша
сфера містить іншу вершину, тож самі по собі вони у комплекс не входять.
α — це радіус (не квадрат радіуса).

Уся робота — один векторизований прохід numpy по готовій сітці; таблиці
після побудови лише для читання.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

import numpy as np

from .delaunay import Delaunay3D
from .geom import tet_circumradii, tri_circumspheres
from .mesh import INFINITE


class Classification(IntEnum):
    EXTERIOR = 0
    SINGULAR = 1
    REGULAR = 2
    INTERIOR = 3


@dataclass(frozen=True)
class AlphaInterval:
    """Критичні α одного симплекса (alpha_min=None — прикріплений симплекс)."""
    alpha_min: Optional[float]
    alpha_mid: float
    alpha_max: float

    @property
    def member(self) -> float:
        """α, з якого симплекс уперше входить у комплекс (як будь-що)."""
        return self.alpha_mid if self.alpha_min is None else self.alpha_min

    @property
    def interior(self) -> float:
        """α, з якого симплекс внутрішній (inf — ніколи)."""
        return self.alpha_max

    def classify(self, alpha: float) -> Classification:
        if self.alpha_max != np.inf and alpha >= self.alpha_max:
            return Classification.INTERIOR
        if alpha >= self.alpha_mid:
            return Classification.REGULAR
        if self.alpha_min is not None and alpha >= self.alpha_min:
            return Classification.SINGULAR
        return Classification.EXTERIOR


class SimplexTable:
    """
    Таблиця симплексів однієї розмірності.
    simplices — (K, d+1) індекси точок; alpha_* — (K,) float64.
    """
    def __init__(self, simplices: np.ndarray, alpha_min: np.ndarray,
                 alpha_mid: np.ndarray, alpha_max: np.ndarray):
        # інваріант монотонності: alpha_min ≤ alpha_mid ≤ alpha_max
        alpha_max = np.maximum(alpha_max, alpha_mid)
        alpha_min = np.minimum(alpha_min, alpha_mid)  # NaN лишається NaN
        self.simplices = simplices
        self.alpha_min = alpha_min
        self.alpha_mid = alpha_mid
        self.alpha_max = alpha_max
        for arr in (self.simplices, self.alpha_min, self.alpha_mid, self.alpha_max):
            arr.setflags(write=False)

    def __len__(self) -> int:
        return len(self.simplices)

    @property
    def member(self) -> np.ndarray:
        return np.where(np.isnan(self.alpha_min), self.alpha_mid, self.alpha_min)

    def interval(self, k: int) -> AlphaInterval:
        lo = float(self.alpha_min[k])
        return AlphaInterval(None if np.isnan(lo) else lo,
                             float(self.alpha_mid[k]), float(self.alpha_max[k]))

    def classify(self, alpha: float) -> np.ndarray:
        """Коди Classification для всіх симплексів при заданому α."""
        codes = np.full(len(self), Classification.EXTERIOR, dtype=np.int8)
        with np.errstate(invalid="ignore"):
            codes[self.alpha_min <= alpha] = Classification.SINGULAR
        codes[self.alpha_mid <= alpha] = Classification.REGULAR
        codes[np.isfinite(self.alpha_max) & (self.alpha_max <= alpha)] = Classification.INTERIOR
        return codes

    def count(self, alpha: float) -> Dict[str, int]:
        codes = self.classify(alpha)
        return {c.name.lower(): int(np.count_nonzero(codes == c)) for c in Classification}


class FacetTable(SimplexTable):
    """
    Трикутники: simplices орієнтовані назовні з боку комірки 0;
    side_alpha — (F, 2) радіуси двох інцидентних комірок (inf для привид-комірки).
    """
    def __init__(self, simplices, alpha_min, alpha_mid, alpha_max, side_alpha: np.ndarray):
        super().__init__(simplices, alpha_min, alpha_mid, alpha_max)
        self.side_alpha = side_alpha
        self.side_alpha.setflags(write=False)


class AlphaComplex:
    """
    Обчислювач альфа-інтервалів: один прохід по готовій тріангуляції.

    Вихід: таблиці cells / facets / edges / vertices (SimplexTable),
    незмінні після побудови.
    """
    def __init__(self, triangulation: Delaunay3D):
        self.logger = logging.getLogger(__name__)
        if not triangulation.is_built:
            raise RuntimeError("triangulation is not built; call build() first")
        self.triangulation = triangulation
        self.points = triangulation.points_array()
        self.points.setflags(write=False)

        mesh = triangulation.mesh
        X = mesh.coords()

        # 1) комірки
        cell_ids = np.array(list(mesh.finite_cells()), dtype=np.int64)
        cell_v = np.array([mesh.tets[t].v for t in cell_ids], dtype=np.int64).reshape(-1, 4)
        r_cell = tet_circumradii(X[cell_v[:, 0]], X[cell_v[:, 1]], X[cell_v[:, 2]], X[cell_v[:, 3]])
        row_of = np.full(len(mesh.tets), -1, dtype=np.int64)
        row_of[cell_ids] = np.arange(len(cell_ids))
        self.cells = SimplexTable(cell_v - 1, np.full(len(cell_ids), np.nan), r_cell, r_cell.copy())

        # 2) грані
        self.facets, facet_v, third = self._facet_table(mesh, X, r_cell, row_of)

        # 3) ребра
        self.edges, edge_v = self._edge_table(X, facet_v, third)

        # 4) вершини
        self.vertices = self._vertex_table(edge_v)

        # найменший радіус інцидентної комірки для кожної точки (find_alpha_solid)
        self._vertex_cell_alpha = np.full(len(X), np.inf)
        np.minimum.at(self._vertex_cell_alpha, cell_v.ravel(), np.repeat(r_cell, 4))

        self.logger.info(
            f"Alpha complex: {len(self.cells)} cells, {len(self.facets)} facets, "
            f"{len(self.edges)} edges, {len(self.vertices)} vertices"
        )

    # ---------- грані ----------
    def _facet_table(self, mesh, X: np.ndarray, r_cell: np.ndarray, row_of: np.ndarray):
        rows: List[Tuple[int, int, int]] = []
        opp: List[Tuple[int, int]] = []
        side: List[Tuple[int, int]] = []
        for tid, fi in mesh.finite_facets():
            t = mesh.tets[tid]
            nb = t.nbr[fi]
            rows.append(t.outward_face(fi))
            opp.append((t.v[fi], mesh.tets[nb].v[mesh.mirror_index(tid, fi)]))
            side.append((tid, nb))
        facet_v = np.array(rows, dtype=np.int64).reshape(-1, 3)
        opp_v = np.array(opp, dtype=np.int64).reshape(-1, 2)
        side_t = np.array(side, dtype=np.int64).reshape(-1, 2)

        side_alpha = np.full(side_t.shape, np.inf)
        finite_side = row_of[side_t] >= 0
        side_alpha[finite_side] = r_cell[row_of[side_t][finite_side]]
        alpha_mid = side_alpha.min(axis=1)
        alpha_max = side_alpha.max(axis=1)

        # Габріель: протилежні скінченні вершини не строго всередині найменшої сфери грані
        centers, radius = tri_circumspheres(X[facet_v[:, 0]], X[facet_v[:, 1]], X[facet_v[:, 2]])
        attached = np.zeros(len(facet_v), dtype=bool)
        for k in range(2):
            o = opp_v[:, k]
            finite = o != INFINITE
            d = X[o[finite]] - centers[finite]
            attached[finite] |= np.einsum("ij,ij->i", d, d) < radius[finite] ** 2
        alpha_min = np.where(attached, np.nan, radius)

        # сторони грані -> ребра; third[:, k] це вершина навпроти сторони k
        third = facet_v[:, [2, 0, 1]]
        table = FacetTable(facet_v - 1, alpha_min, alpha_mid, alpha_max, side_alpha)
        self.logger.debug(f"Facets: {len(facet_v)} total, {int(attached.sum())} attached, "
                          f"{int(np.isinf(alpha_max).sum())} on hull")
        return table, facet_v, third

    # ---------- ребра ----------
    def _edge_table(self, X: np.ndarray, facet_v: np.ndarray, third: np.ndarray):
        F = len(facet_v)
        # сторона k грані: (v[k], v[(k+1)%3]); канонічний ключ (min, max)
        a = facet_v
        b = facet_v[:, [1, 2, 0]]
        pairs = np.stack([np.minimum(a, b), np.maximum(a, b)], axis=-1).reshape(-1, 2)
        edge_v, inverse = np.unique(pairs, axis=0, return_inverse=True)
        inverse = inverse.reshape(-1)
        facet_edges = inverse.reshape(F, 3)

        # Габріель для ребра: жодна вершина лінку не строго в діаметральній кулі
        pa, pb = X[edge_v[:, 0]], X[edge_v[:, 1]]
        half = 0.5 * np.linalg.norm(pb - pa, axis=1)
        mid = 0.5 * (pa + pb)
        w = third.reshape(-1)
        d = X[w] - mid[inverse]
        inside = np.einsum("ij,ij->i", d, d) < half[inverse] ** 2
        attached = np.zeros(len(edge_v), dtype=bool)
        attached[inverse[inside]] = True

        f_member = self.facets.member
        alpha_mid = np.full(len(edge_v), np.inf)
        alpha_max = np.zeros(len(edge_v))
        np.minimum.at(alpha_mid, inverse, np.repeat(f_member, 3))
        np.maximum.at(alpha_max, inverse, np.repeat(self.facets.alpha_max, 3))
        alpha_min = np.where(attached, np.nan, half)

        # facet_edges[f, k]: рядок таблиці ребер для сторони k грані f
        facet_edges.setflags(write=False)
        self.facet_edges = facet_edges

        self.logger.debug(f"Edges: {len(edge_v)} total, {int(attached.sum())} attached")
        return SimplexTable(edge_v - 1, alpha_min, alpha_mid, alpha_max), edge_v

    # ---------- вершини ----------
    def _vertex_table(self, edge_v: np.ndarray) -> SimplexTable:
        ends = edge_v.reshape(-1)
        vids, inverse = np.unique(ends, return_inverse=True)
        inverse = inverse.reshape(-1)
        e_member = np.repeat(self.edges.member, 2)
        e_max = np.repeat(self.edges.alpha_max, 2)
        alpha_mid = np.full(len(vids), np.inf)
        alpha_max = np.zeros(len(vids))
        np.minimum.at(alpha_mid, inverse, e_member)
        np.maximum.at(alpha_max, inverse, e_max)
        return SimplexTable((vids - 1).reshape(-1, 1), np.zeros(len(vids)), alpha_mid, alpha_max)

    # ---------- запити ----------
    def table(self, dim: int) -> SimplexTable:
        return (self.vertices, self.edges, self.facets, self.cells)[dim]

    def interval(self, dim: int, k: int) -> AlphaInterval:
        """AlphaInterval k-го симплекса розмірності dim (0 — вершини ... 3 — комірки)."""
        return self.table(dim).interval(k)

    def critical_alphas(self) -> np.ndarray:
        """Відсортовані різні скінченні значення α, на яких щось змінюється."""
        vals = [t.alpha_min for t in (self.facets, self.edges)]
        vals += [t.alpha_mid for t in (self.cells, self.facets, self.edges, self.vertices)]
        allv = np.concatenate(vals)
        return np.unique(allv[np.isfinite(allv)])

    def find_alpha_solid(self) -> float:
        """
        Найменше α, при якому кожна точка лежить на межі або всередині
        регуляризованої форми: max по вершинах мінімального радіуса
        інцидентної комірки.
        """
        vals = self._vertex_cell_alpha[1:]
        vals = vals[np.isfinite(vals)]
        return float(vals.max()) if len(vals) else float("inf")
