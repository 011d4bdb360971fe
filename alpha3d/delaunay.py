# alpha3d/delaunay.py
from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

import numpy as np

from .errors import (
    BuildCancelled, CoincidentPoints, DegenerateInput, InvalidInput, PredicateDegenerate,
)
from .geom import Pt, DEDUP_SCALE, tet_circumcenters, unique_points
from .mesh import TetMesh, INFINITE
from .predicates import Sign, orientation, in_sphere, collinear

logger = logging.getLogger(__name__)

DEFAULT_MAX_WALK_STEPS = 100000


def _empty_stats() -> dict:
    return {"walk_steps": 0, "walk_fallbacks": 0, "conflict_cells": 0}


@dataclass(frozen=True, eq=False)
class DualEdge:
    """
    Ребро Вороного, двоїсте до скінченної грані Делоне.
    Внутрішня грань — відрізок source -> target між центрами двох комірок;
    грань оболонки — промінь з source уздовж зовнішньої нормалі direction.
    """
    facet: Tuple[int, int, int]
    source: np.ndarray
    target: Optional[np.ndarray] = None
    direction: Optional[np.ndarray] = None

    @property
    def is_ray(self) -> bool:
        return self.target is None


def validate_points(points) -> np.ndarray:
    """
    Перевірка вхідних точок: масив (N, 3), N >= 4, лише скінченні значення.
    Повертає float64 масив.
    """
    try:
        arr = np.asarray(points, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"points must be an (N, 3) array of floats: {e}") from e
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise InvalidInput(f"points must have shape (N, 3), got {arr.shape}")
    if len(arr) < 4:
        raise InvalidInput(f"need at least 4 points, got {len(arr)}")
    bad = ~np.isfinite(arr).all(axis=1)
    if bad.any():
        rows = np.flatnonzero(bad)
        raise InvalidInput(f"{len(rows)} point(s) with NaN/Inf coordinates, first at index {rows[0]}")
    return arr


def prepare_points(
    points, policy: str = "merge", scale: float = DEDUP_SCALE
) -> Tuple[List[Pt], List[int]]:
    """
    Валідація + дедуплікація.
    policy='merge' — дублікати відкидаються (перше входження виграє),
    policy='raise' — CoincidentPoints.
    """
    arr = validate_points(points)
    pts, sources, duplicates = unique_points(arr.tolist(), scale)
    if duplicates:
        if policy == "raise":
            raise CoincidentPoints(duplicates)
        if policy != "merge":
            raise InvalidInput(f"unknown duplicate policy: {policy!r}")
        logger.warning(f"Merged {len(duplicates)} coincident point(s); {len(pts)} distinct points remain")
    if len(pts) < 4:
        raise InvalidInput(f"need at least 4 distinct points, got {len(pts)}")
    return pts, sources


class Delaunay3D:
    """
    Інкрементальна 3D Делоне з порожньою сферою (Bowyer–Watson) і
    нескінченною вершиною замість супер-тетра.

    Вхід: масив точок (N, 3). Після build() доступна self.mesh — валідна
    тріангуляція опуклої оболонки плюс оболонка привид-комірок.
    Вершина k+1 сітки відповідає точці self.points[k].
    """
    def __init__(
        self,
        points,
        seed: Optional[int] = None,
        dedup: str = "merge",
        scale: float = DEDUP_SCALE,
        max_walk_steps: int = DEFAULT_MAX_WALK_STEPS,
    ):
        self.logger = logging.getLogger(__name__)
        self.points, self.sources = prepare_points(points, dedup, scale)
        self.seed = seed
        self.max_walk_steps = max_walk_steps
        self.mesh: Optional[TetMesh] = None   # лише повністю побудована сітка
        self._work: Optional[TetMesh] = None  # сітка під час побудови
        self._rng = random.Random(seed)
        self._hint = -1                       # комірка останньої вставки, для locate-walk
        self.stats = _empty_stats()

    @property
    def is_built(self) -> bool:
        return self.mesh is not None

    # ---- стартовий тетраедр ----
    def find_initial_simplex(self, order: Sequence[int]) -> Tuple[int, int, int, int]:
        """
        Перші 4 не копланарні точки у заданому порядку (точні предикати):
          - p0, p1: перші дві (після дедуплікації вони різні);
          - p2: перша не колінеарна з (p0, p1);
          - p3: перша не копланарна з (p0, p1, p2).
        Повертає індекси точок у додатній орієнтації.
        """
        P = self.points
        p0, p1 = order[0], order[1]
        p2 = next((k for k in order[2:] if not collinear(P[p0], P[p1], P[k])), None)
        if p2 is None:
            raise DegenerateInput("All points collinear: no finite tetrahedron exists")
        p3 = None
        for k in order[2:]:
            if k == p2:
                continue
            if orientation(P[p0], P[p1], P[p2], P[k]) != Sign.ZERO:
                p3 = k
                break
        if p3 is None:
            raise DegenerateInput("All points coplanar: no finite tetrahedron exists")
        if orientation(P[p0], P[p1], P[p2], P[p3]) == Sign.NEGATIVE:
            p0, p1 = p1, p0
        return p0, p1, p2, p3

    def check_dimension(self) -> None:
        """DegenerateInput, якщо точки не охоплюють 3D."""
        self.find_initial_simplex(list(range(len(self.points))))

    # ---- побудова ----
    def _new_mesh(self) -> TetMesh:
        mesh = TetMesh()
        for k, p in enumerate(self.points):
            mesh.add_vertex(p, source=self.sources[k])
        return mesh

    def build(self, insert_order: Optional[Sequence[int]] = None, cancel=None) -> "Delaunay3D":
        """
        Побудувати Делоне-тетраедралізацію.
        insert_order — перестановка індексів точок (інакше випадкова);
        cancel — об'єкт з is_set() (напр. threading.Event), перевіряється між
        вставками. Після скасування чи помилки часткова сітка відкидається.
        """
        n = len(self.points)
        if insert_order is None:
            order = list(range(n))
            self._rng.shuffle(order)
        else:
            order = list(insert_order)
            if sorted(order) != list(range(n)):
                raise InvalidInput("insert_order must be a permutation of point indices")

        self.mesh = None
        self.stats = _empty_stats()
        self._work = self._new_mesh()
        try:
            start = self.find_initial_simplex(order)
            self._seed_simplex(start)
            used = set(start)
            rest = [k for k in order if k not in used]
            for done, k in enumerate(rest):
                if cancel is not None and cancel.is_set():
                    self.logger.info(f"Triangulation cancelled after {done + 4} of {n} points")
                    raise BuildCancelled(f"cancelled after {done + 4} of {n} points")
                self.insert(k + 1)
            self.mesh = self._work
        finally:
            self._work = None

        self.logger.info(
            f"Delaunay built: {n} vertices, {self.number_of_finite_cells()} cells, "
            f"{self.stats['walk_steps']} walk steps, {self.stats['walk_fallbacks']} fallbacks"
        )
        return self

    def build_from_simplices(self, simplices) -> "Delaunay3D":
        """
        Зібрати сітку з готових тетраедрів (індекси у self.points), напр. від
        SciPy/Qhull: орієнтувати, зшити сусідів, додати привид-комірки.
        Плоский тетраедр у вхідному списку — PredicateDegenerate.
        """
        self.check_dimension()
        self.mesh = None
        mesh = self._new_mesh()
        finite: List[int] = []
        for simplex in simplices:
            v = [int(i) + 1 for i in simplex]
            pts = [mesh.point(x) for x in v]
            o = orientation(*pts)
            if o == Sign.ZERO:
                raise PredicateDegenerate(f"flat simplex {tuple(int(i) for i in simplex)} from backend")
            if o == Sign.NEGATIVE:
                v[0], v[1] = v[1], v[0]
            finite.append(mesh.add_tet(tuple(v)))

        # 1) зшиваємо скінченні між собою; решта граней належить оболонці
        hull = mesh.stitch(finite, strict=False)
        # 2) привид-комірки за кожною гранню оболонки і їх зшивка
        ghosts = [mesh.add_ghost(tid, fi) for (tid, fi) in hull]
        mesh.stitch(ghosts)
        self.mesh = mesh
        self.logger.info(f"Mesh assembled from {len(finite)} simplices, {len(ghosts)} hull facets")
        return self

    def _seed_simplex(self, start: Tuple[int, int, int, int]) -> None:
        mesh = self._work
        tid = mesh.add_tet(tuple(k + 1 for k in start))
        ghosts = [mesh.add_ghost(tid, fi) for fi in range(4)]
        mesh.stitch(ghosts)
        self._hint = tid

    # ---- конфлікт ----
    def _in_conflict(self, tid: int, p: Pt) -> bool:
        """
        Чи містить «сфера» комірки точку p строго всередині.
        Для привид-комірки сфера — відкритий півпростір за гранню оболонки;
        якщо p рівно у площині грані, вирішує описана сфера скінченного сусіда
        (тобто строго всередині описаного кола грані).
        """
        mesh = self._work
        t = mesh.tets[tid]
        pts = mesh.cell_points(tid)
        if INFINITE in t.v:
            i = t.index(INFINITE)
            pts[i] = p
            o = orientation(*pts)
            if o != Sign.ZERO:
                return o == Sign.POSITIVE
            a, b, c, d = mesh.cell_points(t.nbr[i])
            return in_sphere(a, b, c, d, p) == Sign.POSITIVE
        a, b, c, d = pts
        return in_sphere(a, b, c, d, p) == Sign.POSITIVE

    # ---- locate ----
    def _locate(self, p: Pt) -> int:
        """
        Стохастичний visibility walk від комірки попередньої вставки.
        Повертає скінченну комірку, що містить p, або привид-комірку, за
        гранню якої лежить p; -1 якщо перевищено ліміт кроків.
        """
        mesh = self._work
        cur = self._hint
        prev = -1
        for _ in range(self.max_walk_steps):
            self.stats["walk_steps"] += 1
            t = mesh.tets[cur]
            if INFINITE in t.v:
                # у привид-комірку потрапляємо лише через грань оболонки, яку p строго бачить
                if prev != -1 or self._in_conflict(cur, p):
                    return cur
                prev, cur = cur, t.nbr[t.index(INFINITE)]
                continue
            cell = mesh.cell_points(cur)
            off = self._rng.randrange(4)
            for k in range(4):
                fi = (off + k) % 4
                nb = t.nbr[fi]
                if nb == prev:
                    continue  # з цього боку ми щойно прийшли
                pts = cell[:]
                pts[fi] = p
                if orientation(*pts) == Sign.NEGATIVE:
                    prev, cur = cur, nb
                    break
            else:
                return cur
        return -1

    def _scan_conflict(self, p: Pt) -> int:
        """Лінійний пошук будь-якої конфліктної комірки (запасний шлях)."""
        self.stats["walk_fallbacks"] += 1
        for tid in self._work.alive_tets():
            if self._in_conflict(tid, p):
                return tid
        return -1

    # ---- вставка однієї точки ----
    def insert(self, vid: int) -> None:
        mesh = self._work
        p = mesh.point(vid)

        # 1) locate
        start = self._locate(p)
        if start == -1:
            self.logger.warning(f"Walk exceeded {self.max_walk_steps} steps for vertex {vid}, scanning")
        if start == -1 or not self._in_conflict(start, p):
            start = self._scan_conflict(p)
        if start == -1:
            raise PredicateDegenerate(f"no cell in conflict with vertex {vid} at {tuple(p)}")

        # 2) cavity: комірки, у яких p строго всередині сфери, + її межа
        cavity: Set[int] = {start}
        outside: Set[int] = set()
        boundary: List[Tuple[int, int]] = []  # (tid у cavity, fi) з сусідом поза cavity
        stack = [start]
        while stack:
            cur = stack.pop()
            t = mesh.tets[cur]
            for fi in range(4):
                nb = t.nbr[fi]
                if nb in cavity:
                    continue
                if nb not in outside and self._in_conflict(nb, p):
                    cavity.add(nb)
                    stack.append(nb)
                else:
                    outside.add(nb)
                    boundary.append((cur, fi))
        self.stats["conflict_cells"] += len(cavity)

        # 3) нові комірки: у кожній граничній комірці протилежну вершину
        #    замінюємо на p; орієнтація зберігається (cavity зіркова відносно p)
        new_tets: List[int] = []
        for tid, fi in boundary:
            t = mesh.tets[tid]
            v = list(t.v)
            v[fi] = vid
            ext = t.nbr[fi]
            ext_fi = mesh.mirror_index(tid, fi)
            tid_new = mesh.add_tet(tuple(v))
            mesh.link(tid_new, fi, ext, ext_fi)
            new_tets.append(tid_new)

        # 4) видалити cavity і зшити нові між собою по гранях, що містять p
        for tid in cavity:
            mesh.kill(tid)
        mesh.stitch(new_tets)

        # 5) оновити seed для локалізації наступної точки
        self._hint = mesh.vertices[vid].cell

    # ---------- запити до готової тріангуляції ----------
    def _require_mesh(self) -> TetMesh:
        if self.mesh is None:
            raise RuntimeError("triangulation is not built; call build() first")
        return self.mesh

    def points_array(self) -> np.ndarray:
        return np.array([(p.x, p.y, p.z) for p in self.points], dtype=float)

    def number_of_vertices(self) -> int:
        return len(self.points)

    def number_of_finite_cells(self) -> int:
        return sum(1 for _ in self._require_mesh().finite_cells())

    def number_of_finite_facets(self) -> int:
        return sum(1 for _ in self._require_mesh().finite_facets())

    def number_of_finite_edges(self) -> int:
        return len(self._require_mesh().finite_edges())

    def finite_cells(self) -> List[Tuple[int, int, int, int]]:
        """Скінченні тетраедри як індекси у self.points."""
        mesh = self._require_mesh()
        return [tuple(x - 1 for x in mesh.tets[tid].v) for tid in mesh.finite_cells()]

    def finite_facets(self) -> List[Tuple[int, int, int]]:
        mesh = self._require_mesh()
        return [tuple(x - 1 for x in mesh.tets[tid].face_vertices(fi))
                for tid, fi in mesh.finite_facets()]

    def finite_edges(self, max_length: Optional[float] = None) -> List[Tuple[int, int]]:
        """
        Ребра Делоне як пари індексів у self.points; max_length відкидає
        довші ребра (як у демо з відсіканням довгих ребер).
        """
        mesh = self._require_mesh()
        out = []
        for u, v in mesh.finite_edges():
            if max_length is not None:
                a, b = mesh.point(u), mesh.point(v)
                length = ((a.x - b.x)**2 + (a.y - b.y)**2 + (a.z - b.z)**2) ** 0.5
                if length > max_length:
                    continue
            out.append((u - 1, v - 1))
        return out

    def convex_hull(self) -> List[Tuple[int, int, int]]:
        """Грані опуклої оболонки з нормаллю назовні (індекси у self.points)."""
        mesh = self._require_mesh()
        out = []
        for tid, fi in mesh.finite_facets():
            if mesh.is_infinite(mesh.tets[tid].nbr[fi]):
                out.append(tuple(x - 1 for x in mesh.tets[tid].outward_face(fi)))
        return out

    # ---------- двоїста діаграма Вороного ----------
    def voronoi_vertices(self) -> np.ndarray:
        """Центри описаних сфер скінченних комірок; рядок k відповідає finite_cells()[k]."""
        mesh = self._require_mesh()
        cells = np.array([mesh.tets[tid].v for tid in mesh.finite_cells()], dtype=np.int64).reshape(-1, 4)
        xyz = mesh.coords()
        return tet_circumcenters(xyz[cells[:, 0]], xyz[cells[:, 1]], xyz[cells[:, 2]], xyz[cells[:, 3]])

    def _dual(self, tid: int, fi: int, xyz: np.ndarray) -> DualEdge:
        mesh = self.mesh

        def center(cell: int) -> np.ndarray:
            a, b, c, d = (xyz[[v]] for v in mesh.tets[cell].v)
            return tet_circumcenters(a, b, c, d)[0]

        t = mesh.tets[tid]
        facet = tuple(sorted(x - 1 for x in t.face_vertices(fi)))
        nb = t.nbr[fi]
        if mesh.is_infinite(tid):
            tid, fi, nb = nb, mesh.mirror_index(tid, fi), tid
            t = mesh.tets[tid]
        if not mesh.is_infinite(nb):
            return DualEdge(facet, center(tid), target=center(nb))
        a, b, c = (xyz[v] for v in t.outward_face(fi))
        n = np.cross(b - a, c - a)
        return DualEdge(facet, center(tid), direction=n / np.linalg.norm(n))

    def dual(self, facet: Sequence[int]) -> DualEdge:
        """
        Двоїсте ребро Вороного для грані (i, j, k) — індекси у self.points.
        InvalidInput, якщо такої грані в тріангуляції немає.
        """
        mesh = self._require_mesh()
        vids = {int(i) + 1 for i in facet}
        if len(vids) != 3 or not all(1 <= v <= len(self.points) for v in vids):
            raise InvalidInput(f"facet must be three distinct point indices, got {tuple(facet)}")
        for tid in mesh.incident_cells(min(vids)):
            t = mesh.tets[tid]
            if vids <= set(t.v):
                fi = next(i for i, v in enumerate(t.v) if v not in vids)
                return self._dual(tid, fi, mesh.coords())
        raise InvalidInput(f"{tuple(facet)} is not a facet of the triangulation")

    def voronoi_edges(self) -> List[DualEdge]:
        """Двоїсті ребра для всіх скінченних граней (порядок як у finite_facets())."""
        mesh = self._require_mesh()
        xyz = mesh.coords()
        return [self._dual(tid, fi, xyz) for tid, fi in mesh.finite_facets()]

    def is_delaunay(self) -> bool:
        """Повна перевірка порожньої сфери (O(cells * N)) — для тестів і діагностики."""
        mesh = self._require_mesh()
        for tid in mesh.finite_cells():
            a, b, c, d = mesh.cell_points(tid)
            own = set(mesh.tets[tid].v)
            for vid in range(1, len(mesh.vertices)):
                if vid in own:
                    continue
                if in_sphere(a, b, c, d, mesh.point(vid)) == Sign.POSITIVE:
                    return False
        return True

    def validate(self, check_delaunay: bool = True) -> dict:
        return self._require_mesh().validate(check_delaunay=check_delaunay)
