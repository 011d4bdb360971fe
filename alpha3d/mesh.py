# alpha3d/mesh.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .geom import Pt
from .errors import PredicateDegenerate
from .predicates import Sign, orientation, in_sphere

FaceKey = Tuple[int, int, int]  # відсортована трійка вершин грані
EdgeKey = Tuple[int, int]       # (min(u,v), max(u,v))

INFINITE = 0  # індекс вершини на нескінченності в арені вершин

# OUTWARD[i]: локальні індекси грані i у порядку, що дає нормаль НАЗОВНІ
# для додатно орієнтованої комірки.
OUTWARD: Tuple[Tuple[int, int, int], ...] = ((1, 2, 3), (0, 3, 2), (0, 1, 3), (0, 2, 1))


@dataclass
class Vertex:
    """
    Вершина сітки.
    pt       — координати (None для нескінченної вершини);
    cell     — одна інцидентна комірка (для обходів), -1 якщо ще немає;
    infinite — прапорець «точки на нескінченності» (не None-посилання!);
    source   — індекс точки у вхідному масиві.
    """
    pt: Optional[Pt]
    cell: int = -1
    infinite: bool = False
    source: int = -1


@dataclass
class Tet:
    """
    Тетраедр у сітці.
    v[i] — вершина, протилежна грані i. Отже, грань i містить три інші вершини.
    nbr[i] — сусід через грань i (індекс комірки; -1 лише під час зшивки).
    Скінченні комірки орієнтовані додатно. Нескінченна комірка містить
    INFINITE рівно один раз; якщо замінити INFINITE на точку за її гранню
    оболонки, орієнтація стане додатною.
    """
    v: Tuple[int, int, int, int]
    nbr: List[int] = field(default_factory=lambda: [-1, -1, -1, -1])
    alive: bool = True

    def face_vertices(self, i: int) -> Tuple[int, int, int]:
        a, b, c, d = self.v
        if i == 0: return (b, c, d)
        if i == 1: return (a, c, d)
        if i == 2: return (a, b, d)
        return (a, b, c)

    def outward_face(self, i: int) -> Tuple[int, int, int]:
        j, k, l = OUTWARD[i]
        return (self.v[j], self.v[k], self.v[l])

    def index(self, vid: int) -> int:
        return self.v.index(vid)


class TetMesh:
    """
    Арена 3D тетра-сітки з привид-комірками:
      - vertices: масив Vertex, vertices[0] — нескінченна вершина;
      - tets: масив Tet (мертві комірки лишаються з alive=False,
        тож індекси стабільні).
    Сусідства й вершини зберігаються як індекси, а не посилання.
    """
    def __init__(self):
        self.vertices: List[Vertex] = [Vertex(None, infinite=True)]
        self.tets: List[Tet] = []

    # ---------- створення ----------
    def add_vertex(self, p: Pt, source: int = -1) -> int:
        self.vertices.append(Vertex(p, source=source))
        return len(self.vertices) - 1

    def add_tet(self, v: Tuple[int, int, int, int]) -> int:
        tid = len(self.tets)
        self.tets.append(Tet(tuple(v)))
        for vid in v:
            self.vertices[vid].cell = tid
        return tid

    def link(self, ta: int, fa: int, tb: int, fb: int) -> None:
        self.tets[ta].nbr[fa] = tb
        self.tets[tb].nbr[fb] = ta

    def kill(self, tid: int) -> None:
        self.tets[tid].alive = False

    def stitch(self, tids: List[int], strict: bool = True) -> List[Tuple[int, int]]:
        """
        Зшити між собою вільні грані (nbr == -1) заданих комірок
        за відсортованою трійкою вершин.
        Повертає грані без пари (tid, fi); при strict=True їх не має бути.
        """
        stitch_map: Dict[FaceKey, Tuple[int, int]] = {}
        for tid in tids:
            t = self.tets[tid]
            for fi in range(4):
                if t.nbr[fi] != -1:
                    continue
                key = tuple(sorted(t.face_vertices(fi)))
                prev = stitch_map.pop(key, None)
                if prev is None:
                    stitch_map[key] = (tid, fi)
                else:
                    self.link(tid, fi, prev[0], prev[1])
        if strict and stitch_map:
            raise PredicateDegenerate(
                f"{len(stitch_map)} facets left unmatched while stitching cells"
            )
        return sorted(stitch_map.values())

    def add_ghost(self, tid: int, fi: int) -> int:
        """
        Створити нескінченну комірку по той бік грані fi скінченної комірки tid.
        Дві скінченні вершини міняємо місцями, щоб зберегти домовленість про
        орієнтацію привид-комірок.
        """
        v = list(self.tets[tid].v)
        v[fi] = INFINITE
        j, k = [x for x in range(4) if x != fi][:2]
        v[j], v[k] = v[k], v[j]
        gid = self.add_tet(tuple(v))
        self.link(gid, fi, tid, fi)
        return gid

    # ---------- корисні операції ----------
    def point(self, vid: int) -> Pt:
        return self.vertices[vid].pt

    def cell_points(self, tid: int) -> List[Optional[Pt]]:
        return [self.vertices[vid].pt for vid in self.tets[tid].v]

    def is_infinite(self, tid: int) -> bool:
        return INFINITE in self.tets[tid].v

    def mirror_index(self, tid: int, fi: int) -> int:
        """Локальний індекс тієї ж грані в сусідній комірці."""
        nb = self.tets[tid].nbr[fi]
        return self.tets[nb].nbr.index(tid)

    def alive_tets(self) -> Iterator[int]:
        for tid, t in enumerate(self.tets):
            if t.alive:
                yield tid

    def finite_cells(self) -> Iterator[int]:
        for tid in self.alive_tets():
            if not self.is_infinite(tid):
                yield tid

    def finite_facets(self) -> Iterator[Tuple[int, int]]:
        """
        Кожна скінченна грань рівно один раз як (tid, fi).
        Для грані оболонки — з боку скінченної комірки; для внутрішньої —
        з боку комірки з меншим індексом.
        """
        for tid in self.finite_cells():
            t = self.tets[tid]
            for fi in range(4):
                nb = t.nbr[fi]
                if self.is_infinite(nb) or tid < nb:
                    yield tid, fi

    def finite_edges(self) -> Dict[EdgeKey, Tuple[int, int, int]]:
        """
        Канонічні ребра (min, max) -> одне представлення (tid, i, j).
        Ідентичність ребра не залежить від комірки, яка його повідомила.
        """
        out: Dict[EdgeKey, Tuple[int, int, int]] = {}
        for tid in self.finite_cells():
            v = self.tets[tid].v
            for i in range(3):
                for j in range(i + 1, 4):
                    key = (min(v[i], v[j]), max(v[i], v[j]))
                    if key not in out:
                        out[key] = (tid, i, j)
        return out

    def incident_cells(self, vid: int) -> List[int]:
        """Усі живі комірки навколо вершини (обхід сусідами від vertex.cell)."""
        start = self.vertices[vid].cell
        if start < 0:
            return []
        seen = {start}
        stack = [start]
        while stack:
            cur = stack.pop()
            t = self.tets[cur]
            for fi in range(4):
                if t.v[fi] == vid:
                    continue  # грань навпроти vid не містить vid
                nb = t.nbr[fi]
                if nb not in seen:
                    seen.add(nb)
                    stack.append(nb)
        return sorted(seen)

    def coords(self) -> np.ndarray:
        """(n+1, 3) масив координат; рядок 0 (INFINITE) — NaN."""
        arr = np.full((len(self.vertices), 3), np.nan)
        for vid in range(1, len(self.vertices)):
            p = self.vertices[vid].pt
            arr[vid] = (p.x, p.y, p.z)
        return arr

    # ---------- валідація сітки ----------
    def validate(self, check_delaunay: bool = False) -> dict:
        """
        Швидка перевірка коректності тетра-сітки:
          - орієнтація кожної живої скінченної комірки позитивна;
          - нескінченна комірка має INFINITE рівно один раз;
          - сусідства симетричні і спільна грань має ті самі вершини;
          - vertex.cell вказує на живу комірку, що містить вершину;
          - (опційно) локальна умова Делоне через кожну внутрішню грань.
        Повертає словник з діагностикою.
        """
        bad_orientation: list[int] = []
        bad_infinite: list[int] = []
        bad_neighbors: list[tuple[int, int, str]] = []
        bad_vertices: list[int] = []
        bad_delaunay: list[tuple[int, int]] = []

        # 0) зберемо лише живі тетри
        alive = list(self.alive_tets())

        for tid in alive:
            t = self.tets[tid]
            # 1) перевірка орієнтації / нескінченності
            n_inf = t.v.count(INFINITE)
            if n_inf > 1:
                bad_infinite.append(tid)
            elif n_inf == 0:
                a, b, c, d = self.cell_points(tid)
                if orientation(a, b, c, d) != Sign.POSITIVE:
                    bad_orientation.append(tid)

            # 2) симетрія сусідств
            for fi in range(4):
                nb = t.nbr[fi]
                if not (0 <= nb < len(self.tets)) or not self.tets[nb].alive:
                    bad_neighbors.append((tid, fi, "dead_or_invalid_neighbor"))
                    continue
                nb_t = self.tets[nb]
                key = sorted(t.face_vertices(fi))
                found = False
                for fj in range(4):
                    if nb_t.nbr[fj] == tid and sorted(nb_t.face_vertices(fj)) == key:
                        found = True
                        break
                if not found:
                    bad_neighbors.append((tid, fi, f"no_backlink_to_{nb}"))
                    continue

                # 3) локальний Делоне: протилежна вершина сусіда не всередині сфери
                if check_delaunay and n_inf == 0 and not self.is_infinite(nb):
                    opp = nb_t.v[nb_t.nbr.index(tid)]
                    a, b, c, d = self.cell_points(tid)
                    if in_sphere(a, b, c, d, self.vertices[opp].pt) == Sign.POSITIVE:
                        bad_delaunay.append((tid, nb))

        # 4) зворотні посилання вершин
        for vid, vx in enumerate(self.vertices):
            c = vx.cell
            if c < 0:
                continue
            if not (0 <= c < len(self.tets)) or not self.tets[c].alive or vid not in self.tets[c].v:
                bad_vertices.append(vid)

        return {
            "tets_alive": len(alive),
            "bad_orientation": bad_orientation,      # список tid із неправильною орієнтацією
            "bad_infinite": bad_infinite,            # tid з кількома INFINITE
            "bad_neighbors": bad_neighbors,          # [(tid, fi, reason), ...]
            "bad_vertices": bad_vertices,            # vid із битим vertex.cell
            "bad_delaunay": bad_delaunay,            # [(tid, nb), ...]
        }

    @staticmethod
    def is_valid(report: dict) -> bool:
        return not any(v for k, v in report.items() if k.startswith("bad_"))
