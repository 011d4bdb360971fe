from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np

DEDUP_SCALE = 1e9  # кроків квантування на розмір bounding box: ≈1e-9 відносно

@dataclass(frozen=True)
class Pt:
    x: float
    y: float
    z: float
    def __iter__(self):
        yield self.x; yield self.y; yield self.z

def sub(a: Pt, b: Pt) -> Pt:
    return Pt(a.x - b.x, a.y - b.y, a.z - b.z)

def cross(a: Pt, b: Pt) -> Pt:
    return Pt(a.y*b.z - a.z*b.y,
              a.z*b.x - a.x*b.z,
              a.x*b.y - a.y*b.x)

def unique_points(
    points: Iterable[Tuple[float, float, float]], scale: float = DEDUP_SCALE
) -> Tuple[List[Pt], List[int], List[Tuple[int, int]]]:
    """
    Детермінована дедуплікація з квантуванням (стабільніше для float).
    Крок сітки — (найбільший розмір bounding box) / scale, тож результат
    не залежить від абсолютного масштабу координат. Перше входження у
    вхідному порядку виграє.

    Повертає:
      pts        — унікальні точки;
      sources    — sources[k] = індекс точки pts[k] у вхідному масиві;
      duplicates — пари (індекс дубліката, індекс точки, яку він повторює).
    """
    raw = [(float(x), float(y), float(z)) for x, y, z in points]
    if not raw:
        return [], [], []
    lo = [min(p[i] for p in raw) for i in range(3)]
    extent = max(max(p[i] for p in raw) - lo[i] for i in range(3))
    step = (extent if extent > 0.0 else 1.0) / scale

    seen: dict[Tuple[int, int, int], int] = {}
    pts: List[Pt] = []
    sources: List[int] = []
    duplicates: List[Tuple[int, int]] = []
    for i, (x, y, z) in enumerate(raw):
        key = (int(round((x - lo[0]) / step)),
               int(round((y - lo[1]) / step)),
               int(round((z - lo[2]) / step)))
        first = seen.get(key)
        if first is None:
            seen[key] = i
            pts.append(Pt(x, y, z))
            sources.append(i)
        else:
            duplicates.append((i, first))
    return pts, sources, duplicates


# ---------- конструкції (неточні, float64, векторизовано) ----------
def tet_circumcenters(a: np.ndarray, b: np.ndarray, c: np.ndarray, d: np.ndarray) -> np.ndarray:
    """
    Центри описаних сфер тетраедрів (масиви (M,3) для кожної вершини).
    Центр відносно a: (|u|²(v×w) + |v|²(w×u) + |w|²(u×v)) / (2 u·(v×w)).
    Плоский тетраедр дає inf/nan у рядку.
    """
    u, v, w = b - a, c - a, d - a
    vw = np.cross(v, w)
    den = 2.0 * np.einsum("ij,ij->i", u, vw)
    num = (np.einsum("ij,ij->i", u, u)[:, None] * vw
           + np.einsum("ij,ij->i", v, v)[:, None] * np.cross(w, u)
           + np.einsum("ij,ij->i", w, w)[:, None] * np.cross(u, v))
    with np.errstate(divide="ignore", invalid="ignore"):
        return a + num / den[:, None]

def tet_circumradii(a: np.ndarray, b: np.ndarray, c: np.ndarray, d: np.ndarray) -> np.ndarray:
    """Радіуси описаних сфер тетраедрів; плоский тетраедр дає inf."""
    with np.errstate(invalid="ignore"):
        off = tet_circumcenters(a, b, c, d) - a
        r = np.sqrt(np.einsum("ij,ij->i", off, off))
    r[~np.isfinite(r)] = np.inf
    return r

def tri_circumspheres(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Найменші сфери через трійки точок (центр лежить у площині трикутника).
    Повертає (centers (M,3), radii (M,)). Вироджений трикутник дає inf.
    """
    u, v = b - a, c - a
    w = np.cross(u, v)
    den = 2.0 * np.einsum("ij,ij->i", w, w)
    num = (np.einsum("ij,ij->i", u, u)[:, None] * np.cross(v, w)
           + np.einsum("ij,ij->i", v, v)[:, None] * np.cross(w, u))
    with np.errstate(divide="ignore", invalid="ignore"):
        off = num / den[:, None]
        r = np.sqrt(np.einsum("ij,ij->i", off, off))
    bad = ~np.isfinite(r)
    r[bad] = np.inf
    off[bad] = 0.0
    return a + off, r
