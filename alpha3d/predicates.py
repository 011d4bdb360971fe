# alpha3d/predicates.py
"""
Геометричні предикати з адаптивною точністю.

Швидкий шлях — float64 зі статичною оцінкою похибки (у стилі Shewchuk).
Якщо |значення| не перевищує оцінку, той самий детермінант перераховується
точно у `fractions.Fraction` (кожен float — точний раціональний). Отже знак
для однакових входів завжди той самий і ніколи не «стрибає» посеред алгоритму.

Правила tie-break (ZERO), на які покладаються виклики:
  * точка рівно на описаній сфері НЕ конфліктує з коміркою;
  * точка рівно на площині грані не перетинає цю грань під час walk;
  * точка у площині грані оболонки конфліктує з привид-коміркою лише
    якщо вона строго всередині описаного кола грані.
"""
from __future__ import annotations
from enum import IntEnum
from fractions import Fraction
from typing import List

from .geom import Pt, sub, cross

_U = 2.0 ** -53  # одиниця округлення float64
O3D_ERR = (7.0 + 56.0 * _U) * _U
ISP_ERR = (16.0 + 224.0 * _U) * _U


class Sign(IntEnum):
    NEGATIVE = -1
    ZERO = 0  # «ON»: на площині / на сфері
    POSITIVE = 1


def _sign(v) -> Sign:
    if v > 0:
        return Sign.POSITIVE
    if v < 0:
        return Sign.NEGATIVE
    return Sign.ZERO


# ---------- інструмент для детермінанта ----------
def _det(m: List[List]) -> object:
    """
    Детермінант через Гауса з частковим вибором опорного елемента.
    Працює для будь-якого поля: для Fraction результат точний.
    """
    n = len(m)
    a = [row[:] for row in m]
    det = 1
    for i in range(n):
        # півод
        piv = i
        maxv = abs(a[i][i])
        for r in range(i+1, n):
            v = abs(a[r][i])
            if v > maxv:
                maxv = v; piv = r
        if maxv == 0:
            return 0
        if piv != i:
            a[i], a[piv] = a[piv], a[i]
            det = -det
        det *= a[i][i]
        inv = 1 / a[i][i]
        # елімінація
        for r in range(i+1, n):
            factor = a[r][i] * inv
            if factor != 0:
                for c in range(i, n):
                    a[r][c] -= factor * a[i][c]
    return det

def _frac(p: Pt) -> List[Fraction]:
    return [Fraction(p.x), Fraction(p.y), Fraction(p.z)]

# ---------- орієнтація ----------
def orientation(a: Pt, b: Pt, c: Pt, d: Pt) -> Sign:
    """
    Знак ((b-a) × (c-a)) · (d-a):
      POSITIVE — d з боку нормалі площини (a,b,c),
      NEGATIVE — з протилежного боку,
      ZERO     — чотири точки копланарні (точно).
    """
    bx = b.x - a.x; by = b.y - a.y; bz = b.z - a.z
    cx = c.x - a.x; cy = c.y - a.y; cz = c.z - a.z
    dx = d.x - a.x; dy = d.y - a.y; dz = d.z - a.z

    m1 = cy*dz; m2 = cz*dy
    m3 = cz*dx; m4 = cx*dz
    m5 = cx*dy; m6 = cy*dx
    det = bx*(m1 - m2) + by*(m3 - m4) + bz*(m5 - m6)
    permanent = (abs(bx)*(abs(m1) + abs(m2))
                 + abs(by)*(abs(m3) + abs(m4))
                 + abs(bz)*(abs(m5) + abs(m6)))
    if abs(det) > O3D_ERR * permanent:
        return _sign(det)
    return _orientation_exact(a, b, c, d)

def _orientation_exact(a: Pt, b: Pt, c: Pt, d: Pt) -> Sign:
    fa = _frac(a)
    rows = [[q - o for q, o in zip(_frac(p), fa)] for p in (b, c, d)]
    return _sign(_det(rows))

def collinear(a: Pt, b: Pt, c: Pt) -> bool:
    """Точна перевірка колінеарності: (b-a) × (c-a) == 0."""
    n = cross(sub(b, a), sub(c, a))
    # грубий фільтр: якщо хоч одна компонента явно ненульова, точки не колінеарні
    scale = max(abs(b.x - a.x), abs(b.y - a.y), abs(b.z - a.z),
                abs(c.x - a.x), abs(c.y - a.y), abs(c.z - a.z))
    bound = 8.0 * _U * scale * scale
    if abs(n.x) > bound or abs(n.y) > bound or abs(n.z) > bound:
        return False
    fa, fb, fc = _frac(a), _frac(b), _frac(c)
    u = [q - o for q, o in zip(fb, fa)]
    v = [q - o for q, o in zip(fc, fa)]
    return (u[1]*v[2] - u[2]*v[1] == 0
            and u[2]*v[0] - u[0]*v[2] == 0
            and u[0]*v[1] - u[1]*v[0] == 0)

# ---------- in-sphere ----------
def _insphere_float(a: Pt, b: Pt, c: Pt, d: Pt, e: Pt):
    """Ліфтований 4x4 детермінант відносно e та його «перманент»."""
    aex = a.x - e.x; aey = a.y - e.y; aez = a.z - e.z
    bex = b.x - e.x; bey = b.y - e.y; bez = b.z - e.z
    cex = c.x - e.x; cey = c.y - e.y; cez = c.z - e.z
    dex = d.x - e.x; dey = d.y - e.y; dez = d.z - e.z

    ab = aex*bey - bex*aey
    bc = bex*cey - cex*bey
    cd = cex*dey - dex*cey
    da = dex*aey - aex*dey
    ac = aex*cey - cex*aey
    bd = bex*dey - dex*bey

    abc = aez*bc - bez*ac + cez*ab
    bcd = bez*cd - cez*bd + dez*bc
    cda = cez*da + dez*ac + aez*cd
    dab = dez*ab + aez*bd + bez*da

    alift = aex*aex + aey*aey + aez*aez
    blift = bex*bex + bey*bey + bez*bez
    clift = cex*cex + cey*cey + cez*cez
    dlift = dex*dex + dey*dey + dez*dez

    det = (dlift*abc - clift*dab) + (blift*cda - alift*bcd)

    abP = abs(aex*bey) + abs(bex*aey)
    bcP = abs(bex*cey) + abs(cex*bey)
    cdP = abs(cex*dey) + abs(dex*cey)
    daP = abs(dex*aey) + abs(aex*dey)
    acP = abs(aex*cey) + abs(cex*aey)
    bdP = abs(bex*dey) + abs(dex*bey)
    permanent = (dlift*(abs(aez)*bcP + abs(bez)*acP + abs(cez)*abP)
                 + clift*(abs(dez)*abP + abs(aez)*bdP + abs(bez)*daP)
                 + blift*(abs(cez)*daP + abs(dez)*acP + abs(aez)*cdP)
                 + alift*(abs(bez)*cdP + abs(cez)*bdP + abs(dez)*bcP))
    return det, permanent

def _insphere_exact(a: Pt, b: Pt, c: Pt, d: Pt, e: Pt):
    fe = _frac(e)
    rows = []
    for p in (a, b, c, d):
        r = [q - o for q, o in zip(_frac(p), fe)]
        r.append(r[0]*r[0] + r[1]*r[1] + r[2]*r[2])
        rows.append(r)
    return _det(rows)

def in_sphere(a: Pt, b: Pt, c: Pt, d: Pt, e: Pt) -> Sign:
    """
    Тест порожньої сфери: POSITIVE — e строго всередині описаної сфери
    (a,b,c,d), NEGATIVE — строго зовні, ZERO — на сфері або (a,b,c,d) плоский.
    Ліфтований детермінант відносно e від'ємний для внутрішніх точок при
    додатній орієнтації, звідси зміна знака.
    """
    ori = orientation(a, b, c, d)
    if ori == Sign.ZERO:
        return Sign.ZERO
    det, permanent = _insphere_float(a, b, c, d, e)
    if abs(det) > ISP_ERR * permanent:
        s = _sign(det)
    else:
        s = _sign(_insphere_exact(a, b, c, d, e))
    return Sign(-s * ori)
