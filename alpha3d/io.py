# alpha3d/io.py
"""
Допоміжний ввід/вивід навколо ядра: читання точок, нормалізація в одиничний
куб, OFF-експорт трикутників. Саме ядро файлів не читає.
"""
from __future__ import annotations
import logging
from typing import List, Tuple

import numpy as np

from .errors import InvalidInput

logger = logging.getLogger(__name__)


def parse_points(text: str, strict: bool = True) -> np.ndarray:
    """
    Парсить точки з багаторядкового тексту.
    Кожен рядок: x y z або x, y, z. Порожні рядки і '#' коментарі пропускаються.
    strict=True — InvalidInput з номером рядка; інакше поганий рядок
    пропускається (і рахується в лог).
    """
    points: List[Tuple[float, float, float]] = []
    skipped = 0
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.replace(",", " ").split()
        try:
            if len(parts) != 3:
                raise ValueError(f"expected 3 numbers, got {len(parts)}")
            x, y, z = map(float, parts)
        except ValueError as e:
            if strict:
                raise InvalidInput(f"line {lineno}: {e}: {line!r}") from e
            skipped += 1
            continue
        points.append((x, y, z))
    if skipped:
        logger.warning(f"Skipped {skipped} malformed line(s)")
    return np.array(points, dtype=float).reshape(-1, 3)


def load_csv(path: str, strict: bool = False) -> np.ndarray:
    """Точки з CSV-файлу (рядки x,y,z), як у демо з кроликом."""
    with open(path, "r", encoding="utf-8") as f:
        pts = parse_points(f.read(), strict=strict)
    logger.info(f"Loaded {len(pts)} points from {path}")
    return pts


def normalize_points(points) -> np.ndarray:
    """
    Центр bounding box -> початок координат, ділення на найбільший розмір.
    Результат лежить у кубі [-0.5, 0.5]^3, тож α стає незалежним від масштабу.
    """
    arr = np.asarray(points, dtype=float).reshape(-1, 3)
    if len(arr) == 0:
        return arr.copy()
    lo = arr.min(axis=0)
    hi = arr.max(axis=0)
    scale = float((hi - lo).max())
    if scale == 0.0:
        raise InvalidInput("cannot normalize points with zero extent")
    return (arr - (lo + hi) / 2.0) / scale


def off_text(points, faces) -> str:
    """
    OFF для трикутної поверхні: лише вершини, що використовуються гранями.
    faces — список (i,j,k) з індексами у points.
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    used = np.unique(faces)
    remap = {int(old): new for new, old in enumerate(used)}

    lines = ["OFF", f"{len(used)} {len(faces)} 0"]
    # вершини
    for i in used:
        p = pts[i]
        lines.append(f"{p[0]} {p[1]} {p[2]}")
    # грані
    for a, b, c in faces:
        lines.append(f"3 {remap[int(a)]} {remap[int(b)]} {remap[int(c)]}")
    return "\n".join(lines)


def write_off(path: str, points, faces) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(off_text(points, faces))
