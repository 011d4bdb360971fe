# alpha3d/shape.py
"""
Альфа-форма як чистий фільтр над таблицями AlphaComplex.

REGULARIZED — межа твердого тіла: REGULAR грані (рівно одна сторона
внутрішня) та їхні ребра й вершини.
GENERAL — REGULAR + SINGULAR симплекси кожної розмірності, як у демо з
кроликом (висячі трикутники, ребра й точки теж видно).
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Dict, Optional, Union

import numpy as np

from .delaunay import Delaunay3D
from .errors import InvalidInput
from .intervals import AlphaComplex, Classification
from .io import off_text, write_off

_REG = int(Classification.REGULAR)
_SING = int(Classification.SINGULAR)


class Mode(str, Enum):
    REGULARIZED = "regularized"
    GENERAL = "general"


@dataclass
class AlphaBoundary:
    """
    Результат одного запиту.
    faces     — (F, 3) індекси точок;
    triangles — (F, 3, 3) координати тих самих граней;
    edges     — (E, 2); vertices — (V,);
    error     — None або опис, чому запит відхилено (тоді все порожнє).
    """
    alpha: float
    mode: Mode
    faces: np.ndarray = field(default_factory=lambda: np.empty((0, 3), dtype=np.int64))
    triangles: np.ndarray = field(default_factory=lambda: np.empty((0, 3, 3)))
    edges: np.ndarray = field(default_factory=lambda: np.empty((0, 2), dtype=np.int64))
    vertices: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.int64))
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def counts(self) -> Dict[str, int]:
        return {
            "facets": len(self.faces),
            "edges": len(self.edges),
            "vertices": len(self.vertices),
        }


class AlphaShape3D:
    """
    Екстрактор альфа-форми.

    source — точки (N, 3), готова Delaunay3D або AlphaComplex. Для точок
    тріангуляція будується тут же; build_kwargs ідуть у Delaunay3D
    (seed, dedup, scale, max_walk_steps).
    Після конструктора стан лише для читання: будь-яка кількість запитів
    з різними α нічого не змінює.
    """
    def __init__(self, source, mode: Union[Mode, str] = Mode.REGULARIZED, **build_kwargs):
        self.logger = logging.getLogger(__name__)
        if isinstance(source, AlphaComplex):
            complex_ = source
        else:
            tri = source if isinstance(source, Delaunay3D) else Delaunay3D(source, **build_kwargs)
            if not tri.is_built:
                tri.build()
            complex_ = AlphaComplex(tri)
        self.complex = complex_
        self.points = complex_.points
        self.mode = Mode(mode)

    # ---------- перевірка аргументів ----------
    @staticmethod
    def _check_alpha(alpha) -> float:
        if isinstance(alpha, bool) or not isinstance(alpha, (Real, np.floating, np.integer)):
            raise InvalidInput(f"alpha must be a real number, got {type(alpha).__name__}")
        a = float(alpha)
        if math.isnan(a):
            raise InvalidInput("alpha must not be NaN")
        if a < 0:
            raise InvalidInput(f"alpha must be non-negative, got {a}")
        return a

    def _mode(self, mode) -> Mode:
        return self.mode if mode is None else Mode(mode)

    # ---------- класифікація ----------
    def classify_vertices(self, alpha) -> np.ndarray:
        return self.complex.vertices.classify(self._check_alpha(alpha))

    def classify_edges(self, alpha) -> np.ndarray:
        return self.complex.edges.classify(self._check_alpha(alpha))

    def classify_facets(self, alpha) -> np.ndarray:
        return self.complex.facets.classify(self._check_alpha(alpha))

    def classify_cells(self, alpha) -> np.ndarray:
        return self.complex.cells.classify(self._check_alpha(alpha))

    def counts(self, alpha) -> Dict[str, Dict[str, int]]:
        """Кількість симплексів кожного класу для кожної розмірності."""
        a = self._check_alpha(alpha)
        cx = self.complex
        return {
            "vertices": cx.vertices.count(a),
            "edges": cx.edges.count(a),
            "facets": cx.facets.count(a),
            "cells": cx.cells.count(a),
        }

    # ---------- межа ----------
    def _facet_mask(self, alpha: float, mode: Mode) -> np.ndarray:
        codes = self.complex.facets.classify(alpha)
        if mode is Mode.GENERAL:
            return (codes == _REG) | (codes == _SING)
        return codes == _REG

    def facets(self, alpha, mode=None) -> np.ndarray:
        """
        (F, 3) індекси точок граней межі у порядку таблиці.
        REGULAR грані орієнтовані назовні від внутрішньої комірки.
        """
        a = self._check_alpha(alpha)
        mode = self._mode(mode)
        table = self.complex.facets
        mask = self._facet_mask(a, mode)
        out = table.simplices[mask].copy()
        # таблиця орієнтована назовні від комірки 0; якщо внутрішня комірка 1, розвертаємо
        regular = table.classify(a)[mask] == _REG
        flip = regular & (table.side_alpha[mask, 0] > a)
        out[flip] = out[flip][:, [0, 2, 1]]
        return out

    def edges(self, alpha, mode=None) -> np.ndarray:
        """(E, 2) ребра межі (відсортовані пари індексів точок)."""
        a = self._check_alpha(alpha)
        mode = self._mode(mode)
        table = self.complex.edges
        if mode is Mode.GENERAL:
            codes = table.classify(a)
            rows = np.flatnonzero((codes == _REG) | (codes == _SING))
        else:
            rows = np.unique(self.complex.facet_edges[self._facet_mask(a, mode)])
        return table.simplices[rows].copy()

    def vertices(self, alpha, mode=None) -> np.ndarray:
        """(V,) індекси точок на межі."""
        a = self._check_alpha(alpha)
        mode = self._mode(mode)
        if mode is Mode.GENERAL:
            table = self.complex.vertices
            codes = table.classify(a)
            return table.simplices[(codes == _REG) | (codes == _SING), 0].copy()
        return np.unique(self.complex.facets.simplices[self._facet_mask(a, mode)])

    def triangles(self, alpha, mode=None) -> np.ndarray:
        """(F, 3, 3) координати трикутників межі."""
        return self.points[self.facets(alpha, mode)]

    def lines(self, alpha, mode=None) -> np.ndarray:
        """
        (3F, 2, 3) відрізки для каркасного рендера: по три сторони кожного
        трикутника межі (спільні сторони повторюються).
        """
        tri = self.triangles(alpha, mode)
        seg = np.stack([tri, tri[:, [1, 2, 0]]], axis=2)  # (F, 3, 2, 3)
        return seg.reshape(-1, 2, 3)

    def query(self, alpha, mode=None) -> AlphaBoundary:
        """
        Повний запит для UI: ніколи не кидає через поганий α; замість цього
        порожній результат з error.
        """
        try:
            mode = self._mode(mode)
            a = self._check_alpha(alpha)
        except ValueError as e:
            self.logger.warning(f"Rejected alpha query {alpha!r}: {e}")
            return AlphaBoundary(alpha=float("nan"), mode=self.mode, error=str(e))

        faces = self.facets(a, mode)
        result = AlphaBoundary(
            alpha=a,
            mode=mode,
            faces=faces,
            triangles=self.points[faces],
            edges=self.edges(a, mode),
            vertices=self.vertices(a, mode),
        )
        self.logger.debug(f"alpha={a:g} ({mode.value}): {result.counts}")
        return result

    # ---------- допоміжне ----------
    def critical_alphas(self) -> np.ndarray:
        return self.complex.critical_alphas()

    def find_alpha_solid(self) -> float:
        return self.complex.find_alpha_solid()

    def to_off(self, alpha, mode=None) -> str:
        return off_text(self.points, self.facets(alpha, mode))

    def write_off(self, path: str, alpha, mode=None) -> None:
        write_off(path, self.points, self.facets(alpha, mode))
