# alpha3d/errors.py
"""
Таксономія помилок alpha3d.

Помилки вхідних даних успадковують ValueError, тож старий код, що ловив
ValueError, працює далі.
"""
from __future__ import annotations
from typing import List, Tuple


class Alpha3DError(Exception):
    """Базовий клас усіх помилок бібліотеки."""


class InvalidInput(Alpha3DError, ValueError):
    """Менше 4 точок, NaN/Inf координати, неправильна форма масиву, погане α."""


class DegenerateInput(Alpha3DError, ValueError):
    """Усі точки колінеарні або копланарні: жодного скінченного тетраедра."""


class CoincidentPoints(Alpha3DError, ValueError):
    """Збіжні точки при політиці дедуплікації 'raise'."""

    def __init__(self, duplicates: List[Tuple[int, int]]):
        self.duplicates = duplicates
        pairs = ", ".join(f"{i}=={j}" for i, j in duplicates[:5])
        more = "" if len(duplicates) <= 5 else f" (+{len(duplicates) - 5} more)"
        super().__init__(f"{len(duplicates)} coincident point(s): {pairs}{more}")


class PredicateDegenerate(Alpha3DError, ValueError):
    """Предикат потрапив на межу там, де правило tie-break не дає рішення."""


class BuildCancelled(Alpha3DError, RuntimeError):
    """Побудову тріангуляції скасовано між вставками точок."""
