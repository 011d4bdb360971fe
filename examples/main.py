# examples/main.py
"""
Точки з CSV -> нормалізація -> альфа-форма -> OFF.

    python examples/main.py bunny.csv --alpha 0.05 --out bunny.off
"""
from __future__ import annotations

import argparse
import logging
import sys

import numpy as np

from alpha3d.config import ConfigManager
from alpha3d.errors import Alpha3DError
from alpha3d.io import load_csv, normalize_points
from alpha3d.pipeline import alpha_shape


def main() -> int:
    parser = argparse.ArgumentParser(description="3D alpha shape of a point cloud")
    parser.add_argument("input", nargs="?", help="CSV with x,y,z per line (random points if omitted)")
    parser.add_argument("--config", type=str, help="Path to configuration file")
    parser.add_argument("--alpha", type=float, help="Alpha (radius); default from configuration")
    parser.add_argument("--mode", choices=("regularized", "general"), help="Boundary mode")
    parser.add_argument("--backend", choices=("internal", "scipy"), help="Triangulation backend")
    parser.add_argument("--seed", type=int, help="Insertion order seed")
    parser.add_argument("--out", type=str, default="alpha.off", help="Output OFF file")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = ConfigManager(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading configuration: {e}")
        return 1

    # --- 1) Вхідні дані ---
    if args.input:
        try:
            points = load_csv(args.input)
        except OSError as e:
            print(f"Cannot read {args.input}: {e}")
            return 1
    else:
        rng = np.random.default_rng(args.seed)
        points = rng.random((int(config.get("viewer.random_points", 200)), 3))

    # --- 2) Тріангуляція + інтервали ---
    try:
        points = normalize_points(points)
        shape = alpha_shape(points, config=config, backend=args.backend, mode=args.mode, seed=args.seed)
    except Alpha3DError as e:
        print(f"Triangulation failed: {e}")
        return 1

    # --- 3) Запит і експорт ---
    alpha = args.alpha if args.alpha is not None else float(config.get("alpha.default", 0.05))
    result = shape.query(alpha)
    if not result.ok:
        print(f"Bad alpha: {result.error}")
        return 1

    print(f"Точок:      {len(shape.points)}")
    print(f"alpha:      {alpha}")
    print(f"Граней:     {result.counts['facets']}")
    print(f"Ребер:      {result.counts['edges']}")
    print(f"Вершин:     {result.counts['vertices']}")
    print(f"alpha_solid: {shape.find_alpha_solid():.6g}")

    shape.write_off(args.out, alpha)
    print(f"{args.out} записано.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
