# examples/demo_alpha.py
import numpy as np

from alpha3d.shape import AlphaShape3D

if __name__ == "__main__":
    # дві кулі точок: дві окремі форми при малому α, одна оболонка при великому
    rng = np.random.default_rng(7)
    a = rng.normal(size=(150, 3))
    a /= np.linalg.norm(a, axis=1, keepdims=True)
    b = a * 0.8 + (3.0, 0.0, 0.0)
    pts = np.vstack([a, b])

    shape = AlphaShape3D(pts, seed=7)
    print("alpha_solid:", shape.find_alpha_solid())
    for alpha in (0.2, 0.5, 1.0, 2.0, np.inf):
        res = shape.query(alpha)
        print(f"alpha={alpha:<5} {res.counts}")

    shape.write_off("alpha.off", 1.0)
    print("Wrote alpha.off — можна глянути в MeshLab/ParaView.")
