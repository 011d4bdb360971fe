# examples/demo_delaunay.py
from alpha3d.delaunay import Delaunay3D

if __name__ == "__main__":
    # куб + внутрішні точки (кути куба співсферні, перевірка tie-break)
    raw = [
        (0,0,0), (1,0,0), (1,1,0), (0,1,0),
        (0,0,1), (1,0,1), (1,1,1), (0,1,1),
        (0.5,0.5,0.5), (0.2,0.8,0.3), (0.8,0.2,0.7)
    ]

    d3 = Delaunay3D(raw, seed=1)
    d3.build()

    print("tets:", d3.number_of_finite_cells())
    print("facets:", d3.number_of_finite_facets())
    print("edges:", d3.number_of_finite_edges())
    print("hull faces:", len(d3.convex_hull()))
    print("edges <= 0.8:", len(d3.finite_edges(max_length=0.8)))
    print("delaunay:", d3.is_delaunay())
    print("VALIDATION:", d3.validate())

    edges = d3.voronoi_edges()
    rays = sum(1 for e in edges if e.is_ray)
    print("voronoi vertices:", len(d3.voronoi_vertices()))
    print("voronoi edges:", len(edges) - rays, "segments,", rays, "rays")
