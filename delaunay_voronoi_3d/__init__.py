"""
Incremental 3D Delaunay tetrahedralization (Bowyer-Watson) and its clipped Voronoi dual.
"""

__version__ = "0.1.0"

from .geometry_core import (
    EPSILON, DEGENERACY_TOLERANCE, DEFAULT_BOX_SIZE, DEFAULT_JITTER,
    DEFAULT_SUPER_TETRA_SCALE_FACTOR, as_point, default_bounding_box,
    point_in_box, ray_box_intersection,
)
from .circumcenter_calculations import compute_tetrahedron_circumsphere_3d, compute_tetrahedron_circumcenter_3d
from .tetrahedron import Face, Tetrahedron
from .delaunay_3d import InsertionResult, Triangulation, delaunay_triangulation_3d, super_tetrahedron_vertices
from .voronoi_from_delaunay import find_adjacent_pairs, voronoi_edges_3d
from .point_generation import generate_jittered_points
from .wireframe import face_edges, tetrahedron_edges
from .insertion_steps import InsertionStepper, StepReport

__all__ = [
    "EPSILON", "DEGENERACY_TOLERANCE", "DEFAULT_BOX_SIZE", "DEFAULT_JITTER",
    "DEFAULT_SUPER_TETRA_SCALE_FACTOR", "as_point", "default_bounding_box",
    "point_in_box", "ray_box_intersection",
    "compute_tetrahedron_circumsphere_3d", "compute_tetrahedron_circumcenter_3d",
    "Face", "Tetrahedron",
    "InsertionResult", "Triangulation", "delaunay_triangulation_3d", "super_tetrahedron_vertices",
    "find_adjacent_pairs", "voronoi_edges_3d",
    "generate_jittered_points",
    "face_edges", "tetrahedron_edges",
    "InsertionStepper", "StepReport",
    "__version__",
]
