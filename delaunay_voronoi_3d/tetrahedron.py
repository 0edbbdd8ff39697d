"""
Tetrahedral cells of the incremental Delaunay mesh.

A `Tetrahedron` stores its four vertices as value-comparable tuples and caches
its circumsphere (computed once by `circumcenter_calculations.py`). A `Face` is
one of its triangular facets; faces are matched between tetrahedra through
`Face.key`, the lexicographically sorted vertex triple, so two faces built from
the same three points in any order share a key.
"""
import math
from typing import Iterable, NamedTuple, Sequence

import torch

from .circumcenter_calculations import compute_tetrahedron_circumsphere_3d
from .geometry_core import Point, as_point

# Vertex triples of the four facets, in the order `faces()` reports them.
FACE_VERTEX_INDICES = ((0, 1, 2), (0, 1, 3), (0, 2, 3), (1, 2, 3))
EDGE_VERTEX_INDICES = ((0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3))


class Face(NamedTuple):
    """Triangular facet given by three vertices."""
    a: Point
    b: Point
    c: Point

    @property
    def key(self) -> tuple[Point, Point, Point]:
        """Order-independent identity of the face."""
        return tuple(sorted((self.a, self.b, self.c)))

    def edges(self) -> tuple[tuple[Point, Point], ...]:
        return ((self.a, self.b), (self.b, self.c), (self.c, self.a))


class Tetrahedron:
    """
    A single mesh cell with a cached circumsphere.

    The vertex set never changes after construction. If the four points are
    coplanar within `DEGENERACY_TOLERANCE` the tetrahedron is degenerate: its
    `circumcenter` is None, `radius_sq` is infinite and `circumsphere_contains`
    is always False, so it is never removed by a later insertion.

    Attributes:
        points (tuple[Point, Point, Point, Point]): The vertices, in construction order.
        circumcenter (torch.Tensor | None): Float64 tensor of shape (3,), or None.
        radius_sq (float): Squared circumradius, `math.inf` when degenerate.
    """

    __slots__ = ("points", "circumcenter", "radius_sq")

    def __init__(self, p1: Point | Sequence[float], p2: Point | Sequence[float],
                 p3: Point | Sequence[float], p4: Point | Sequence[float]):
        self.points = (as_point(p1), as_point(p2), as_point(p3), as_point(p4))
        coords = torch.tensor(self.points, dtype=torch.float64)
        self.circumcenter, self.radius_sq = compute_tetrahedron_circumsphere_3d(
            coords[0], coords[1], coords[2], coords[3]
        )

    def __repr__(self) -> str:
        return f"Tetrahedron({', '.join(str(p) for p in self.points)})"

    @property
    def is_degenerate(self) -> bool:
        return self.circumcenter is None

    def circumsphere_contains(self, point: torch.Tensor | Sequence[float]) -> bool:
        """
        True iff `point` lies strictly inside the circumsphere.

        Points exactly on the sphere are outside. Degenerate tetrahedra never
        contain anything.
        """
        if self.circumcenter is None:
            return False
        if not isinstance(point, torch.Tensor):
            point = torch.tensor(as_point(point), dtype=torch.float64)
        dist_sq = torch.sum((point.to(torch.float64) - self.circumcenter) ** 2).item()
        return dist_sq < self.radius_sq

    def contains_vertex(self, point: torch.Tensor | Sequence[float]) -> bool:
        return as_point(point) in self.points

    def shares_vertex_with(self, points: Iterable[Point]) -> bool:
        """True if any of `points` is one of this tetrahedron's vertices."""
        return any(p in self.points for p in points)

    def faces(self) -> list[Face]:
        """The four facets: vertex triples (0,1,2), (0,1,3), (0,2,3), (1,2,3)."""
        p = self.points
        return [Face(p[i], p[j], p[k]) for i, j, k in FACE_VERTEX_INDICES]

    def edges(self) -> list[tuple[Point, Point]]:
        p = self.points
        return [(p[i], p[j]) for i, j in EDGE_VERTEX_INDICES]

    def is_adjacent(self, other: "Tetrahedron") -> bool:
        """True iff the two tetrahedra share exactly three vertices, i.e. one full face."""
        common = sum(1 for p in self.points if p in other.points)
        return common == 3

    def volume(self) -> float:
        """Unsigned volume, |det(p1-p0, p2-p0, p3-p0)| / 6."""
        coords = torch.tensor(self.points, dtype=torch.float64)
        edge_vectors = coords[1:] - coords[0]
        return abs(torch.det(edge_vectors).item()) / 6.0

    def circumradius(self) -> float:
        return math.sqrt(self.radius_sq)
