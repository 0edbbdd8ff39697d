"""
Incremental 3D Delaunay tetrahedralization (Bowyer-Watson).

This module provides the `Triangulation` class, which starts from a single
super-tetrahedron enclosing every point that will be inserted and adds points
one at a time. Each `Triangulation.add_point` call removes the tetrahedra whose
circumspheres strictly contain the new point, finds the boundary of the cavity
they leave behind and fills it with new tetrahedra connecting the point to each
boundary face. The call returns an `InsertionResult` describing exactly what
changed, so a caller can count, log or draw each step.

`delaunay_triangulation_3d` is a batch front end that inserts every row of an
(N, 3) tensor and reports the result as vertex indices.
"""
import logging
import math
from typing import Iterable, NamedTuple, Sequence

import torch

from .geometry_core import EPSILON, Point, _orientation3d_pytorch, as_point, point_tensor
from .tetrahedron import Face, Tetrahedron

logger = logging.getLogger(__name__)

# Unit vertices of a regular tetrahedron centered at the origin. Its inscribed
# sphere has radius 1/sqrt(3).
_REGULAR_TETRAHEDRON = ((1.0, 1.0, 1.0), (1.0, -1.0, -1.0), (-1.0, 1.0, -1.0), (-1.0, -1.0, 1.0))
_SUPER_TETRA_STRETCH = 3.0


class InsertionResult(NamedTuple):
    """
    What a single `Triangulation.add_point` call changed.

    The collections are tuples holding the very objects removed from or added to
    the mesh; later insertions never modify them.
    """
    point: Point
    removed: tuple[Tetrahedron, ...]
    cavity_boundary: tuple[Face, ...]
    created: tuple[Tetrahedron, ...]


def super_tetrahedron_vertices(scale: float, center: Sequence[float] = (0.0, 0.0, 0.0)) -> tuple[Point, ...]:
    """
    Vertices of a regular tetrahedron whose interior contains the ball of radius
    `scale` around `center`.

    The vertices are `center + 3 * scale * v` for the unit vertices `v` of
    `_REGULAR_TETRAHEDRON`, which puts the faces at distance `sqrt(3) * scale`
    from the center. Every point of the cube of half-width `scale / sqrt(3)`
    around the center is therefore strictly inside.

    Raises:
        ValueError: If `scale` is not a positive finite number.
    """
    if not (isinstance(scale, (int, float)) and math.isfinite(scale) and scale > 0):
        raise ValueError(f"Super-tetrahedron scale must be positive and finite, got {scale}.")
    cx, cy, cz = as_point(center)
    s = _SUPER_TETRA_STRETCH * float(scale)
    return tuple((cx + s * vx, cy + s * vy, cz + s * vz) for vx, vy, vz in _REGULAR_TETRAHEDRON)


class Triangulation:
    """
    A Delaunay tetrahedralization built one point at a time.

    The four super-tetrahedron vertices stay in the mesh for its whole lifetime
    so more points can be inserted later; `triangulation()` filters out every
    tetrahedron touching them.

    Args:
        super_tetra_scale (float): Radius of the ball around `center` that the
            super-tetrahedron is guaranteed to enclose. Points to be inserted must
            lie within it.
        center (Sequence[float], optional): Center of that ball. Defaults to the origin.

    Raises:
        ValueError: If `super_tetra_scale` is not positive and finite, or `center`
                    is not a finite 3D point.
    """

    def __init__(self, super_tetra_scale: float, center: Sequence[float] = (0.0, 0.0, 0.0)):
        self.super_points = super_tetrahedron_vertices(super_tetra_scale, center)
        self.scale = float(super_tetra_scale)
        self.center = as_point(center)
        self._tetrahedra: list[Tetrahedron] = [Tetrahedron(*self.super_points)]
        self._points: list[Point] = []

    def __len__(self) -> int:
        return len(self._tetrahedra)

    @property
    def tetrahedra(self) -> tuple[Tetrahedron, ...]:
        """All live tetrahedra, super-tetrahedron cells included."""
        return tuple(self._tetrahedra)

    @property
    def points(self) -> tuple[Point, ...]:
        """Points inserted so far, in insertion order."""
        return tuple(self._points)

    def add_point(self, point: torch.Tensor | Sequence[float]) -> InsertionResult:
        """
        Inserts one point (one Bowyer-Watson step).

        1. Tetrahedra whose circumsphere strictly contains the point are "bad"
           and are removed.
        2. Faces of the bad tetrahedra that occur once form the cavity boundary;
           faces occurring twice are interior to the cavity and are dropped.
        3. Each boundary face is joined to the point to form a new tetrahedron.

        If no tetrahedron is bad the mesh is left unchanged and the result holds
        empty tuples.

        Args:
            point (torch.Tensor | Sequence[float]): The 3D point to insert.

        Returns:
            InsertionResult: The removed tetrahedra, cavity boundary faces and
                             created tetrahedra.

        Raises:
            ValueError: If the point is not a finite 3D point.
        """
        p = as_point(point)
        p_coords = point_tensor(p)

        if math.dist(p, self.center) > self.scale:
            logger.warning("Point %s lies outside the enclosing radius %g; the mesh may lose coverage.",
                           p, self.scale)
        if p in self._points:
            logger.warning("Point %s was already inserted; expect degenerate tetrahedra.", p)

        bad_tetrahedra = []
        good_tetrahedra = []
        for tetra in self._tetrahedra:
            if tetra.circumsphere_contains(p_coords):
                bad_tetrahedra.append(tetra)
            else:
                good_tetrahedra.append(tetra)

        # Symmetric difference of all faces of the bad tetrahedra, keyed by
        # sorted vertex triple. Insertion order is kept for reproducible output.
        boundary: dict[tuple[Point, Point, Point], Face] = {}
        for tetra in bad_tetrahedra:
            for face in tetra.faces():
                key = face.key
                if key in boundary:
                    del boundary[key]
                else:
                    boundary[key] = face
        cavity_faces = tuple(boundary.values())

        created = tuple(Tetrahedron(p, face.a, face.b, face.c) for face in cavity_faces)

        self._tetrahedra = good_tetrahedra + list(created)
        self._points.append(p)

        if not bad_tetrahedra:
            logger.warning("Point %s is not inside any circumsphere; cavity is empty.", p)
        degenerate_count = sum(1 for tetra in created if tetra.is_degenerate)
        if degenerate_count:
            logger.debug("%d of %d new tetrahedra around %s are degenerate.",
                         degenerate_count, len(created), p)
        logger.debug("Inserted %s: removed %d, cavity faces %d, created %d, live %d.",
                     p, len(bad_tetrahedra), len(cavity_faces), len(created), len(self._tetrahedra))

        return InsertionResult(p, tuple(bad_tetrahedra), cavity_faces, created)

    def add_points(self, points: Iterable[torch.Tensor | Sequence[float]]) -> list[InsertionResult]:
        """Inserts points in order, returning one `InsertionResult` per point."""
        return [self.add_point(point) for point in points]

    def touches_super_tetrahedron(self, tetra: Tetrahedron) -> bool:
        return tetra.shares_vertex_with(self.super_points)

    def triangulation(self) -> list[Tetrahedron]:
        """Live tetrahedra that do not use any super-tetrahedron vertex."""
        return [tetra for tetra in self._tetrahedra if not self.touches_super_tetrahedron(tetra)]


def delaunay_triangulation_3d(points: torch.Tensor, tol: float = EPSILON) -> torch.Tensor:
    """
    Computes the 3D Delaunay tetrahedralization of a set of points.

    A `Triangulation` is sized from the extent of the input (centered on the
    bounding box midpoint, with an enclosing radius of twice the largest distance
    to that midpoint), every row of `points` is inserted in order, and the final
    tetrahedra are mapped back to row indices. Tetrahedra are reported with
    positive orientation; flat ones (orientation 0 within `tol`) are dropped.

    Args:
        points (torch.Tensor): Tensor of shape (N, 3) representing N points in 3D.
        tol (float, optional): Tolerance for the orientation test. Defaults to `EPSILON`.

    Returns:
        torch.Tensor: Long tensor of shape (M, 4). Each row holds the indices of the
                      four points forming a tetrahedron. Empty `(0, 4)` if N < 4.

    Raises:
        ValueError: If input `points` are not an (N, 3) tensor.
    """
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError("Input points must be 3-dimensional.")
    n_input_points = points.shape[0]
    if n_input_points < 4:
        return torch.empty((0, 4), dtype=torch.long, device=points.device)

    coords = points.to(torch.float64)
    min_coords, _ = torch.min(coords, dim=0)
    max_coords, _ = torch.max(coords, dim=0)
    center = (min_coords + max_coords) / 2.0
    radius = torch.max(torch.linalg.norm(coords - center, dim=1)).item()
    # Handle cases where all points are nearly coincident
    scale = max(2.0 * radius, 1.0)

    mesh = Triangulation(scale, center.tolist())
    index_of: dict[Point, int] = {}
    for i in range(n_input_points):
        p = as_point(coords[i])
        index_of.setdefault(p, i)
        mesh.add_point(p)

    final_tetra_indices = []
    for tetra in mesh.triangulation():
        tet_indices = [index_of[p] for p in tetra.points]
        v = [coords[i] for i in tet_indices]
        orientation = _orientation3d_pytorch(v[0], v[1], v[2], v[3], tol)
        if orientation == 0:
            continue
        if orientation < 0:
            tet_indices[1], tet_indices[2] = tet_indices[2], tet_indices[1]
        final_tetra_indices.append(tet_indices)

    if not final_tetra_indices:
        return torch.empty((0, 4), dtype=torch.long, device=points.device)
    return torch.tensor(final_tetra_indices, dtype=torch.long, device=points.device)
