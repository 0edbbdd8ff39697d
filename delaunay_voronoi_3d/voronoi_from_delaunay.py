"""
Extracts Voronoi edges from a 3D Delaunay tetrahedralization.

The Voronoi vertices are the circumcenters of the Delaunay tetrahedra, and two
Voronoi vertices are joined by an edge whenever their tetrahedra share a face.
`voronoi_edges_3d` emits those edges clipped to an axis-aligned bounding box:
an edge with both ends inside is kept whole, an edge with one end inside is cut
where it leaves the box, and an edge with both ends outside is dropped.

Cell assembly (Voronoi faces and polyhedra) is not attempted here.
"""
import logging
from collections import defaultdict
from typing import Sequence

import torch

from .geometry_core import EPSILON, _validate_bounding_box, point_in_box, ray_box_intersection
from .tetrahedron import Tetrahedron

logger = logging.getLogger(__name__)


def find_adjacent_pairs(tetrahedra: Sequence[Tetrahedron]) -> list[tuple[int, int]]:
    """
    Lists the index pairs `(i, j)`, `i < j`, of tetrahedra sharing a face.

    Faces are bucketed by their sorted vertex key, so the cost is linear in the
    number of tetrahedra instead of a scan over all pairs. Every returned pair
    satisfies `Tetrahedron.is_adjacent`.

    Returns:
        list[tuple[int, int]]: Sorted, without duplicates.
    """
    face_to_tetra_indices = defaultdict(list)
    for i, tetra in enumerate(tetrahedra):
        for face in tetra.faces():
            face_to_tetra_indices[face.key].append(i)

    pairs = set()
    for indices in face_to_tetra_indices.values():
        for k, i in enumerate(indices):
            for j in indices[k + 1:]:
                if i != j and tetrahedra[i].is_adjacent(tetrahedra[j]):
                    pairs.add((min(i, j), max(i, j)))
    return sorted(pairs)


def voronoi_edges_3d(
    tetrahedra: Sequence[Tetrahedron],
    bounding_box_minmax: torch.Tensor | Sequence[Sequence[float]],
    tol: float = EPSILON
) -> torch.Tensor:
    """
    Computes the Voronoi edges dual to a tetrahedralization, clipped to a box.

    For every pair of adjacent tetrahedra whose circumcenters are both defined:
    - both circumcenters inside the box: the full segment is emitted;
    - exactly one inside: a ray is cast from the inside circumcenter toward the
      other one and the segment ends where the ray leaves the box. If the ray
      misses the box the edge is skipped;
    - both outside: nothing is emitted.

    Args:
        tetrahedra (Sequence[Tetrahedron]): Final tetrahedra, usually
            `Triangulation.triangulation()`.
        bounding_box_minmax (torch.Tensor | Sequence[Sequence[float]]): Shape (2, 3),
            rows `[min_coords, max_coords]`. The box is closed.
        tol (float, optional): Parallel-direction threshold for the ray test.
                               Defaults to `EPSILON`.

    Returns:
        torch.Tensor: Float64 tensor of shape (M, 2, 3). Row `k` holds the start
                      (always an inside circumcenter) and end of edge `k`.

    Raises:
        ValueError: If the bounding box is malformed.
    """
    box = _validate_bounding_box(bounding_box_minmax)

    segments = []
    for i, j in find_adjacent_pairs(tetrahedra):
        c1 = tetrahedra[i].circumcenter
        c2 = tetrahedra[j].circumcenter
        if c1 is None or c2 is None:
            continue

        is_c1_inside = point_in_box(c1, box)
        is_c2_inside = point_in_box(c2, box)

        if is_c1_inside and is_c2_inside:
            segments.append(torch.stack([c1, c2]))
        elif is_c1_inside or is_c2_inside:
            inside, outside = (c1, c2) if is_c1_inside else (c2, c1)
            exit_point = ray_box_intersection(inside, outside, box, tol)
            if exit_point is None:
                logger.debug("Ray from %s toward %s missed the box; edge skipped.",
                             inside.tolist(), outside.tolist())
                continue
            segments.append(torch.stack([inside, exit_point]))

    if not segments:
        return torch.empty((0, 2, 3), dtype=torch.float64)
    return torch.stack(segments)
