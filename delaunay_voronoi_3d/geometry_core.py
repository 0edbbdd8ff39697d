"""
Core geometric primitives shared by the tetrahedralization and its Voronoi dual.

This module provides:
- Global tolerances and defaults (`EPSILON`, `DEGENERACY_TOLERANCE`, box and
  jitter defaults) used across the package.
- Point normalization (`as_point`, `point_tensor`): mesh vertices are plain
  tuples of floats so that vertex identity is by value, while the numeric work
  is carried out on float64 PyTorch tensors.
- The 3D orientation predicate (`_orientation3d_pytorch`).
- Axis-aligned bounding box helpers (`default_bounding_box`, `point_in_box`,
  `ray_box_intersection`) used to clip Voronoi edges.
"""
import math
from typing import Sequence

import torch

EPSILON = 1e-7 # Global epsilon for float comparisons.
DEGENERACY_TOLERANCE = 1e-12 # |det| below this marks a tetrahedron as flat.

DEFAULT_BOX_SIZE = 10.0
DEFAULT_JITTER = 1e-6
DEFAULT_SUPER_TETRA_SCALE_FACTOR = 2.0 # super-tetrahedron scale = factor * box size

Point = tuple[float, float, float]


def as_point(point: torch.Tensor | Sequence[float]) -> Point:
    """
    Converts a 3D point given as a tensor or sequence into a tuple of floats.

    Tuples compare and hash by value, which is what the mesh relies on to match
    faces and shared vertices between tetrahedra.

    Args:
        point (torch.Tensor | Sequence[float]): A tensor of shape (3,) or any
            sequence of three real numbers.

    Returns:
        Point: `(x, y, z)` as Python floats.

    Raises:
        ValueError: If the point does not have exactly 3 components or any
                    component is not finite.
    """
    if isinstance(point, torch.Tensor):
        values = point.detach().reshape(-1).tolist()
    else:
        values = list(point)
    if len(values) != 3:
        raise ValueError(f"Points must be 3-dimensional, got {len(values)} components.")
    coords = tuple(float(v) for v in values)
    if not all(math.isfinite(c) for c in coords):
        raise ValueError(f"Point coordinates must be finite, got {coords}.")
    return coords


def point_tensor(point: torch.Tensor | Sequence[float]) -> torch.Tensor:
    """Returns the point as a float64 tensor of shape (3,)."""
    return torch.tensor(as_point(point), dtype=torch.float64)


def _orientation3d_pytorch(p1: torch.Tensor, p2: torch.Tensor, p3: torch.Tensor, p4: torch.Tensor, tol: float = EPSILON) -> int:
    """
    Computes the orientation of point p4 relative to the plane defined by p1, p2, p3.
    Uses the sign of the determinant of a matrix formed by vectors (p2-p1, p3-p1, p4-p1).

    Args:
        p1, p2, p3, p4 (torch.Tensor): Tensors of shape (3,) representing 3D points.
        tol (float, optional): Tolerance for floating point comparisons to determine coplanarity.
                               Defaults to `EPSILON`.
    Returns:
        int:
            0 if points are coplanar (within tolerance).
            1 if p4 is on the positive side of the plane.
           -1 if p4 is on the negative side.
    """
    mat = torch.stack((p2 - p1, p3 - p1, p4 - p1), dim=0)
    det_val = torch.det(mat.to(dtype=torch.float64))
    if torch.abs(det_val) < tol: return 0
    return 1 if det_val > 0 else -1


# --- Axis-aligned bounding boxes ---

def default_bounding_box(box_size: float = DEFAULT_BOX_SIZE) -> torch.Tensor:
    """
    Builds the cube of side `box_size` centered at the origin.

    Returns:
        torch.Tensor: Float64 tensor of shape (2, 3), rows `[min_coords, max_coords]`.

    Raises:
        ValueError: If `box_size` is not a positive finite number.
    """
    if not (math.isfinite(box_size) and box_size > 0):
        raise ValueError(f"box_size must be positive and finite, got {box_size}.")
    half = box_size / 2.0
    return torch.tensor([[-half, -half, -half], [half, half, half]], dtype=torch.float64)


def _validate_bounding_box(bounding_box_minmax: torch.Tensor | Sequence[Sequence[float]]) -> torch.Tensor:
    box = torch.as_tensor(bounding_box_minmax, dtype=torch.float64)
    if box.shape != (2, 3):
        raise ValueError(f"Bounding box must have shape (2, 3), got {tuple(box.shape)}.")
    if not torch.all(torch.isfinite(box)):
        raise ValueError("Bounding box bounds must be finite.")
    if torch.any(box[0] > box[1]):
        raise ValueError("Bounding box min coordinates must not exceed max coordinates.")
    return box


def point_in_box(point: torch.Tensor, bounding_box_minmax: torch.Tensor) -> bool:
    """Closed-box containment test: points on the surface count as inside."""
    return bool(torch.all(point >= bounding_box_minmax[0]) and torch.all(point <= bounding_box_minmax[1]))


def ray_box_intersection(
    origin: torch.Tensor,
    toward: torch.Tensor,
    bounding_box_minmax: torch.Tensor,
    tol: float = EPSILON
) -> torch.Tensor | None:
    """
    Intersects the ray starting at `origin` and pointing at `toward` with the box surface.

    Slab method: for each axis the ray parameter interval inside the slab
    `[min, max]` is intersected with the others. When the origin lies inside the
    box or on its surface the exit point is returned; otherwise the entry point.

    Args:
        origin (torch.Tensor): Ray origin, shape (3,).
        toward (torch.Tensor): Any point on the ray other than the origin, shape (3,).
        bounding_box_minmax (torch.Tensor): Tensor of shape (2, 3), `[min; max]`.
        tol (float, optional): Threshold below which a direction component is treated
                               as parallel to the slab. Defaults to `EPSILON`.

    Returns:
        torch.Tensor | None: Intersection point of shape (3,), or None when the ray
                             misses the box or has no direction.
    """
    origin = origin.to(dtype=torch.float64)
    direction = toward.to(dtype=torch.float64) - origin
    length = torch.linalg.norm(direction)
    if length < tol:
        return None
    direction = direction / length

    t_near = -math.inf
    t_far = math.inf
    for axis in range(3):
        o = origin[axis].item()
        d = direction[axis].item()
        lo = bounding_box_minmax[0, axis].item()
        hi = bounding_box_minmax[1, axis].item()
        if abs(d) < tol:
            # Parallel to this slab: either always within it or never.
            if o < lo or o > hi:
                return None
            continue
        t1 = (lo - o) / d
        t2 = (hi - o) / d
        if t1 > t2:
            t1, t2 = t2, t1
        t_near = max(t_near, t1)
        t_far = min(t_far, t2)
        if t_near > t_far:
            return None

    if t_far < 0:
        return None # Box is behind the ray
    # From inside (surface included) the ray always leaves through the far slab.
    t_hit = t_far if point_in_box(origin, bounding_box_minmax) else t_near
    return origin + t_hit * direction
