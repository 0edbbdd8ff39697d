"""
Computes circumspheres of 3D tetrahedra.

The circumsphere is the unique sphere passing through all four vertices of a
tetrahedron; its center is the Voronoi vertex dual to the tetrahedron. The
calculation translates the tetrahedron so that its fourth vertex sits at the
origin and solves the resulting 3x3 system in closed form using squared edge
lengths and cross products.

Degenerate (coplanar or collinear) tetrahedra are detected with
`DEGENERACY_TOLERANCE` from `geometry_core.py` applied to the determinant of the
edge-vector matrix.
"""
import math

import torch

from .geometry_core import DEGENERACY_TOLERANCE


def compute_tetrahedron_circumsphere_3d(p1: torch.Tensor, p2: torch.Tensor,
                                        p3: torch.Tensor, p4: torch.Tensor,
                                        tol: float = DEGENERACY_TOLERANCE) -> tuple[torch.Tensor | None, float]:
    """
    Computes the circumcenter and squared circumradius of a tetrahedron.

    With `a = p1 - p4`, `b = p2 - p4`, `c = p3 - p4` and `det = det([a; b; c])`,
    the circumcenter is

        p4 + (|a|^2 (b x c) + |b|^2 (c x a) + |c|^2 (a x b)) / (2 det)

    If `|det|` is below `tol` the points are treated as coplanar and no finite
    circumsphere exists.

    Args:
        p1, p2, p3, p4 (torch.Tensor): Tensors of shape (3,), the vertices.
        tol (float, optional): Determinant threshold for degeneracy.
                               Defaults to `DEGENERACY_TOLERANCE` (1e-12).

    Returns:
        tuple[torch.Tensor | None, float]:
            - The circumcenter as a float64 tensor of shape (3,), or None when
              the tetrahedron is degenerate.
            - The squared circumradius, or `math.inf` when degenerate.
    """
    d = p4.to(torch.float64)
    a = p1.to(torch.float64) - d
    b = p2.to(torch.float64) - d
    c = p3.to(torch.float64) - d

    det_val = torch.det(torch.stack([a, b, c], dim=0))
    if torch.abs(det_val) < tol:
        return None, math.inf

    numerator = (torch.dot(a, a) * torch.linalg.cross(b, c)
                 + torch.dot(b, b) * torch.linalg.cross(c, a)
                 + torch.dot(c, c) * torch.linalg.cross(a, b))
    offset = numerator / (2.0 * det_val)
    circumcenter = d + offset
    radius_sq = torch.sum((circumcenter - p1.to(torch.float64)) ** 2).item()
    return circumcenter, radius_sq


def compute_tetrahedron_circumcenter_3d(p1: torch.Tensor, p2: torch.Tensor,
                                        p3: torch.Tensor, p4: torch.Tensor) -> torch.Tensor | None:
    """Circumcenter only; None for degenerate tetrahedra."""
    circumcenter, _ = compute_tetrahedron_circumsphere_3d(p1, p2, p3, p4)
    return circumcenter
