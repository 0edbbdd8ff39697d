"""
Random input generation for the incremental tetrahedralization.

Points are drawn uniformly from the cube of side `box_size` centered at the
origin and then nudged by a tiny uniform jitter. The jitter keeps exactly
coplanar and cospherical configurations unlikely, since the predicates in this
package only use a fixed tolerance.
"""
import math

import torch

from .geometry_core import DEFAULT_BOX_SIZE, DEFAULT_JITTER


def generate_jittered_points(
    num_points: int,
    box_size: float = DEFAULT_BOX_SIZE,
    jitter: float = DEFAULT_JITTER,
    generator: torch.Generator | None = None,
    dtype: torch.dtype = torch.float64
) -> torch.Tensor:
    """
    Generates random 3D points inside a centered cube.

    Each coordinate is `(u - 0.5) * box_size + (v - 0.5) * jitter` with `u`, `v`
    uniform in [0, 1).

    Args:
        num_points (int): Number of points N (may be 0).
        box_size (float, optional): Side of the cube. Defaults to `DEFAULT_BOX_SIZE`.
        jitter (float, optional): Width of the jitter interval. Defaults to `DEFAULT_JITTER`.
        generator (torch.Generator | None, optional): Source of randomness, for
            reproducible point sets.
        dtype (torch.dtype, optional): Output dtype. Defaults to float64.

    Returns:
        torch.Tensor: Tensor of shape (N, 3).

    Raises:
        ValueError: If `num_points` is negative, `box_size` is not positive, or
                    `jitter` is negative.
    """
    if num_points < 0:
        raise ValueError(f"num_points must be non-negative, got {num_points}.")
    if not (math.isfinite(box_size) and box_size > 0):
        raise ValueError(f"box_size must be positive and finite, got {box_size}.")
    if not (math.isfinite(jitter) and jitter >= 0):
        raise ValueError(f"jitter must be non-negative and finite, got {jitter}.")

    positions = (torch.rand((num_points, 3), generator=generator, dtype=torch.float64) - 0.5) * box_size
    offsets = (torch.rand((num_points, 3), generator=generator, dtype=torch.float64) - 0.5) * jitter
    return (positions + offsets).to(dtype)
