"""
Line-segment views of mesh pieces for an external renderer.

These helpers flatten tetrahedra and faces into (M, 2, 3) tensors of segment
endpoints, e.g. to draw the removed cells, the cavity boundary and the new
cells of an `InsertionResult` in different colors. Nothing here draws.
"""
from typing import Iterable

import torch

from .tetrahedron import Face, Tetrahedron


def _segments_tensor(segments: list) -> torch.Tensor:
    if not segments:
        return torch.empty((0, 2, 3), dtype=torch.float64)
    return torch.tensor(segments, dtype=torch.float64)


def tetrahedron_edges(tetrahedra: Iterable[Tetrahedron]) -> torch.Tensor:
    """
    All six edges of every tetrahedron.

    Shared edges are repeated once per tetrahedron.

    Returns:
        torch.Tensor: Float64 tensor of shape (6 * T, 2, 3).
    """
    return _segments_tensor([list(edge) for tetra in tetrahedra for edge in tetra.edges()])


def face_edges(faces: Iterable[Face]) -> torch.Tensor:
    """The three edges of every face, as a (3 * F, 2, 3) tensor."""
    return _segments_tensor([list(edge) for face in faces for edge in face.edges()])
