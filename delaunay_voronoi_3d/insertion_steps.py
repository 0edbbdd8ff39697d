"""
Step-by-step driver for watching a tetrahedralization being built.

`InsertionStepper` owns a fixed list of points and a `Triangulation`, and
inserts one point per `next_step()` call. Each call returns a `StepReport`
carrying the insertion delta and a short text summary. Scheduling (one step per
button press, per timer tick, ...) is left to the caller.
"""
import logging
from typing import Iterator, NamedTuple, Sequence

import torch

from .delaunay_3d import InsertionResult, Triangulation
from .geometry_core import DEFAULT_BOX_SIZE, DEFAULT_SUPER_TETRA_SCALE_FACTOR, default_bounding_box
from .tetrahedron import Tetrahedron
from .voronoi_from_delaunay import voronoi_edges_3d

logger = logging.getLogger(__name__)


class StepReport(NamedTuple):
    step: int # 1-based
    total: int
    result: InsertionResult

    def summary(self) -> str:
        r = self.result
        return (f"Step {self.step}/{self.total}: added point {r.point}. "
                f"Found {len(r.removed)} bad tetrahedra, "
                f"formed a cavity of {len(r.cavity_boundary)} faces, "
                f"created {len(r.created)} new tetrahedra.")


class InsertionStepper:
    """
    Inserts a fixed sequence of points into a fresh `Triangulation`, one per step.

    Args:
        points (torch.Tensor | Sequence[Sequence[float]]): The points, shape (N, 3).
        super_tetra_scale (float | None, optional): Enclosing radius for the
            super-tetrahedron. Defaults to `DEFAULT_SUPER_TETRA_SCALE_FACTOR`
            times `DEFAULT_BOX_SIZE`, which covers points generated by
            `generate_jittered_points` with the default box.

    Raises:
        ValueError: If the points are not an (N, 3) collection.
    """

    def __init__(self, points: torch.Tensor | Sequence[Sequence[float]], super_tetra_scale: float | None = None):
        points = torch.as_tensor(points, dtype=torch.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            if points.numel() != 0:
                raise ValueError("Input points must be an (N, 3) collection.")
            points = points.reshape(0, 3)
        if super_tetra_scale is None:
            super_tetra_scale = DEFAULT_SUPER_TETRA_SCALE_FACTOR * DEFAULT_BOX_SIZE
        self.points = points
        self.mesh = Triangulation(super_tetra_scale)
        self.point_index = 0

    @property
    def total(self) -> int:
        return self.points.shape[0]

    @property
    def is_complete(self) -> bool:
        return self.point_index >= self.total

    def next_step(self) -> StepReport | None:
        """Inserts the next point; None once every point has been inserted."""
        if self.is_complete:
            return None
        result = self.mesh.add_point(self.points[self.point_index])
        self.point_index += 1
        report = StepReport(self.point_index, self.total, result)
        logger.debug("%s", report.summary())
        return report

    def run_all(self) -> Iterator[StepReport]:
        """Yields a report for each remaining point."""
        while not self.is_complete:
            yield self.next_step()

    def good_tetrahedra(self, report: StepReport) -> list[Tetrahedron]:
        """
        Live tetrahedra that the reported step neither removed nor created.

        Only meaningful for the most recent step.
        """
        created = set(map(id, report.result.created))
        return [t for t in self.mesh.tetrahedra if id(t) not in created]

    def voronoi_edges(self, bounding_box_minmax: torch.Tensor | None = None) -> torch.Tensor:
        """Voronoi edges of the current triangulation, clipped to the box (default: the default point box)."""
        if bounding_box_minmax is None:
            bounding_box_minmax = default_bounding_box(DEFAULT_BOX_SIZE)
        return voronoi_edges_3d(self.mesh.triangulation(), bounding_box_minmax)
