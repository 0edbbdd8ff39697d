"""
Unit tests for incremental 3D Delaunay tetrahedralization.

This module tests functionality in `delaunay_3d.py`:
- The super-tetrahedron construction (`super_tetrahedron_vertices`).
- The `Triangulation` class: single insertion steps and the deltas they return,
  conservation of the live set, cavity closure, the empty-circumsphere property
  and the filtered `triangulation()` query.
- The batch front end `delaunay_triangulation_3d`.
"""
import math
import unittest
from collections import Counter

import torch

from ..delaunay_3d import Triangulation, delaunay_triangulation_3d, super_tetrahedron_vertices
from ..geometry_core import EPSILON, _orientation3d_pytorch
from ..point_generation import generate_jittered_points

CUBE_CORNERS = [(float(i), float(j), float(k)) for i in range(2) for j in range(2) for k in range(2)]


def _jittered_cube_corners(seed: int = 7, jitter: float = 1e-6):
    generator = torch.Generator().manual_seed(seed)
    offsets = (torch.rand((8, 3), generator=generator, dtype=torch.float64) - 0.5) * jitter
    return [tuple((torch.tensor(c, dtype=torch.float64) + offsets[i]).tolist()) for i, c in enumerate(CUBE_CORNERS)]


class TestSuperTetrahedron(unittest.TestCase):
    """Tests for the enclosing super-tetrahedron."""

    def test_encloses_ball_of_scale_radius(self):
        """Points at distance `scale` from the center lie strictly inside every face."""
        scale = 20.0
        verts = [torch.tensor(v, dtype=torch.float64) for v in super_tetrahedron_vertices(scale)]
        s = scale / math.sqrt(3.0)
        probes = [(scale, 0., 0.), (-scale, 0., 0.), (0., scale, 0.), (0., -scale, 0.),
                  (0., 0., scale), (0., 0., -scale), (s, s, s), (-s, -s, -s), (s, -s, s), (-s, s, -s)]
        faces = [(0, 1, 2, 3), (0, 1, 3, 2), (0, 2, 3, 1), (1, 2, 3, 0)]
        for probe in probes:
            q = torch.tensor(probe, dtype=torch.float64)
            for i, j, k, opposite in faces:
                side_of_opposite = _orientation3d_pytorch(verts[i], verts[j], verts[k], verts[opposite], EPSILON)
                side_of_probe = _orientation3d_pytorch(verts[i], verts[j], verts[k], q, EPSILON)
                self.assertEqual(side_of_probe, side_of_opposite, f"Probe {probe} not strictly inside.")

    def test_center_offset(self):
        shifted = super_tetrahedron_vertices(1.0, (10., 0., -5.))
        centroid = [sum(v[axis] for v in shifted) / 4.0 for axis in range(3)]
        self.assertEqual(centroid, [10., 0., -5.])

    def test_invalid_scale(self):
        for bad in (0.0, -1.0, math.inf, float("nan")):
            with self.assertRaises(ValueError):
                Triangulation(bad)


class TestTriangulationSteps(unittest.TestCase):
    """Tests for single `add_point` steps and the deltas they return."""

    def test_first_point_splits_super_tetrahedron(self):
        """One point in a fresh mesh removes the super-tetrahedron and creates 4 cells, one per face."""
        mesh = Triangulation(20.0)
        super_tetra = mesh.tetrahedra[0]
        result = mesh.add_point((0.1, 0.2, 0.3))

        self.assertEqual(len(result.removed), 1)
        self.assertIs(result.removed[0], super_tetra)
        self.assertEqual(len(result.created), 4)
        self.assertEqual({f.key for f in result.cavity_boundary}, {f.key for f in super_tetra.faces()})
        self.assertEqual(len(result.cavity_boundary), 4)
        for tetra in result.created:
            self.assertTrue(tetra.contains_vertex((0.1, 0.2, 0.3)))
            self.assertFalse(tetra.is_degenerate)
        self.assertEqual(len(mesh), 4)
        self.assertEqual(mesh.points, ((0.1, 0.2, 0.3),))
        self.assertEqual(mesh.triangulation(), [])

    def test_result_is_a_snapshot(self):
        """Returned deltas are tuples and hold exactly the objects added to the live set."""
        mesh = Triangulation(20.0)
        result = mesh.add_point((0., 0., 0.))
        self.assertIsInstance(result.removed, tuple)
        self.assertIsInstance(result.cavity_boundary, tuple)
        self.assertIsInstance(result.created, tuple)
        live_ids = {id(t) for t in mesh.tetrahedra}
        self.assertTrue(all(id(t) in live_ids for t in result.created))

        created_before = result.created
        mesh.add_point((1., 1., 1.))
        self.assertIs(result.created, created_before)
        self.assertEqual(len(result.created), 4)

    def test_conservation_and_cavity_closure(self):
        """Live count changes by |created| - |removed|; the cavity is the symmetric difference of removed faces."""
        points = generate_jittered_points(25, box_size=10.0, generator=torch.Generator().manual_seed(3))
        mesh = Triangulation(20.0)
        for point in points:
            before_ids = {id(t) for t in mesh.tetrahedra}
            result = mesh.add_point(point)
            self.assertEqual(len(mesh), len(before_ids) - len(result.removed) + len(result.created))

            after_ids = {id(t) for t in mesh.tetrahedra}
            self.assertTrue(all(id(t) in before_ids for t in result.removed))
            self.assertTrue(all(id(t) not in after_ids for t in result.removed))
            self.assertTrue(all(id(t) in after_ids for t in result.created))

            counts = Counter(f.key for t in result.removed for f in t.faces())
            expected_boundary = {key for key, n in counts.items() if n == 1}
            boundary_keys = [f.key for f in result.cavity_boundary]
            self.assertEqual(len(boundary_keys), len(set(boundary_keys)), "Cavity face listed twice.")
            self.assertEqual(set(boundary_keys), expected_boundary)
            self.assertEqual(len(result.created), len(result.cavity_boundary))

    def test_empty_cavity_is_a_no_op(self):
        """A point outside every circumsphere leaves the mesh unchanged and is reported."""
        mesh = Triangulation(1.0)
        before = mesh.tetrahedra
        with self.assertLogs("delaunay_voronoi_3d.delaunay_3d", level="WARNING") as logs:
            result = mesh.add_point((1000., 1000., 1000.))
        self.assertEqual(result.removed, ())
        self.assertEqual(result.cavity_boundary, ())
        self.assertEqual(result.created, ())
        self.assertEqual(mesh.tetrahedra, before)
        self.assertTrue(any("cavity is empty" in line for line in logs.output))

    def test_invalid_point(self):
        mesh = Triangulation(5.0)
        with self.assertRaises(ValueError):
            mesh.add_point((1.0, 2.0))
        with self.assertRaises(ValueError):
            mesh.add_point((0.0, float("nan"), 0.0))
        self.assertEqual(len(mesh), 1)

    def test_add_points(self):
        mesh = Triangulation(20.0)
        results = mesh.add_points([(0., 0., 0.), (1., 0., 0.), (0., 1., 0.)])
        self.assertEqual(len(results), 3)
        self.assertEqual([r.point for r in results], [(0., 0., 0.), (1., 0., 0.), (0., 1., 0.)])


class TestTriangulationProperties(unittest.TestCase):
    """Tests for properties of completed triangulations."""

    def test_delaunay_invariant_random_points(self):
        """No inserted point lies strictly inside any live circumsphere."""
        points = generate_jittered_points(40, box_size=10.0, generator=torch.Generator().manual_seed(11))
        mesh = Triangulation(20.0)
        mesh.add_points(points)
        inserted = torch.tensor(mesh.points, dtype=torch.float64)
        for tetra in mesh.tetrahedra:
            if tetra.is_degenerate:
                continue
            dists_sq = torch.sum((inserted - tetra.circumcenter) ** 2, dim=1)
            for p, d in zip(mesh.points, dists_sq.tolist()):
                if tetra.contains_vertex(p):
                    continue
                self.assertGreaterEqual(d, tetra.radius_sq * (1.0 - 1e-9),
                                        f"Point {p} inside circumsphere of {tetra}.")

    def test_triangulation_excludes_super_vertices(self):
        points = generate_jittered_points(20, box_size=10.0, generator=torch.Generator().manual_seed(5))
        mesh = Triangulation(20.0)
        mesh.add_points(points)
        final = mesh.triangulation()
        self.assertGreater(len(final), 0)
        self.assertLess(len(final), len(mesh))
        for tetra in final:
            self.assertFalse(any(tetra.contains_vertex(s) for s in mesh.super_points))

    def test_triangulation_query_idempotent(self):
        mesh = Triangulation(20.0)
        mesh.add_points(generate_jittered_points(12, generator=torch.Generator().manual_seed(1)))
        first = mesh.triangulation()
        second = mesh.triangulation()
        self.assertEqual(len(first), len(second))
        self.assertTrue(all(a is b for a, b in zip(first, second)))
        self.assertEqual(len(mesh.tetrahedra), len(mesh))

    def test_adjacency_symmetry(self):
        mesh = Triangulation(20.0)
        mesh.add_points(generate_jittered_points(10, generator=torch.Generator().manual_seed(2)))
        tetras = mesh.tetrahedra
        for a in tetras:
            for b in tetras:
                self.assertEqual(a.is_adjacent(b), b.is_adjacent(a))

    def test_unit_cube_corners(self):
        """The 8 corners of a unit cube give a non-empty triangulation free of super vertices and with finite circumcenters."""
        mesh = Triangulation(20.0)
        mesh.add_points(CUBE_CORNERS)
        final = mesh.triangulation()
        self.assertGreater(len(final), 0)
        for tetra in final:
            self.assertFalse(tetra.shares_vertex_with(mesh.super_points))
            self.assertTrue(all(p in CUBE_CORNERS for p in tetra.points))
            self.assertIsNotNone(tetra.circumcenter)
            self.assertTrue(torch.all(torch.isfinite(tetra.circumcenter)))
            self.assertTrue(math.isfinite(tetra.radius_sq))

    def test_jittered_cube_corners_finite_circumcenters(self):
        """With the usual jitter every final tetrahedron has a finite circumcenter."""
        corners = _jittered_cube_corners()
        mesh = Triangulation(20.0)
        mesh.add_points(corners)
        final = mesh.triangulation()
        self.assertGreater(len(final), 0)
        for tetra in final:
            self.assertIsNotNone(tetra.circumcenter)
            self.assertTrue(torch.all(torch.isfinite(tetra.circumcenter)))
            self.assertTrue(math.isfinite(tetra.radius_sq))


class TestDelaunayTriangulation3D(unittest.TestCase):
    """Tests for the batch function `delaunay_triangulation_3d`."""

    def _check_tetrahedra_validity(self, points, tetrahedra):
        """Indices in range, four distinct vertices, positive orientation."""
        n_points = points.shape[0]
        self.assertTrue(torch.all(tetrahedra >= 0) and torch.all(tetrahedra < n_points))
        for tet_indices in tetrahedra:
            self.assertEqual(len(set(tet_indices.tolist())), 4)
            p0, p1, p2, p3 = (points[i].to(torch.float64) for i in tet_indices)
            self.assertEqual(_orientation3d_pytorch(p0, p1, p2, p3, EPSILON), 1)

    def test_dt3d_empty_input(self):
        tetrahedra = delaunay_triangulation_3d(torch.empty((0, 3)))
        self.assertEqual(tuple(tetrahedra.shape), (0, 4))

    def test_dt3d_less_than_4_points(self):
        points = torch.tensor([[0., 0., 0.], [1., 1., 1.], [2., 0., 0.]])
        self.assertEqual(delaunay_triangulation_3d(points).shape[0], 0)

    def test_dt3d_not_3d(self):
        with self.assertRaises(ValueError):
            delaunay_triangulation_3d(torch.zeros((5, 2)))

    def test_dt3d_single_tetrahedron(self):
        points = torch.tensor([[0., 0., 0.], [1., 0., 0.], [0., 1., 0.], [0., 0., 1.]])
        tetrahedra = delaunay_triangulation_3d(points)
        self.assertEqual(tetrahedra.shape[0], 1)
        self.assertEqual(tetrahedra.dtype, torch.long)
        self.assertEqual(sorted(tetrahedra[0].tolist()), [0, 1, 2, 3])
        self._check_tetrahedra_validity(points, tetrahedra)

    def test_dt3d_4_points_coplanar(self):
        """Coplanar input yields no tetrahedra."""
        points = torch.tensor([[0., 0., 0.], [1., 0., 0.], [0., 1., 0.], [1., 1., 0.]])
        self.assertEqual(delaunay_triangulation_3d(points).shape[0], 0)

    def test_dt3d_random_points(self):
        generator = torch.Generator().manual_seed(21)
        points = torch.rand((20, 3), generator=generator, dtype=torch.float64) * 100
        tetrahedra = delaunay_triangulation_3d(points)
        self.assertGreater(tetrahedra.shape[0], 0)
        self._check_tetrahedra_validity(points, tetrahedra)


if __name__ == '__main__':
    unittest.main(argv=['first-arg-is-ignored'], exit=False)
