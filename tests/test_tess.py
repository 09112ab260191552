import unittest
from unittest import mock

from libtess import (
	Co3,
	ContourOrientation,
	ContourVertex,
	ElementType,
	Tesselator,
	TessellationError,
	WindingRule,
	triangle_area_sum,
)
from libtess.constants import UNDEF
from libtess.ds.coord import Co2
from libtess.mesh import Mesh, Vertex
from libtess.tess import ActiveRegion

UNIT_SQUARE = ((0, 0), (1, 0), (1, 1), (0, 1))
UNIT_SQUARE_CW = UNIT_SQUARE[::-1]
OUTER = ((0, 0), (3, 0), (3, 3), (0, 3))
HOLE = ((1, 1), (2, 1), (2, 2), (1, 2))
BOW_TIE = ((0, 0), (2, 2), (2, 0), (0, 2))
RHOMBUS = ((0, 0), (2, -0.5), (4, 0), (2, 0.5))
# two bands crossing like an X
BAND_UP = ((0, 0), (1, 0), (4, 3), (3, 3))
BAND_DOWN = ((3, 0), (4, 0), (1, 3), (0, 3))


def new_tess (*contours):
	t = Tesselator()
	t.normal = Co3(0.0, 0.0, 1.0)
	for c in contours:
		t.add_contour(c)
	return t


def triangles (t: Tesselator):
	return [t.elements[k * 3:(k + 1) * 3] for k in range(t.element_count)]


def area (t: Tesselator):
	verts = [cv.position.xyz for cv in t.vertices]
	return triangle_area_sum(verts, t.elements)


class TestTriangles(unittest.TestCase):
	def test_unit_square (self):
		t = new_tess(UNIT_SQUARE)
		self.assertTrue(t.tesselate())
		self.assertEqual(t.element_count, 2)
		self.assertEqual(t.vertex_count, 4)
		self.assertEqual(len(t.elements), 6)
		self.assertAlmostEqual(area(t), 1.0)
		self.assertEqual(sorted(t.vertex_indices), [0, 1, 2, 3])
		for tri in triangles(t):
			self.assertEqual(len(set(tri)), 3)

	def test_square_with_hole (self):
		t = new_tess(OUTER, HOLE)
		t.tesselate(WindingRule.ODD)
		self.assertEqual(t.element_count, 8)
		self.assertEqual(t.vertex_count, 8)
		self.assertAlmostEqual(area(t), 8.0)

	def test_hole_orientation_matters_for_nonzero (self):
		t = new_tess(OUTER, HOLE)
		t.tesselate(WindingRule.NONZERO)
		# both contours CCW: the hole is covered twice, not cut out
		self.assertAlmostEqual(area(t), 9.0)

		t.add_contour(OUTER)
		t.add_contour(HOLE[::-1])
		t.tesselate(WindingRule.NONZERO)
		self.assertAlmostEqual(area(t), 8.0)

	def test_bow_tie_gets_intersection_vertex (self):
		calls = []

		def combine (position, data, weights):
			calls.append((position, data, weights))
			return 'isect'

		t = new_tess([ContourVertex(Co3(x, y, 0.0), f'v{i}') for i, (x, y) in enumerate(BOW_TIE)])
		t.tesselate(WindingRule.ODD, combine=combine)

		self.assertEqual(t.element_count, 2)
		self.assertEqual(t.vertex_count, 5)
		self.assertAlmostEqual(area(t), 2.0)

		self.assertEqual(t.vertex_indices.count(UNDEF), 1)
		k = t.vertex_indices.index(UNDEF)
		isect = t.vertices[k]
		self.assertAlmostEqual(isect.position.x, 1.0)
		self.assertAlmostEqual(isect.position.y, 1.0)
		self.assertAlmostEqual(isect.position.z, 0.0)
		self.assertEqual(isect.data, 'isect')

		self.assertEqual(len(calls), 1)
		position, data, weights = calls[0]
		self.assertEqual(sorted(data), ['v0', 'v1', 'v2', 'v3'])
		self.assertAlmostEqual(sum(weights), 1.0)
		for w in weights:
			self.assertAlmostEqual(w, 0.25)

		for i, cv in enumerate(t.vertices):
			if i != k:
				self.assertEqual(cv.data, f'v{t.vertex_indices[i]}')

	def test_two_contours_crossing (self):
		calls = []

		def combine (position, data, weights):
			calls.append((position, data, weights))
			return 'x'

		t = new_tess(
			[ContourVertex(Co3(x, y, 0.0), f'a{i}') for i, (x, y) in enumerate(BAND_UP)],
			[ContourVertex(Co3(x, y, 0.0), f'b{i}') for i, (x, y) in enumerate(BAND_DOWN)],
		)
		t.tesselate(WindingRule.NONZERO, combine=combine)

		# one call per crossing, each mixing two vertices of either band
		self.assertEqual(len(calls), 4)
		for position, data, weights in calls:
			self.assertEqual(sum(1 for d in data if d.startswith('a')), 2)
			self.assertEqual(sum(1 for d in data if d.startswith('b')), 2)
			self.assertAlmostEqual(sum(weights), 1.0)

		crossings = sorted((round(p.x, 9), round(p.y, 9)) for p, _, _ in calls)
		self.assertEqual(crossings, [(1.5, 1.5), (2.0, 1.0), (2.0, 2.0), (2.5, 1.5)])

		self.assertEqual(t.vertex_count, 12)
		self.assertEqual(t.vertex_indices.count(UNDEF), 4)
		for i, cv in enumerate(t.vertices):
			if t.vertex_indices[i] == UNDEF:
				self.assertEqual(cv.data, 'x')
		self.assertAlmostEqual(area(t), 5.5)

		t.add_contour(BAND_UP)
		t.add_contour(BAND_DOWN)
		t.tesselate(WindingRule.ODD)
		self.assertAlmostEqual(area(t), 5.0)

	def test_duplicate_contours (self):
		t = new_tess(UNIT_SQUARE, UNIT_SQUARE)
		t.tesselate(WindingRule.ABS_GEQ_TWO)
		self.assertEqual(t.element_count, 2)
		self.assertAlmostEqual(area(t), 1.0)

		t.add_contour(UNIT_SQUARE)
		t.add_contour(UNIT_SQUARE)
		t.tesselate(WindingRule.ODD)
		self.assertEqual(t.element_count, 0)

	def test_reversed_duplicate_cancels (self):
		t = new_tess(UNIT_SQUARE, UNIT_SQUARE_CW)
		self.assertTrue(t.tesselate(WindingRule.NONZERO))
		self.assertEqual(t.element_count, 0)
		self.assertEqual(t.elements, [])

	def test_duplicate_vertex (self):
		t = new_tess(((0, 0), (0, 0), (1, 0), (1, 1), (0, 1)))
		t.tesselate()
		self.assertEqual(t.element_count, 2)
		self.assertAlmostEqual(area(t), 1.0)

	def test_three_dimensional_input (self):
		t = Tesselator()
		t.add_contour(((0, 0, 0), (1, 0, 1), (1, 1, 1), (0, 1, 0)))
		t.tesselate()
		self.assertEqual(t.element_count, 2)
		for cv in t.vertices:
			self.assertAlmostEqual(cv.position.z, cv.position.x)


class TestDegenerate(unittest.TestCase):
	def test_nothing_added (self):
		t = Tesselator()
		self.assertFalse(t.tesselate())
		self.assertEqual(t.element_count, 0)

	def test_two_points (self):
		t = new_tess(((0, 0), (1, 0)))
		self.assertTrue(t.tesselate())
		self.assertEqual(t.element_count, 0)
		self.assertEqual(t.vertex_count, 0)

	def test_collinear (self):
		t = new_tess(((0, 0), (1, 0), (2, 0)))
		self.assertTrue(t.tesselate())
		self.assertEqual(t.element_count, 0)

	def test_bad_vertex (self):
		t = Tesselator()
		with self.assertRaises(ValueError):
			t.add_contour(((0, 0), (1,), (1, 1)))


class TestUnmergedVertex(unittest.TestCase):
	def setUp (self):
		self.t = Tesselator()
		self.t.mesh = Mesh()
		self.e = self.t.mesh.make_edge()
		self.reg = ActiveRegion()
		self.reg.edge_up = self.e

	def tearDown (self):
		self.t.mesh.free()

	def event_at (self, x, y):
		v = Vertex()
		v.co = Co2(x, y)
		return v

	def test_event_on_edge_origin (self):
		self.e.org.co = Co2(0, 0)
		self.e.dst.co = Co2(-1, 0)
		with self.assertRaises(TessellationError):
			self.t.connect_left_degen(self.reg, self.event_at(0, 0))

	def test_event_on_edge_destination (self):
		self.e.org.co = Co2(2, 0)
		self.e.dst.co = Co2(0, 0)
		with self.assertRaises(TessellationError):
			self.t.connect_left_degen(self.reg, self.event_at(0, 0))


class TestWindingAndOrientation(unittest.TestCase):
	def test_clockwise_square_with_fixed_normal (self):
		t = new_tess(UNIT_SQUARE_CW)
		t.tesselate(WindingRule.POSITIVE)
		self.assertEqual(t.element_count, 0)

		t.add_contour(UNIT_SQUARE_CW)
		t.tesselate(WindingRule.NEGATIVE)
		self.assertEqual(t.element_count, 2)

	def test_forced_orientation (self):
		# turns are y-down: CLOCKWISE leaves a positive xy area
		t = new_tess()
		t.add_contour(UNIT_SQUARE_CW, ContourOrientation.COUNTER_CLOCKWISE)
		t.tesselate(WindingRule.POSITIVE)
		self.assertEqual(t.element_count, 0)

		t.add_contour(UNIT_SQUARE_CW, ContourOrientation.CLOCKWISE)
		t.tesselate(WindingRule.POSITIVE)
		self.assertEqual(t.element_count, 2)

		t.add_contour(UNIT_SQUARE, ContourOrientation.CLOCKWISE)
		t.tesselate(WindingRule.POSITIVE)
		self.assertEqual(t.element_count, 2)

		t.add_contour(UNIT_SQUARE, ContourOrientation.COUNTER_CLOCKWISE)
		t.tesselate(WindingRule.NEGATIVE)
		self.assertEqual(t.element_count, 2)

		t.add_contour(UNIT_SQUARE, ContourOrientation.ORIGINAL)
		t.tesselate(WindingRule.POSITIVE)
		self.assertEqual(t.element_count, 2)

	def test_computed_normal_makes_contours_positive (self):
		t = Tesselator()
		t.add_contour(UNIT_SQUARE_CW)
		t.tesselate(WindingRule.POSITIVE)
		self.assertEqual(t.element_count, 2)

	def test_normal_argument (self):
		t = Tesselator()
		t.add_contour(UNIT_SQUARE_CW)
		t.tesselate(WindingRule.POSITIVE, normal=(0, 0, 1))
		self.assertEqual(t.element_count, 0)
		self.assertEqual(t.normal, Co3())

	def test_winding_rule_predicates (self):
		self.assertTrue(WindingRule.ODD.is_inside(-3))
		self.assertFalse(WindingRule.ODD.is_inside(2))
		self.assertTrue(WindingRule.NONZERO.is_inside(-1))
		self.assertFalse(WindingRule.POSITIVE.is_inside(0))
		self.assertTrue(WindingRule.NEGATIVE.is_inside(-2))
		self.assertTrue(WindingRule.ABS_GEQ_TWO.is_inside(-2))
		self.assertFalse(WindingRule.ABS_GEQ_TWO.is_inside(1))


class TestOutputModes(unittest.TestCase):
	def test_connected_polygons (self):
		t = new_tess(UNIT_SQUARE)
		t.tesselate(element_type=ElementType.CONNECTED_POLYGONS)
		self.assertEqual(t.element_count, 2)
		self.assertEqual(len(t.elements), 12)
		for k in range(2):
			neighbours = t.elements[k * 6 + 3:k * 6 + 6]
			self.assertEqual(neighbours.count(1 - k), 1)
			self.assertEqual(neighbours.count(UNDEF), 2)

	def test_poly_size_merges (self):
		t = new_tess(UNIT_SQUARE)
		t.tesselate(poly_size=4)
		self.assertEqual(t.element_count, 1)
		self.assertEqual(len(t.elements), 4)
		self.assertNotIn(UNDEF, t.elements)

	def test_poly_size_pads (self):
		t = new_tess(OUTER, HOLE)
		t.tesselate(poly_size=6)
		self.assertEqual(len(t.elements), 6 * t.element_count)
		self.assertLess(t.element_count, 8)

	def test_boundary_contours (self):
		t = new_tess(OUTER, HOLE)
		t.tesselate(WindingRule.ODD, ElementType.BOUNDARY_CONTOURS)
		self.assertEqual(t.element_count, 2)
		counts = sorted(t.elements[1::2])
		self.assertEqual(counts, [4, 4])
		starts = sorted(t.elements[0::2])
		self.assertEqual(starts, [0, 4])
		self.assertEqual(t.vertex_count, 8)
		self.assertEqual(sorted(t.vertex_indices), list(range(8)))

	def test_delaunay_refinement (self):
		t = new_tess(RHOMBUS)
		t.tesselate(process_cdt=True)
		self.assertEqual(t.element_count, 2)

		a, b = (set(tri) for tri in triangles(t))
		shared = a & b
		self.assertEqual(len(shared), 2)
		for i in shared:
			self.assertAlmostEqual(t.vertices[i].position.x, 2.0)

	def test_no_empty_polygons (self):
		t = new_tess(UNIT_SQUARE)
		t.tesselate(no_empty_polygons=True)
		self.assertEqual(t.element_count, 2)


class TestLifecycle(unittest.TestCase):
	def test_reuse_is_idempotent (self):
		t = Tesselator()
		results = []
		for _ in range(3):
			t.normal = Co3(0.0, 0.0, 1.0)
			t.add_contour(OUTER)
			t.add_contour(HOLE)
			t.tesselate()
			results.append((t.element_count, list(t.elements), list(t.vertex_indices)))
		self.assertEqual(results[0], results[1])
		self.assertEqual(results[1], results[2])
		self.assertIsNone(t.mesh)

	def test_failure_clears_output (self):
		t = new_tess(UNIT_SQUARE)
		t.tesselate()
		self.assertEqual(t.element_count, 2)

		t.add_contour(UNIT_SQUARE)
		with mock.patch.object(t, 'compute_interior', side_effect=TessellationError('boom')):
			with self.assertRaises(TessellationError):
				t.tesselate()
		self.assertEqual(t.element_count, 0)
		self.assertEqual(t.elements, [])
		self.assertEqual(t.vertices, [])
		self.assertIsNone(t.mesh)

		t.add_contour(UNIT_SQUARE)
		self.assertTrue(t.tesselate())
		self.assertEqual(t.element_count, 2)

	def test_sweep_event_limit (self):
		t = new_tess(BOW_TIE)
		# four vertices plus the crossing, against a limit of one event
		with mock.patch('libtess.tess.SWEEP_SLACK', -3):
			with self.assertRaises(TessellationError):
				t.tesselate()
		self.assertEqual(t.element_count, 0)
		self.assertEqual(t.elements, [])
		self.assertEqual(t.vertices, [])
		self.assertIsNone(t.mesh)
		self.assertIsNone(t.dict)
		self.assertIsNone(t.pq)

		t.add_contour(BOW_TIE)
		t.tesselate()
		self.assertEqual(t.element_count, 2)

	def test_degenerate_faces_removed_after_sweep (self):
		t = new_tess(OUTER, HOLE)
		seen = []
		real = Mesh.remove_degenerate_faces

		def spy (mesh):
			seen.append((t.pq, t.dict))
			real(mesh)

		with mock.patch.object(Mesh, 'remove_degenerate_faces', spy):
			t.tesselate()
		self.assertEqual(seen, [(None, None)])
		self.assertEqual(t.element_count, 8)

	def test_s_unit_modes (self):
		for mode in ('flat', 'slanted', 'random'):
			t = new_tess(OUTER, HOLE)
			t.auto_set_s_unit(mode)
			t.tesselate()
			self.assertEqual(t.element_count, 8, mode)
			self.assertAlmostEqual(area(t), 8.0)

		with self.assertRaises(ValueError):
			Tesselator().auto_set_s_unit('sideways')


if __name__ == '__main__':
	unittest.main()
