import unittest

from libtess import geom
from libtess.ds.coord import Co2, Co3


class TestOrdering(unittest.TestCase):
	def test_vert_leq_is_s_then_t (self):
		self.assertTrue(geom.vert_leq(Co2(0, 5), Co2(1, 0)))
		self.assertTrue(geom.vert_leq(Co2(1, 0), Co2(1, 2)))
		self.assertTrue(geom.vert_leq(Co2(1, 2), Co2(1, 2)))
		self.assertFalse(geom.vert_leq(Co2(1, 3), Co2(1, 2)))

	def test_trans_leq_is_t_then_s (self):
		self.assertTrue(geom.trans_leq(Co2(5, 0), Co2(0, 1)))
		self.assertTrue(geom.trans_leq(Co2(0, 1), Co2(2, 1)))
		self.assertFalse(geom.trans_leq(Co2(3, 1), Co2(2, 1)))

	def test_co2_operators_match (self):
		a, b = Co2(0, 1), Co2(0, 2)
		self.assertTrue(a <= b)
		self.assertTrue(b > a)
		self.assertFalse(a > b)
		self.assertEqual(a, Co2(0, 1))
		self.assertEqual(a.yx, Co2(1, 0))

	def test_edge_direction (self):
		self.assertTrue(geom.edge_goes_left(Co2(2, 0), Co2(0, 0)))
		self.assertTrue(geom.edge_goes_right(Co2(0, 0), Co2(2, 0)))


class TestEdgeEval(unittest.TestCase):
	def test_above_and_below (self):
		u, w = Co2(0, 0), Co2(2, 0)
		self.assertAlmostEqual(geom.edge_eval(u, Co2(1, 1), w), 1.0)
		self.assertAlmostEqual(geom.edge_eval(u, Co2(1, -2), w), -2.0)
		self.assertGreater(geom.edge_sign(u, Co2(1, 1), w), 0)
		self.assertLess(geom.edge_sign(u, Co2(1, -1), w), 0)
		self.assertEqual(geom.edge_sign(u, Co2(1, 0), w), 0)

	def test_sloped_edge (self):
		# t on the edge (0,0)-(4,4) at s=1 is 1
		self.assertAlmostEqual(geom.edge_eval(Co2(0, 0), Co2(1, 3), Co2(4, 4)), 2.0)

	def test_vertical_edge_is_zero (self):
		self.assertEqual(geom.edge_eval(Co2(1, 0), Co2(1, 1), Co2(1, 2)), 0.0)
		self.assertEqual(geom.edge_sign(Co2(1, 0), Co2(1, 1), Co2(1, 2)), 0.0)

	def test_transposed (self):
		u, w = Co2(0, 0), Co2(0, 2)
		self.assertAlmostEqual(geom.trans_eval(u, Co2(1, 1), w), 1.0)
		self.assertGreater(geom.trans_sign(u, Co2(1, 1), w), 0)


class TestHelpers(unittest.TestCase):
	def test_interpolate (self):
		self.assertAlmostEqual(geom.interpolate(1, 0.0, 1, 10.0), 5.0)
		self.assertAlmostEqual(geom.interpolate(1, 0.0, 3, 10.0), 2.5)
		self.assertAlmostEqual(geom.interpolate(3, 0.0, 1, 10.0), 7.5)
		# negative weights clamp to zero
		self.assertAlmostEqual(geom.interpolate(-1, 0.0, 1, 10.0), 0.0)
		self.assertAlmostEqual(geom.interpolate(0, 0.0, 0, 10.0), 5.0)

	def test_vert_ccw (self):
		self.assertTrue(geom.vert_ccw(Co2(0, 0), Co2(1, 0), Co2(0, 1)))
		self.assertFalse(geom.vert_ccw(Co2(0, 0), Co2(0, 1), Co2(1, 0)))

	def test_l1_dist (self):
		self.assertEqual(geom.vert_l1_dist(Co2(0, 0), Co2(1, -2)), 3.0)

	def test_areas (self):
		square = [(0, 0), (2, 0), (2, 2), (0, 2)]
		self.assertAlmostEqual(geom.polygon_area(square), 4.0)
		self.assertAlmostEqual(geom.polygon_area(square[::-1]), -4.0)
		loop = [Co2(p) for p in square]
		self.assertAlmostEqual(geom.face_area(loop), 4.0)
		self.assertAlmostEqual(geom.face_area(loop[::-1]), -4.0)

	def test_in_circle (self):
		a, b, c = Co2(0, 0), Co2(2, 0), Co2(0, 2)
		self.assertGreater(geom.in_circle(Co2(0.5, 0.5), a, b, c), 0)
		self.assertLess(geom.in_circle(Co2(5, 5), a, b, c), 0)

	def test_axes (self):
		self.assertEqual(geom.long_axis(Co3(0.1, -3, 2))[0], 1)
		self.assertEqual(geom.short_axis(Co3(0.1, -3, 2))[0], 0)


class TestEdgeIntersect(unittest.TestCase):
	def test_crossing_diagonals (self):
		v = geom.edge_intersect(Co2(0, 0), Co2(2, 2), Co2(0, 2), Co2(2, 0))
		self.assertAlmostEqual(v.x, 1.0)
		self.assertAlmostEqual(v.y, 1.0)

	def test_argument_order_does_not_matter (self):
		v = geom.edge_intersect(Co2(2, 0), Co2(0, 2), Co2(2, 2), Co2(0, 0))
		self.assertAlmostEqual(v.x, 1.0)
		self.assertAlmostEqual(v.y, 1.0)

	def test_result_within_bounding_boxes (self):
		o1, d1 = Co2(0, 0), Co2(10, 1)
		o2, d2 = Co2(0, 1), Co2(10, 0)
		v = geom.edge_intersect(o1, d1, o2, d2)
		self.assertAlmostEqual(v.x, 5.0)
		self.assertAlmostEqual(v.y, 0.5)
		self.assertTrue(0 <= v.x <= 10)
		self.assertTrue(0 <= v.y <= 1)


if __name__ == '__main__':
	unittest.main()
