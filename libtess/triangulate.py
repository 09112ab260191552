'''
One-call triangulation for the common case of a single 2D polygon.
'''
import logging
from collections.abc import Sequence

from libtess.constants import UNDEF
from libtess.tess import ElementType, Tesselator, WindingRule

logger = logging.getLogger(__name__)

Point = tuple[float, float]


def triangulate (
	points: Sequence[Sequence[float]],
	winding_rule: WindingRule = WindingRule.ODD
) -> tuple[list[Point], list[int]] | None:
	'''
	Triangulates the polygon `points` (x, y pairs, implicitly closed).

	Returns `(vertices, indices)` with three indices per triangle, or None
	when there are fewer than three points or nothing is left inside.
	'''
	if len(points) < 3:
		return None

	t = Tesselator()
	t.normal.xyz = 0.0, 0.0, 1.0
	t.add_contour([(p[0], p[1]) for p in points])
	t.tesselate(winding_rule, ElementType.POLYGONS, poly_size=3)

	if t.element_count == 0:
		logger.debug('polygon of %d points produced no triangles', len(points))
		return None

	vertices = [(cv.position.x, cv.position.y) for cv in t.vertices]
	indices = [i for i in t.elements if i != UNDEF]
	return vertices, indices


def triangle_area_sum (vertices: Sequence[Sequence[float]], indices: Sequence[int]) -> float:
	'Total unsigned area of the triangles `indices` (three per triangle) index into `vertices`'
	total = 0.0
	for k in range(0, len(indices) - 2, 3):
		a = vertices[indices[k]]
		b = vertices[indices[k + 1]]
		c = vertices[indices[k + 2]]
		total += abs((b[0] - a[0]) * (c[1] - a[1]) - (c[0] - a[0]) * (b[1] - a[1])) * 0.5
	return total
