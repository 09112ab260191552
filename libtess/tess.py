'''
Sweep-line tessellator.

Contours are loaded into a half-edge mesh, projected onto a plane and swept
left to right in (s, t). The sweep maintains an ordered dictionary of the
edges crossing the sweep line; the space between two neighbouring edges is
an `ActiveRegion` carrying the winding number of that region. When the
sweep is done every face of the mesh is monotone and marked inside or
outside according to the winding rule. Inside faces are then triangulated
(optionally merged into convex polygons) or reduced to their boundary.

Invariants kept by the dictionary while the sweep line sits at `event`:

* every two neighbouring edges are ordered by `edge_leq` at the event;
* neighbouring edges do not intersect left of the event;
* each region's winding number is that of the region above plus the upper
  edge's winding.
'''
import logging
import math
import random
from collections.abc import Callable, Sequence
from enum import Enum, auto as iota
from typing import Any, NamedTuple

from libtess import geom
from libtess.constants import (
	DEFAULT_POLY_SIZE,
	PQ_EXTRA_VERTS,
	S_UNIT_FLAT,
	S_UNIT_SLANTED,
	SENTINEL_MARGIN,
	SWEEP_SLACK,
	UNDEF,
)
from libtess.ds.coord import Co2, Co3
from libtess.ds.ordered import Ordered
from libtess.ds.pool import Pool
from libtess.ds.priority import Priority
from libtess.errors import TessellationError
from libtess.mesh import Edge, Mesh, Vertex

logger = logging.getLogger(__name__)


class ElementType(Enum):
	POLYGONS           = iota()
	CONNECTED_POLYGONS = iota()
	BOUNDARY_CONTOURS  = iota()


class WindingRule(Enum):
	ODD         = iota(), lambda n: (n & 1) == 1
	NONZERO     = iota(), lambda n: n != 0
	POSITIVE    = iota(), lambda n: n > 0
	NEGATIVE    = iota(), lambda n: n < 0
	ABS_GEQ_TWO = iota(), lambda n: (n >= 2) or (n <= -2)

	def is_inside (self, n: int) -> bool:
		return self.value[1](n)


class ContourOrientation(Enum):
	ORIGINAL          = iota()
	CLOCKWISE         = iota()
	COUNTER_CLOCKWISE = iota()


class ContourVertex(NamedTuple):
	position: Co3
	data: Any = None


CombineCallback = Callable[[Co3, list[Any], list[float]], Any]


class ActiveRegion:
	def __init__ (self):
		self.edge_up: Edge = None
		self.node_up: Ordered.Node = None

		self.winding_number: int = 0

		self.is_inside   = False
		self.is_sentinel = False
		self.is_dirty    = False
		# Temporary edge added by `connect_right_vertex`
		self.fix_upper   = False

	def reset (self):
		self.edge_up = None
		self.node_up = None
		self.winding_number = 0
		self.is_inside = False
		self.is_sentinel = False
		self.is_dirty = False
		self.fix_upper = False

	@property
	def below (self) -> 'ActiveRegion':
		return self.node_up.prev.item

	@property
	def above (self) -> 'ActiveRegion':
		return self.node_up.next.item

	def __repr__ (self):
		return f'<ActiveRegion {self.edge_up!r} wn={self.winding_number}>'


class Tesselator:
	def __init__ (self):
		self.mesh: Mesh = None

		# Zero means "compute it from the contours"
		self.normal = Co3()
		self.s_unit = Co2(*S_UNIT_FLAT)

		self.bounds_min = Co2()
		self.bounds_max = Co2()

		self.process_cdt = False
		self.no_empty_polygons = False

		self.winding_rule = WindingRule.ODD
		self.combine: CombineCallback = None

		self.dict: Ordered[ActiveRegion] = None
		self.pq: Priority[Vertex] = None
		self.event: Vertex = None
		self._regions = Pool(ActiveRegion)

		self.vertex_index_counter = 0

		self.vertices       = list[ContourVertex]()
		self.vertex_indices = list[int]()
		self.elements       = list[int]()
		self.vertex_count   = 0
		self.element_count  = 0

	def auto_set_s_unit (self, mode: str):
		if mode == 'flat':
			self.s_unit = Co2(*S_UNIT_FLAT)
		elif mode == 'slanted':
			# Pre-normalized
			self.s_unit = Co2(*S_UNIT_SLANTED)
		elif mode == 'random':
			x = random.random() * 2.0 - 1.0
			y = random.random() * 2.0 - 1.0
			ln = math.hypot(x, y) or 1.0
			self.s_unit = Co2(x / ln, y / ln)
		else:
			raise ValueError(f'unknown s_unit mode {mode!r}')

	# Input

	def add_contour (
		self,
		vertices: Sequence,
		orientation: ContourOrientation = ContourOrientation.ORIGINAL
	):
		'''
		Adds one closed contour. Items of `vertices` are `ContourVertex`
		instances or plain 2- or 3-component sequences (z defaults to 0).

		With `orientation` other than `ORIGINAL` the contour is reversed when
		its signed area in the xy plane disagrees with the requested turn.
		Turns are named for a y-down frame: `CLOCKWISE` keeps contours whose
		`geom.polygon_area` is non-negative, `COUNTER_CLOCKWISE` keeps those
		whose area is non-positive.
		'''
		if self.mesh is None:
			self.mesh = Mesh()

		contour = [self._as_contour_vertex(co) for co in vertices]

		reverse = False
		if orientation is not ContourOrientation.ORIGINAL:
			area = geom.polygon_area([cv.position for cv in contour])
			reverse = (
				(orientation is ContourOrientation.CLOCKWISE and area < 0) or
				(orientation is ContourOrientation.COUNTER_CLOCKWISE and area > 0)
			)
		if reverse:
			contour.reverse()

		mesh = self.mesh
		e: Edge = None
		for cv in contour:
			if e is None:
				# Make a self-loop (one vertex, one edge)
				e = mesh.make_edge()
				mesh.splice(e, e.twin)
			else:
				# The new vertex and edge immediately follow e around the left face
				mesh.split_edge(e)
				e = e.lnext

			e.org.src_co = cv.position.copy()
			e.org.data = cv.data
			e.org.index = self.vertex_index_counter
			self.vertex_index_counter += 1

			# A CCW contour adds +1 to the winding number of the region inside it
			e.winding = 1
			e.twin.winding = -1

	@staticmethod
	def _as_contour_vertex (co) -> ContourVertex:
		if isinstance(co, ContourVertex):
			return ContourVertex(Co3(co.position), co.data)
		if len(co) < 2:
			raise ValueError(f'contour vertex needs at least 2 components, got {co!r}')
		z = co[2] if len(co) > 2 else 0.0
		return ContourVertex(Co3(co[0], co[1], z))

	# Projection

	def project_polygon (self, normal: Co3, true_project = True):
		'''
		Projects every vertex onto the sweep plane. With `true_project` the
		`s` axis is `s_unit` projected into the polygon plane, otherwise it is
		`s_unit` laid on the two minor axes of the normal.
		'''
		norm = normal.copy()
		computed_normal = False
		if norm == Co3.ZERO:
			norm = self.mesh.compute_normal()
			computed_normal = True

		sux, suy = self.s_unit

		i = geom.long_axis(norm)[0]
		j = (i + 1) % 3
		k = (i + 2) % 3

		s_unit = Co3()
		s_unit[i, j, k] = 0.0, sux, suy
		t_unit = Co3()

		if true_project:
			norm.normalize()

			w = s_unit.dot(norm)
			s_unit = (s_unit - w * norm).normalize()
			t_unit = norm.cross(s_unit).normalize()
		else:
			gt = norm[i] > 0
			t_unit[i, j, k] = (
				0.0,
				-suy if gt else +suy,
				+sux if gt else -sux
			)

		for v in self.mesh.vertices():
			v.co.xy = (
				v.src_co.dot(s_unit),
				v.src_co.dot(t_unit)
			)

		if computed_normal:
			self.check_orientation()

		first = True
		for v in self.mesh.vertices():
			x, y = v.co
			if first:
				self.bounds_min.xy = self.bounds_max.xy = x, y
				first = False
			else:
				self.bounds_min.x = min(self.bounds_min.x, x)
				self.bounds_min.y = min(self.bounds_min.y, y)
				self.bounds_max.x = max(self.bounds_max.x, x)
				self.bounds_max.y = max(self.bounds_max.y, y)

	def check_orientation (self):
		'''
		With a computed normal the sign is arbitrary; pick the one that makes
		the summed signed area of the contours non-negative.
		'''
		area = 0.0
		for f in self.mesh.faces():
			if f.edge.winding <= 0:
				continue
			area += f.area()

		if area < 0:
			for v in self.mesh.vertices():
				v.co.y = -v.co.y

	# Sweep

	def edge_leq (self, reg1: ActiveRegion, reg2: ActiveRegion) -> bool:
		'''
		Both upper edges point right to left. Compares where the two edges
		cross the sweep line at the current event; edges that both end at
		the event are ordered by slope instead.
		'''
		e1 = reg1.edge_up
		e2 = reg2.edge_up
		event = self.event

		if e1.dst is event:
			if e2.dst is event:
				if geom.vert_leq(e1.org.co, e2.org.co):
					return geom.edge_sign(e2.dst.co, e1.org.co, e2.org.co) <= 0
				return geom.edge_sign(e1.dst.co, e2.org.co, e1.org.co) >= 0
			return geom.edge_sign(e2.dst.co, event.co, e2.org.co) <= 0
		if e2.dst is event:
			return geom.edge_sign(e1.dst.co, event.co, e1.org.co) >= 0

		t1 = geom.edge_eval(e1.dst.co, event.co, e1.org.co)
		t2 = geom.edge_eval(e2.dst.co, event.co, e2.org.co)
		return t1 >= t2

	def delete_region (self, reg: ActiveRegion):
		if reg.fix_upper:
			# It was created with zero winding number, so it better be
			# deleted with zero winding number (ie. it better not get merged
			# with a real edge).
			assert reg.edge_up.winding == 0
		reg.edge_up.active_region = None
		reg.node_up.delete()
		self._regions.repool(reg)

	def fix_upper_edge (self, reg: ActiveRegion, new: Edge):
		assert reg.fix_upper
		self.mesh.delete(reg.edge_up)
		reg.fix_upper = False
		reg.edge_up = new
		new.active_region = reg

	def topleft_region (self, reg: ActiveRegion) -> ActiveRegion:
		org = reg.edge_up.org
		while (reg:=reg.above).edge_up.org is org:
			pass

		# A temporary edge above is fixed now that its origin is processed
		if reg.fix_upper:
			e = self.mesh.connect(reg.below.edge_up.twin, reg.edge_up.lnext)
			self.fix_upper_edge(reg, e)
			reg = reg.above
		return reg

	def topright_region (self, reg: ActiveRegion) -> ActiveRegion:
		dst = reg.edge_up.dst
		while (reg:=reg.above).edge_up.dst is dst:
			pass
		return reg

	def add_region_below (self, above: ActiveRegion, new_up: Edge) -> ActiveRegion:
		'''
		Adds a region somewhere below `above`, wherever `new_up` sorts in the
		dictionary. Winding number and inside flag are left for the caller.
		'''
		new = self._regions.pull()
		new.edge_up = new_up
		new.node_up = self.dict.insert_before(above.node_up, new)

		new_up.active_region = new
		return new

	def compute_winding (self, reg: ActiveRegion):
		reg.winding_number = reg.above.winding_number + reg.edge_up.winding
		reg.is_inside = self.winding_rule.is_inside(reg.winding_number)

	def finish_region (self, reg: ActiveRegion):
		'''
		The upper and lower chains of `reg` met at the event, so its face is
		complete. Copies the inside flag onto it and drops the region.
		'''
		e = reg.edge_up
		f = e.lface

		f.inside = reg.is_inside
		f.edge = e
		self.delete_region(reg)

	def finish_left_regions (self, first: ActiveRegion, last: ActiveRegion | None) -> Edge:
		'''
		Walks down from `first` deleting every region whose edges share the
		event as origin, stopping above `last` (or as far as possible when it
		is None). Edges around the event are relinked to match the
		dictionary order. Returns the lowest left-going edge.
		'''
		reg_prev = first
		e_prev = first.edge_up
		while reg_prev is not last:
			reg_prev.fix_upper = False # placement was OK
			reg = reg_prev.below
			e = reg.edge_up
			if e.org is not e_prev.org:
				if not reg.fix_upper:
					# There may be more left-going edges in the mesh even if
					# not in the dictionary, so finish rather than delete.
					self.finish_region(reg_prev)
					break
				e = self.mesh.connect(e_prev.lprev, e.twin)
				self.fix_upper_edge(reg, e)

			# Relink so that e_prev.onext is e
			if e_prev.onext is not e:
				self.mesh.splice(e.oprev, e)
				self.mesh.splice(e_prev, e)
			self.finish_region(reg_prev) # may change reg.edge_up
			e_prev = reg.edge_up
			reg_prev = reg
		return e_prev

	def add_right_edges (
		self,
		reg_up: ActiveRegion,
		first: Edge,
		last: Edge,
		topleft_edge: Edge | None,
		do_cleanup: bool
	):
		'''
		Inserts the right-going edges `first` .. `last.oprev` (CCW around the
		event) below `reg_up` and updates winding numbers and mesh links.
		`topleft_edge` is the processed edge just above the event's upward
		vertical, or None when the event has no processed left edges.
		'''
		e = first
		while True:
			assert geom.vert_leq(e.org.co, e.dst.co)
			self.add_region_below(reg_up, e.twin)
			if (e:=e.onext) is last:
				break

		if topleft_edge is None:
			topleft_edge = reg_up.below.edge_up.rprev

		reg_prev = reg_up
		e_prev = topleft_edge
		first_time = True
		while True:
			reg = reg_prev.below
			e = reg.edge_up.twin
			if e.org is not e_prev.org:
				break

			if e.onext is not e_prev:
				# Unlink e from its current position, and relink below e_prev
				self.mesh.splice(e.oprev, e)
				self.mesh.splice(e_prev.oprev, e)

			reg.winding_number = reg_prev.winding_number - e.winding
			reg.is_inside = self.winding_rule.is_inside(reg.winding_number)

			# Two outgoing edges with the same slope are merged before any
			# intersection tests
			reg_prev.is_dirty = True
			if not first_time and self.check_for_right_splice(reg_prev):
				e.add_winding(e_prev)
				self.delete_region(reg_prev)
				self.mesh.delete(e_prev)
			first_time = False
			reg_prev = reg
			e_prev = e

		reg_prev.is_dirty = True
		assert (reg_prev.winding_number - e.winding) == reg.winding_number

		if do_cleanup:
			self.walk_dirty_regions(reg_prev)

	def splice_merge_vertices (self, e1: Edge, e2: Edge):
		'Two vertices at the same position become one; `e1.org` survives'
		self.mesh.splice(e1, e2)

	def vertex_weights (self, isect: Vertex, org: Vertex, dst: Vertex) -> tuple[float, float]:
		'''
		Splits half of the intersection's weight between `org` and `dst` by
		their relative L1 distance to it, and accumulates the weighted source
		position into `isect.src_co`.
		'''
		t1 = geom.vert_l1_dist(org.co, isect.co)
		t2 = geom.vert_l1_dist(dst.co, isect.co)

		if t1 + t2 > 0:
			w0 = 0.5 * t2 / (t1 + t2)
			w1 = 0.5 * t1 / (t1 + t2)
		else:
			w0 = w1 = 0.25

		isect.src_co = isect.src_co + w0 * org.src_co + w1 * dst.src_co
		return w0, w1

	def get_intersect_data (
		self,
		isect: Vertex,
		org_up: Vertex, dst_up: Vertex,
		org_lo: Vertex, dst_lo: Vertex
	):
		isect.src_co = Co3()
		isect.index = UNDEF
		w0, w1 = self.vertex_weights(isect, org_up, dst_up)
		w2, w3 = self.vertex_weights(isect, org_lo, dst_lo)

		if self.combine is not None:
			isect.data = self.combine(
				isect.src_co.copy(),
				[org_up.data, dst_up.data, org_lo.data, dst_lo.data],
				[w0, w1, w2, w3]
			)

	def check_for_right_splice (self, reg_up: ActiveRegion) -> bool:
		'''
		Makes sure `e_up.org` is above `e_lo` or `e_lo.org` is below `e_up`,
		whichever origin is leftmost, by splicing the offending vertex into
		the other edge. This is how right-going edges with numerically equal
		slopes get merged, and how later edge splits that flip an earlier
		comparison get repaired.
		'''
		reg_lo = reg_up.below
		e_up = reg_up.edge_up
		e_lo = reg_lo.edge_up

		if geom.vert_leq(e_up.org.co, e_lo.org.co):
			if geom.edge_sign(e_lo.dst.co, e_up.org.co, e_lo.org.co) > 0:
				return False

			# e_up.org appears to be below e_lo
			if not geom.vert_eq(e_up.org.co, e_lo.org.co):
				# Splice e_up.org into e_lo
				self.mesh.split_edge(e_lo.twin)
				self.mesh.splice(e_up, e_lo.oprev)
				reg_up.is_dirty = reg_lo.is_dirty = True

			elif e_up.org is not e_lo.org:
				# Merge the two vertices, discarding e_up.org
				del self.pq[e_up.org.pq_handle]
				self.splice_merge_vertices(e_lo.oprev, e_up)
		else:
			if geom.edge_sign(e_up.dst.co, e_lo.org.co, e_up.org.co) < 0:
				return False

			# e_lo.org appears to be above e_up, so splice it into e_up
			reg_up.above.is_dirty = reg_up.is_dirty = True
			self.mesh.split_edge(e_up.twin)
			self.mesh.splice(e_lo.oprev, e_up)
		return True

	def check_for_left_splice (self, reg_up: ActiveRegion) -> bool:
		'''
		Same as `check_for_right_splice` for the destinations: makes sure
		`e_up.dst` is above `e_lo` or `e_lo.dst` is below `e_up`, whichever is
		rightmost.
		'''
		reg_lo = reg_up.below
		e_up = reg_up.edge_up
		e_lo = reg_lo.edge_up

		assert not geom.vert_eq(e_up.dst.co, e_lo.dst.co)

		if geom.vert_leq(e_up.dst.co, e_lo.dst.co):
			if geom.edge_sign(e_up.dst.co, e_lo.dst.co, e_up.org.co) < 0:
				return False

			# e_lo.dst is above e_up, so splice it into e_up
			reg_up.above.is_dirty = reg_up.is_dirty = True
			e = self.mesh.split_edge(e_up)
			self.mesh.splice(e_lo.twin, e)
			e.lface.inside = reg_up.is_inside
		else:
			if geom.edge_sign(e_lo.dst.co, e_up.dst.co, e_lo.org.co) > 0:
				return False

			# e_up.dst is below e_lo, so splice it into e_lo
			reg_up.is_dirty = reg_lo.is_dirty = True
			e = self.mesh.split_edge(e_lo)
			self.mesh.splice(e_up.lnext, e_lo.twin)
			e.rface.inside = reg_up.is_inside
		return True

	def check_for_intersect (self, reg_up: ActiveRegion) -> bool:
		'''
		Checks the upper and lower edges of `reg_up` for an intersection and
		adds it to the mesh and the event queue.

		Returns True when handling it recursed into `add_right_edges`, in which
		case every dirty region has been handled and `reg_up` may be gone.
		'''
		reg_lo = reg_up.below
		e_up = reg_up.edge_up
		e_lo = reg_lo.edge_up
		org_up = e_up.org
		org_lo = e_lo.org
		dst_up = e_up.dst
		dst_lo = e_lo.dst
		event = self.event

		assert not geom.vert_eq(dst_lo.co, dst_up.co)
		assert geom.edge_sign(dst_up.co, event.co, org_up.co) <= 0
		assert geom.edge_sign(dst_lo.co, event.co, org_lo.co) >= 0
		assert org_up is not event and org_lo is not event
		assert not (reg_up.fix_upper or reg_lo.fix_upper)

		if org_up is org_lo:
			# Right endpoints are the same
			return False

		t_min_up = min(org_up.co.y, dst_up.co.y)
		t_max_lo = max(org_lo.co.y, dst_lo.co.y)
		if t_min_up > t_max_lo:
			# t ranges do not overlap
			return False

		if geom.vert_leq(org_up.co, org_lo.co):
			if geom.edge_sign(dst_lo.co, org_up.co, org_lo.co) > 0:
				return False
		else:
			if geom.edge_sign(dst_up.co, org_lo.co, org_up.co) < 0:
				return False

		# At this point the edges intersect, at least marginally
		isect = geom.edge_intersect(dst_up.co, org_up.co, dst_lo.co, org_lo.co)

		assert min(org_up.co.y, dst_up.co.y) <= isect.y
		assert isect.y <= max(org_lo.co.y, dst_lo.co.y)
		assert min(dst_lo.co.x, dst_up.co.x) <= isect.x
		assert isect.x <= max(org_lo.co.x, org_up.co.x)

		if geom.vert_leq(isect, event.co):
			# Slightly left of the sweep line through rounding. Use the event.
			logger.debug('intersection %r clamped to sweep event %r', isect, event.co)
			isect.xy = event.co.xy

		# Right of the rightmost origin is just as wrong, and on degenerate
		# input it makes the sweep crawl
		org_min = org_up if geom.vert_leq(org_up.co, org_lo.co) else org_lo
		if geom.vert_leq(org_min.co, isect):
			logger.debug('intersection %r clamped to origin %r', isect, org_min.co)
			isect.xy = org_min.co.xy

		if geom.vert_eq(isect, org_up.co) or geom.vert_eq(isect, org_lo.co):
			# Easy case, intersection at one of the right endpoints
			self.check_for_right_splice(reg_up)
			return False

		if ((
				not geom.vert_eq(dst_up.co, event.co) and
				geom.edge_sign(dst_up.co, event.co, isect) >= 0
			) or (
				not geom.vert_eq(dst_lo.co, event.co) and
				geom.edge_sign(dst_lo.co, event.co, isect) <= 0
		)):
			# The new upper or lower edge would pass on the wrong side of the
			# event, or through it
			if dst_lo is event:
				# Splice dst_lo into e_up, and process the new region(s)
				self.mesh.split_edge(e_up.twin)
				self.mesh.splice(e_lo.twin, e_up)
				reg_up = self.topleft_region(reg_up)
				e_up = reg_up.below.edge_up
				self.finish_left_regions(reg_up.below, reg_lo)
				self.add_right_edges(reg_up, e_up.oprev, e_up, e_up, True)
				return True

			if dst_up is event:
				# Splice dst_up into e_lo, and process the new region(s)
				self.mesh.split_edge(e_lo.twin)
				self.mesh.splice(e_up.lnext, e_lo.oprev)
				reg_lo = reg_up
				reg_up = self.topright_region(reg_up)
				e = reg_up.below.edge_up.rprev
				reg_lo.edge_up = e_lo.oprev
				e_lo = self.finish_left_regions(reg_lo, None)
				self.add_right_edges(reg_up, e_lo.onext, e_up.rprev, e, True)
				return True

			# Called from connect_right_vertex. Split whichever edge passes on
			# the wrong side and leave the splicing to the caller.
			if geom.edge_sign(dst_up.co, event.co, isect) >= 0:
				reg_up.above.is_dirty = reg_up.is_dirty = True
				self.mesh.split_edge(e_up.twin)
				e_up.org.co.xy = event.co.xy

			if geom.edge_sign(dst_lo.co, event.co, isect) <= 0:
				reg_up.is_dirty = reg_lo.is_dirty = True
				self.mesh.split_edge(e_lo.twin)
				e_lo.org.co.xy = event.co.xy
			return False

		# General case: split both edges and splice them into a new vertex.
		# Faces in the processed part of the mesh (e_up.lface) are expected to
		# be smaller than the unprocessed contours, which decides the order.
		self.mesh.split_edge(e_up.twin)
		self.mesh.split_edge(e_lo.twin)
		self.mesh.splice(e_lo.oprev, e_up)
		e_up.org.co.xy = isect.xy
		e_up.org.pq_handle = self.pq.insert(e_up.org)

		self.get_intersect_data(e_up.org, org_up, dst_up, org_lo, dst_lo)
		reg_up.above.is_dirty = reg_up.is_dirty = reg_lo.is_dirty = True
		return False

	def walk_dirty_regions (self, reg_up: ActiveRegion):
		'''
		Restores the dictionary invariants around every dirty region, bottom
		up. Fixing one region can dirty others.
		'''
		reg_lo = reg_up.below

		while True:
			# Find the lowest dirty region
			while reg_lo.is_dirty:
				reg_up = reg_lo
				reg_lo = reg_lo.below

			if not reg_up.is_dirty:
				reg_lo = reg_up
				reg_up = reg_up.above
				if (reg_up is None) or (not reg_up.is_dirty):
					return # walked all dirty regions
			reg_up.is_dirty = False
			e_up = reg_up.edge_up
			e_lo = reg_lo.edge_up

			if e_up.dst is not e_lo.dst:
				# Check the ordering at the destinations
				if self.check_for_left_splice(reg_up):
					# A temporary edge is no longer needed once its vertex
					# has a right-going edge
					if reg_lo.fix_upper:
						self.delete_region(reg_lo)
						self.mesh.delete(e_lo)
						reg_lo = reg_up.below
						e_lo = reg_lo.edge_up
					elif reg_up.fix_upper:
						self.delete_region(reg_up)
						self.mesh.delete(e_up)
						reg_up = reg_lo.above
						e_up = reg_up.edge_up

			if e_up.org is not e_lo.org:
				if (
					(e_up.dst is not e_lo.dst) and
					not (reg_up.fix_upper or reg_lo.fix_upper) and
					((e_up.dst is self.event) or (e_lo.dst is self.event))
				):
					# check_for_intersect may fall back on the event as the
					# intersection, so it must lie between the two edges and
					# neither may be a temporary one.
					if self.check_for_intersect(reg_up):
						return # Called recursively; finished now.
				else:
					self.check_for_right_splice(reg_up)

			if (e_up.org is e_lo.org) and (e_up.dst is e_lo.dst):
				# A degenerate loop of two edges
				e_lo.add_winding(e_up)
				self.delete_region(reg_up)
				self.mesh.delete(e_up)
				reg_up = reg_lo.above

	def connect_right_vertex (self, reg_up: ActiveRegion, bottomleft_edge: Edge):
		'''
		The event has only left-going edges, so the regions above and below it
		merge. A temporary "fixable" edge to the nearer origin of the two
		chains keeps the event on record (and keeps the merged region
		monotone) until the leftmost unprocessed vertex of the combined region
		is known.
		'''
		topleft_edge = bottomleft_edge.onext
		reg_lo = reg_up.below
		e_up = reg_up.edge_up
		e_lo = reg_lo.edge_up
		degenerate = False

		if e_up.dst is not e_lo.dst:
			self.check_for_intersect(reg_up)

		# The upper or lower edge may now pass through the event, or meet the
		# new intersection vertex
		if geom.vert_eq(e_up.org.co, self.event.co):
			self.mesh.splice(topleft_edge.oprev, e_up)
			reg_up = self.topleft_region(reg_up)
			topleft_edge = reg_up.below.edge_up
			self.finish_left_regions(reg_up.below, reg_lo)
			degenerate = True

		if geom.vert_eq(e_lo.org.co, self.event.co):
			self.mesh.splice(bottomleft_edge, e_lo.oprev)
			bottomleft_edge = self.finish_left_regions(reg_lo, None)
			degenerate = True

		if degenerate:
			self.add_right_edges(reg_up, bottomleft_edge.onext, topleft_edge, topleft_edge, True)
			return

		if geom.vert_leq(e_lo.org.co, e_up.org.co):
			e_new = e_lo.oprev
		else:
			e_new = e_up
		e_new = self.mesh.connect(bottomleft_edge.lprev, e_new)

		# No cleanup yet, otherwise e_new might disappear before it is marked
		self.add_right_edges(reg_up, e_new, e_new.onext, e_new.onext, False)
		e_new.twin.active_region.fix_upper = True
		self.walk_dirty_regions(reg_up)

	def connect_left_degen (self, reg_up: ActiveRegion, event: Vertex):
		'''The event lies exactly on an already processed edge or vertex.'''
		e = reg_up.edge_up
		if geom.vert_eq(e.org.co, event.co):
			raise TessellationError(f'vertex at {event.co!r} should have been merged before the sweep')

		if not geom.vert_eq(e.dst.co, event.co):
			# Splice the event into the edge passing through it
			self.mesh.split_edge(e.twin)
			if reg_up.fix_upper:
				# Delete the unused part of the temporary edge
				self.mesh.delete(e.onext)
				reg_up.fix_upper = False
			self.mesh.splice(event.edge, e)
			self.sweep_event(event)
			return

		raise TessellationError(f'vertex at {event.co!r} should have been merged before the sweep')

	def connect_left_vertex (self, event: Vertex):
		'''
		The event has only right-going edges. Either it splits the region
		containing it (connecting to the rightmost processed vertex of the
		region's chains), or it lies on one of those chains and is merged.
		'''
		with self._regions.temporary() as tmp:
			tmp.edge_up = event.edge.twin
			reg_up = self.dict.search(tmp).item

		reg_lo = reg_up.below
		if reg_lo is None:
			# Happens with collinear input
			return

		e_up = reg_up.edge_up
		e_lo = reg_lo.edge_up

		if geom.edge_sign(e_up.dst.co, event.co, e_up.org.co) == 0:
			self.connect_left_degen(reg_up, event)
			return

		# e.dst is the vertex we connect the event to
		reg = reg_up if geom.vert_leq(e_lo.dst.co, e_up.dst.co) else reg_lo

		if reg_up.is_inside or reg.fix_upper:
			if reg is reg_up:
				e_new = self.mesh.connect(event.edge.twin, e_up.lnext)
			else:
				e_new = self.mesh.connect(e_lo.dnext, event.edge).twin
			if reg.fix_upper:
				self.fix_upper_edge(reg, e_new)
			else:
				self.compute_winding(self.add_region_below(reg_up, e_new))
			self.sweep_event(event)
		else:
			# Outside the polygon, no need to connect it to anything
			self.add_right_edges(reg_up, event.edge, event.edge, None, True)

	def sweep_event (self, event: Vertex):
		self.event = event

		# If some edge of the event is already in the dictionary, its
		# region is the place to start from
		e = event.edge
		while e.active_region is None:
			e = e.onext
			if e is event.edge:
				# All edges go right
				self.connect_left_vertex(event)
				return

		# Finish the regions closed off by the event (its left-going edges)...
		reg_up = self.topleft_region(e.active_region)
		reg = reg_up.below
		topleft_edge = reg.edge_up
		bottomleft_edge = self.finish_left_regions(reg, None)

		# ...then add its right-going edges
		if bottomleft_edge.onext is topleft_edge:
			self.connect_right_vertex(reg_up, bottomleft_edge)
		else:
			self.add_right_edges(reg_up, bottomleft_edge.onext, topleft_edge, topleft_edge, True)

	def add_sentinel (self, s_min: float, s_max: float, t: float):
		'Horizontal edge above or below everything, so the sweep never runs off the dictionary'
		e = self.mesh.make_edge()

		e.org.co.xy = s_max, t
		e.dst.co.xy = s_min, t
		self.event = e.dst

		reg = self._regions.pull()
		reg.edge_up = e
		reg.is_sentinel = True
		reg.node_up = self.dict.insert(reg)

	def init_edge_dict (self):
		self.dict = Ordered[ActiveRegion](cmp=self.edge_leq)

		w = (self.bounds_max.x - self.bounds_min.x) + SENTINEL_MARGIN
		h = (self.bounds_max.y - self.bounds_min.y) + SENTINEL_MARGIN

		s_min = self.bounds_min.x - w
		t_min = self.bounds_min.y - h
		s_max = self.bounds_max.x + w
		t_max = self.bounds_max.y + h

		self.add_sentinel(s_min, s_max, t_min)
		self.add_sentinel(s_min, s_max, t_max)

	def done_edge_dict (self):
		fixed_edges = 0

		while (reg:=self.dict.min().item) is not None:
			# Only the sentinels remain, plus at most one temporary edge
			if not reg.is_sentinel:
				assert reg.fix_upper
				fixed_edges += 1
				assert fixed_edges == 1
			assert reg.winding_number == 0
			self.delete_region(reg)
		self.dict = None

	def init_pq (self) -> int:
		'Queues every vertex in sweep order; returns how many there are'
		vertices = list(self.mesh.vertices())

		pq = self.pq = Priority[Vertex](
			size=len(vertices) + PQ_EXTRA_VERTS,
			cmp=lambda a, b: geom.vert_leq(a.co, b.co)
		)

		for v in vertices:
			v.pq_handle = pq.insert(v)

		pq.init()
		return len(vertices)

	def done_pq (self):
		self.pq = None

	def compute_interior (self):
		'''
		Sweeps the mesh, splitting it into monotone faces each marked inside
		or outside by the winding rule.
		'''
		mesh = self.mesh
		mesh.remove_degenerate_edges()
		n = self.init_pq()
		self.init_edge_dict()

		# Each pair of edges meets at most once, so a sane sweep stays well
		# inside this
		max_events = (n + SWEEP_SLACK) ** 2
		events = 0

		pq = self.pq
		while (v := pq.extract_min()) is not None:
			# Vertices at the same position are handled as one event
			while (v_next := pq.min()) is not None and geom.vert_eq(v_next.co, v.co):
				v_next = pq.extract_min()
				self.splice_merge_vertices(v.edge, v_next.edge)

			events += 1
			if events > max_events:
				raise TessellationError(f'sweep did not finish after {max_events} events')
			self.sweep_event(v)

		logger.debug('sweep done: %d vertices, %d events', n, events)

		self.event = self.dict.min().item.edge_up.org
		self.done_edge_dict()
		self.done_pq()

		mesh.remove_degenerate_faces()
		if __debug__:
			mesh.check()

	# Output

	def _clear_output (self):
		self.vertices = []
		self.vertex_indices = []
		self.elements = []
		self.vertex_count = 0
		self.element_count = 0

	def tesselate (
		self,
		winding_rule: WindingRule = WindingRule.ODD,
		element_type: ElementType = ElementType.POLYGONS,
		poly_size: int = DEFAULT_POLY_SIZE,
		normal = None,
		combine: CombineCallback = None,
		no_empty_polygons = False,
		process_cdt: bool = None
	) -> bool:
		'''
		Tessellates every contour added since the last call.

		Returns False when there was nothing to tessellate. Raises
		`TessellationError` when the sweep fails; outputs are left empty.
		The mesh is released either way, so the instance can be reused.
		'''
		self._clear_output()
		if self.mesh is None:
			return False

		self.winding_rule = winding_rule
		self.combine = combine
		cdt = self.process_cdt if process_cdt is None else process_cdt
		no_empty = self.no_empty_polygons or no_empty_polygons
		normal = self.normal if normal is None else Co3(normal)

		mesh = self.mesh
		logger.debug('tessellating %d input vertices', self.vertex_index_counter)
		try:
			self.project_polygon(normal)
			self.compute_interior()

			if element_type is ElementType.BOUNDARY_CONTOURS:
				mesh.set_winding_number(1, True)
			else:
				mesh.tessellate_interior()
				if cdt:
					mesh.refine_delaunay()

			if __debug__:
				mesh.check()

			if element_type is ElementType.BOUNDARY_CONTOURS:
				self.output_contours()
			else:
				self.output_polymesh(element_type, poly_size, no_empty)
		except Exception:
			self._clear_output()
			raise
		finally:
			self.dict = None
			self.pq = None
			self.event = None
			self._regions.reset()
			mesh.free()
			self.mesh = None
			self.vertex_index_counter = 0

		logger.debug('%d vertices, %d elements', self.vertex_count, self.element_count)
		return True

	def output_polymesh (self, element_type: ElementType, poly_size: int, no_empty = False):
		'''
		Numbers the vertices and faces of the inside region and writes
		`poly_size` vertex indices per face, padded with `UNDEF`. Connected
		polygons are followed by as many neighbour face indices.
		'''
		mesh = self.mesh
		poly_size = max(poly_size, 3)

		if poly_size > 3:
			mesh.merge_convex_faces(poly_size)

		def emitted (f):
			if not f.inside:
				return False
			return not (no_empty and f.area() == 0)

		for v in mesh.vertices():
			v.n = UNDEF

		face_count = 0
		vertex_count = 0
		for f in mesh.faces():
			f.n = UNDEF
			if not emitted(f):
				continue

			face_verts = 0
			for edge in f.loop():
				v = edge.org
				if v.n == UNDEF:
					v.n = vertex_count
					vertex_count += 1
				face_verts += 1
			assert face_verts <= poly_size

			f.n = face_count
			face_count += 1

		self.element_count = face_count
		self.vertex_count = vertex_count

		vertices = [None] * vertex_count
		vertex_indices = [UNDEF] * vertex_count
		for v in mesh.vertices():
			if v.n != UNDEF:
				vertices[v.n] = ContourVertex(v.src_co.copy(), v.data)
				vertex_indices[v.n] = v.index

		elements = list[int]()
		for f in mesh.faces():
			if not emitted(f):
				continue

			loop = list(f.loop())
			padding = [UNDEF] * (poly_size - len(loop))

			elements.extend(e.org.n for e in loop)
			elements.extend(padding)

			if element_type is ElementType.CONNECTED_POLYGONS:
				elements.extend(e.neighbour_face for e in loop)
				elements.extend(padding)

		self.vertices = vertices
		self.vertex_indices = vertex_indices
		self.elements = elements

	def output_contours (self):
		'''
		Writes each boundary loop as a run of vertices; `elements` holds a
		`(start, count)` pair per loop.
		'''
		vertices = list[ContourVertex]()
		vertex_indices = list[int]()
		elements = list[int]()

		for f in self.mesh.faces():
			if not f.inside:
				continue

			start = len(vertices)
			for edge in f.loop():
				vertices.append(ContourVertex(edge.org.src_co.copy(), edge.org.data))
				vertex_indices.append(edge.org.index)
			elements.extend((start, len(vertices) - start))

		self.vertices = vertices
		self.vertex_indices = vertex_indices
		self.elements = elements
		self.vertex_count = len(vertices)
		self.element_count = len(elements) // 2
