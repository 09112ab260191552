'''
Half-edge mesh in the Guibas/Stolfi quad-edge style.

Half-edges come in twin pairs. Each half-edge sits on two circular lists
at once: the edges leaving its origin (`onext`) and the edges bounding its
left face (`lnext`). Rewriting connectivity is a matter of a few pointer
swaps (see `Edge.splice_insert` and `Mesh.splice`).

Vertices, faces and edge pairs are also threaded onto global lists
anchored at `Mesh.vhead`, `Mesh.fhead` and `Mesh.ehead`. New elements are
inserted *before* a given element, so a walk over a list does not see the
elements it creates.
'''
import logging
from typing import Self

from libtess import geom
from libtess.constants import UNDEF
from libtess.ds.coord import Co2, Co3
from libtess.ds.node import Node
from libtess.ds.pool import Pool

logger = logging.getLogger(__name__)


class Vertex(Node):
	def __init__ (self):
		super().__init__()
		self.prev: Self
		self.next: Self
		self.edge: Edge = None

		self.src_co = Co3()
		self.co = Co2()
		self.data = None

		# internal
		self.pq_handle: int = 0
		self.n:         int = UNDEF
		self.index:     int = UNDEF

	def reset (self):
		super().reset()
		self.edge = None
		self.src_co = Co3()
		self.co = Co2()
		self.data = None
		self.pq_handle = 0
		self.n = UNDEF
		self.index = UNDEF

	def ring (self):
		'Edges leaving this vertex, in `onext` order'
		e = self.edge
		while True:
			yield e
			if (e:=e.onext) is self.edge:
				break

	def __eq__ (self, other: Self):
		return self.co == other.co

	def __le__ (self, other: Self):
		return self.co <= other.co

	__hash__ = None

	def __repr__ (self):
		return f'<Vertex {self.co.x:g},{self.co.y:g}>'


class Face(Node):
	def __init__ (self):
		super().__init__()
		self.prev: Self
		self.next: Self
		self.edge: Edge = None

		# internal
		self.n: int = UNDEF

		self.inside = False

	def reset (self):
		super().reset()
		self.edge = None
		self.n = UNDEF
		self.inside = False

	def loop (self):
		'Edges bounding this face, in `lnext` order'
		e = self.edge
		while True:
			yield e
			if (e:=e.lnext) is self.edge:
				break

	def count_verts (self) -> int:
		return sum(1 for _ in self.loop())

	def area (self) -> float:
		'Signed area in (s, t), positive for CCW loops'
		return geom.face_area([e.org.co for e in self.loop()])


class Edge:
	def __init__ (self):
		self.next: Self = self
		self.twin: Self = None
		self.onext: Self = None
		self.lnext: Self = None
		self.org: Vertex = None
		self.lface: Face = None

		# internal
		self.active_region = None
		self.winding = 0
		self.mark = False
		self.first = True

	def reset (self):
		self.next = self
		self.twin = None
		self.onext = None
		self.lnext = None
		self.org = None
		self.lface = None
		self.active_region = None
		self.winding = 0
		self.mark = False
		self.first = True

	dst: Vertex = property(lambda self: self.twin.org,
	                       lambda self, v: setattr(self.twin, 'org', v))

	rface: Face = property(lambda self: self.twin.lface,
	                       lambda self, v: setattr(self.twin, 'lface', v))

	oprev: Self = property(lambda self: self.twin.lnext)
	lprev: Self = property(lambda self: self.onext.twin)
	dprev: Self = property(lambda self: self.lnext.twin)
	rprev: Self = property(lambda self: self.twin.onext)
	dnext: Self = property(lambda self: self.rprev.twin)
	rnext: Self = property(lambda self: self.oprev.twin)

	@property
	def neighbour_face (self) -> int:
		if self.rface is None:
			return UNDEF
		if not self.rface.inside:
			return UNDEF
		return self.rface.n

	@property
	def goes_left (self):
		return geom.edge_goes_left(self.org.co, self.dst.co)

	@property
	def goes_right (self):
		return geom.edge_goes_right(self.org.co, self.dst.co)

	@property
	def is_internal (self):
		return (self.rface is not None) and self.rface.inside

	def is_locally_delaunay (e):
		return geom.in_circle(
			e.twin.lnext.lnext.org.co,
			e.lnext.org.co,
			e.lnext.lnext.org.co,
			e.org.co
		) < 0

	def splice_insert (a: Self, b: Self):
		'''
		Exchanges `a.onext` and `b.onext`, fixing up the `lnext` pointers
		that refer to them. Vertex and face records are left alone; see
		`Mesh.splice` for the full operation.
		'''
		a_onext = a.onext
		b_onext = b.onext

		a_onext.twin.lnext = b
		b_onext.twin.lnext = a
		a.onext = b_onext
		b.onext = a_onext

	def add_winding (dst: Self, src: Self):
		dst.winding += src.winding
		dst.twin.winding += src.twin.winding

	def __repr__ (self):
		org = self.org.co if self.org is not None else None
		dst = self.dst.co if self.twin is not None and self.dst is not None else None
		return f'<Edge {org} -> {dst} w={self.winding}>'


class Mesh:
	def __init__ (self):
		self._vertices = Pool(Vertex)
		self._faces = Pool(Face)
		self._edges = Pool(Edge)

		self.vhead = Vertex()
		self.fhead = Face()
		e = self.ehead = Edge()
		t = self.thead = Edge()
		e.twin = t
		t.twin = e
		e.first = True
		t.first = False

	# Element lifetime

	def _make_edge_pair (self, e_next: Edge) -> Edge:
		'''
		Creates a pair of half-edges forming their own loop, linked into the
		global edge list before `e_next`. Vertices and faces must be assigned
		by the caller before the current operation completes.
		'''
		e = self._edges.pull()
		t = self._edges.pull()
		e.first = True
		t.first = False

		# Make sure e_next points to the first edge of its pair
		if not e_next.first:
			e_next = e_next.twin

		# The prev pointer of the global list is stored in twin.next
		e_prev = e_next.twin.next
		t.next = e_prev
		e_prev.twin.next = e
		e.next = e_next
		e_next.twin.next = t

		e.twin = t
		e.onext = e
		e.lnext = t

		t.twin = e
		t.onext = t
		t.lnext = e
		return e

	def _make_vertex (self, e_orig: Edge, v_next: Vertex) -> Vertex:
		'''
		Attaches a new vertex as the origin of every edge in the ring of
		`e_orig`, inserted before `v_next` in the vertex list.
		'''
		v_new = self._vertices.pull()
		v_next.insert_before(v_new)
		v_new.edge = e_orig

		e = e_orig
		while True:
			e.org = v_new
			if (e:=e.onext) is e_orig:
				break
		return v_new

	def _make_face (self, e_orig: Edge, f_next: Face) -> Face:
		f_new = self._faces.pull()
		f_next.insert_before(f_new)
		f_new.edge = e_orig
		# A face split in two keeps its "inside" flag on both halves
		f_new.inside = f_next.inside

		e = e_orig
		while True:
			e.lface = f_new
			if (e:=e.lnext) is e_orig:
				break
		return f_new

	def _kill_edge (self, e_del: Edge):
		if not e_del.first:
			e_del = e_del.twin

		e_next = e_del.next
		e_prev = e_del.twin.next
		e_next.twin.next = e_prev
		e_prev.twin.next = e_next

		self._edges.repool(e_del.twin)
		self._edges.repool(e_del)

	def _kill_vertex (self, v_del: Vertex, new_org: Vertex | None):
		e = e_start = v_del.edge
		while True:
			e.org = new_org
			if (e:=e.onext) is e_start:
				break
		v_del.remove_from_chain()
		self._vertices.repool(v_del)

	def _kill_face (self, f_del: Face, new_lface: Face | None):
		e = e_start = f_del.edge
		while True:
			e.lface = new_lface
			if (e:=e.lnext) is e_start:
				break
		f_del.remove_from_chain()
		self._faces.repool(f_del)

	def free (self):
		'''Resets every element this mesh ever allocated, breaking all cycles.'''
		self._faces.reset()
		self._vertices.reset()
		self._edges.reset()
		self.vhead.reset()
		self.fhead.reset()
		self.ehead.next = self.ehead
		self.thead.next = self.thead

	# Iteration

	def vertices (self):
		return self.vhead.walk_head_safe()

	def faces (self):
		return self.fhead.walk_head_safe()

	def edges (self):
		'First half-edge of every pair; the yielded edge may be deleted'
		e = self.ehead.next
		while e is not self.ehead:
			e_next = e.next
			yield e
			e = e_next

	# Topology operators

	def make_edge (self) -> Edge:
		'''
		Creates one edge, two vertices and a loop (face). The loop consists of
		the two new half-edges.
		'''
		e = self._make_edge_pair(self.ehead)

		self._make_vertex(e, self.vhead)
		self._make_vertex(e.twin, self.vhead)
		self._make_face(e, self.fhead)
		return e

	def splice (self, e_org: Edge, e_dst: Edge):
		'''
		The basic operation for changing connectivity and topology. Afterwards

		    e_org.onext == OLD(e_dst.onext)
		    e_dst.onext == OLD(e_org.onext)

		If the two origins differ the vertices are merged (e_dst.org is
		destroyed); if they are the same the origin is split in two (the new
		vertex is e_dst.org). Independently, if the two left faces differ the
		loops are joined (e_dst.lface is destroyed), otherwise one loop is
		split in two (the new face is e_dst.lface). e_org's vertex and face
		survive in every case.
		'''
		if e_org is e_dst:
			return

		joining_vertices = False
		if e_dst.org is not e_org.org:
			joining_vertices = True
			self._kill_vertex(e_dst.org, e_org.org)

		joining_loops = False
		if e_dst.lface is not e_org.lface:
			joining_loops = True
			self._kill_face(e_dst.lface, e_org.lface)

		e_dst.splice_insert(e_org)

		if not joining_vertices:
			self._make_vertex(e_dst, e_org.org)
			e_org.org.edge = e_org

		if not joining_loops:
			self._make_face(e_dst, e_org.lface)
			e_org.lface.edge = e_org

	def delete (self, e_del: Edge):
		'''
		Removes `e_del`. If its two faces differ they are joined and the left
		face is destroyed; otherwise the loop is split in two and the new loop
		holds `e_del.dst`. Vertices left without edges are destroyed too.
		'''
		t_del = e_del.twin

		# First disconnect e_del.org, leaving a consistent mesh apart from
		# e_del.org possibly having been freed.
		joining_loops = False
		if e_del.lface is not e_del.rface:
			joining_loops = True
			self._kill_face(e_del.lface, e_del.rface)

		if e_del.onext is e_del:
			self._kill_vertex(e_del.org, None)
		else:
			e_del.rface.edge = e_del.oprev
			e_del.org.edge = e_del.onext

			e_del.splice_insert(e_del.oprev)

			if not joining_loops:
				self._make_face(e_del, e_del.lface)

		# Now disconnect e_del.dst
		if t_del.onext is t_del:
			self._kill_vertex(t_del.org, None)
			self._kill_face(t_del.lface, None)
		else:
			e_del.lface.edge = t_del.oprev
			t_del.org.edge = t_del.onext
			t_del.splice_insert(t_del.oprev)

		self._kill_edge(e_del)

	__delitem__ = delete

	def add_edge_vertex (self, e_org: Edge) -> Edge:
		'''
		Creates `e_new` such that `e_new == e_org.lnext` and `e_new.dst` is a
		new vertex. Both edges keep the same left face.
		'''
		e_new = self._make_edge_pair(e_org)
		t_new = e_new.twin

		e_new.splice_insert(e_org.lnext)

		e_new.org = e_org.dst
		self._make_vertex(t_new, e_new.org)
		e_new.lface = t_new.lface = e_org.lface
		return e_new

	def split_edge (self, e_org: Edge) -> Edge:
		'''
		Splits `e_org` into `e_org` and `e_new` with `e_new == e_org.lnext`.
		The new vertex is `e_org.dst == e_new.org`; its coordinates are left
		for the caller. Winding is copied to both halves.
		'''
		e_tmp = self.add_edge_vertex(e_org)
		e_new = e_tmp.twin

		# Disconnect e_org from e_org.dst and connect it to e_new.org
		e_org.twin.splice_insert(e_org.twin.oprev)
		e_org.twin.splice_insert(e_new)

		e_org.dst = e_new.org
		e_new.dst.edge = e_new.twin # may have pointed to e_org.twin
		e_new.rface = e_org.rface
		e_new.winding = e_org.winding
		e_new.twin.winding = e_org.twin.winding
		return e_new

	def connect (self, e_org: Edge, e_dst: Edge) -> Edge:
		'''
		Creates an edge from `e_org.dst` to `e_dst.org` and returns it. If the
		two share a left face the loop is split and the new loop is
		`e_new.lface`; otherwise the loops are joined and `e_dst.lface` is
		destroyed.
		'''
		e_new = self._make_edge_pair(e_org)
		t_new = e_new.twin

		joining_loops = False
		if e_dst.lface is not e_org.lface:
			joining_loops = True
			self._kill_face(e_dst.lface, e_org.lface)

		e_new.splice_insert(e_org.lnext)
		t_new.splice_insert(e_dst)

		e_new.org = e_org.dst
		t_new.org = e_dst.org
		e_new.lface = t_new.lface = e_org.lface

		# Make sure the old face points to a valid half-edge
		e_org.lface.edge = t_new

		if not joining_loops:
			self._make_face(e_new, e_org.lface)
		return e_new

	def zap_face (self, f_zap: Face):
		'''
		Destroys a face. Its edges are left with no left face, and those which
		also have no right face are deleted along with any vertex this
		isolates. A whole mesh can be erased by zapping its faces one by one
		in any order.
		'''
		e_start = f_zap.edge

		e_next = e_start.lnext
		while True:
			e = e_next
			e_next = e.lnext

			e.lface = None
			if e.rface is None:
				if e.onext is e:
					self._kill_vertex(e.org, None)
				else:
					e.org.edge = e.onext
					e.splice_insert(e.oprev)

				t = e.twin
				if t.onext is t:
					self._kill_vertex(t.org, None)
				else:
					t.org.edge = t.onext
					t.splice_insert(t.oprev)
				self._kill_edge(e)

			if e is e_start:
				break

		f_zap.remove_from_chain()
		self._faces.repool(f_zap)

	def merge_convex_faces (self, max_verts_per_face: int):
		'''
		Joins neighbouring inside faces across their shared edge while the
		result stays convex and has at most `max_verts_per_face` vertices.
		'''
		f = self.fhead.next
		while f is not self.fhead:
			if not f.inside:
				f = f.next
				continue

			e_cur = f.edge
			v_start = e_cur.org
			while True:
				e_next = e_cur.lnext
				e_sym = e_cur.twin

				if e_sym.lface is not None and e_sym.lface.inside:
					cur_nv = f.count_verts()
					sym_nv = e_sym.lface.count_verts()
					if (cur_nv + sym_nv - 2) <= max_verts_per_face:
						if (geom.vert_ccw(e_cur.lprev.org.co, e_cur.org.co, e_sym.lnext.lnext.org.co) and
						    geom.vert_ccw(e_sym.lprev.org.co, e_sym.org.co, e_cur.lnext.lnext.org.co)):
							e_next = e_sym.lnext
							self.delete(e_sym)
							e_cur = None

				if e_cur is not None and e_cur.lnext.org is v_start:
					break
				e_cur = e_next
			f = f.next

	def check (self):
		'''
		Walks every face, vertex and edge list asserting the structural
		invariants. O(n), intended for tests and debug runs.
		'''
		fhead = self.fhead
		vhead = self.vhead
		ehead = self.ehead

		f = fprev = fhead
		while (f := fprev.next) is not fhead:
			assert f.prev is fprev
			e = f.edge
			while True:
				assert e.twin is not e
				assert e.twin.twin is e
				assert e.lnext.onext.twin is e
				assert e.onext.twin.lnext is e
				assert e.lface is f
				if (e:=e.lnext) is f.edge:
					break
			fprev = f
		assert f.prev is fprev and f.edge is None

		v = vprev = vhead
		while (v := vprev.next) is not vhead:
			assert v.prev is vprev
			e = v.edge
			while True:
				assert e.twin is not e
				assert e.twin.twin is e
				assert e.lnext.onext.twin is e
				assert e.onext.twin.lnext is e
				assert e.org is v
				if (e:=e.onext) is v.edge:
					break
			vprev = v
		assert v.prev is vprev and v.edge is None

		e = eprev = ehead
		while (e:=eprev.next) is not ehead:
			assert e.twin.next is eprev.twin
			assert e.twin is not e
			assert e.twin.twin is e
			assert e.org is not None
			assert e.dst is not None
			assert e.lnext.onext.twin is e
			assert e.onext.twin.lnext is e
			eprev = e
		assert e.twin.next is eprev.twin
		assert e.twin is self.thead
		assert e.twin.twin is e
		assert e.org is None and e.dst is None
		assert e.lface is None and e.rface is None

	# Whole-mesh passes

	def compute_normal (self) -> Co3:
		'''
		Picks the two vertices furthest apart along the widest axis, then the
		third vertex making the largest triangle with them; the triangle's
		normal is the polygon normal.
		'''
		first = self.vhead.next
		min_val = first.src_co.copy()
		max_val = first.src_co.copy()
		min_vert = [first] * 3
		max_vert = [first] * 3

		for v in +self.vhead:
			for i, c in enumerate(v.src_co):
				if c < min_val[i]:
					min_val[i] = c
					min_vert[i] = v
				if c > max_val[i]:
					max_val[i] = c
					max_vert[i] = v

		i = 0
		if (max_val.y - min_val.y) > (max_val.x - min_val.x):
			i = 1
		if (max_val.z - min_val.z) > (max_val[i] - min_val[i]):
			i = 2

		if min_val[i] >= max_val[i]:
			# All vertices are the same -- normal doesn't matter
			return Co3(0.0, 0.0, 1.0)

		norm = Co3()
		max_len2 = 0.0
		v1 = min_vert[i]
		v2 = max_vert[i]
		d1 = v1.src_co - v2.src_co

		for v in +self.vhead:
			d2 = v.src_co - v2.src_co
			t_norm = d1.cross(d2)
			t_len2 = t_norm.length_squared()
			if t_len2 > max_len2:
				max_len2 = t_len2
				norm = t_norm

		if max_len2 <= 0:
			# All points lie on a single line -- any decent normal will do
			norm = Co3()
			norm[geom.short_axis(d1)[0]] = 1.0
		return norm

	def set_winding_number (self, value: int, keep_only_boundary: bool):
		'''
		Sets the winding of boundary edges (inside on one side only) to
		`value` or `-value` so that inside is on the left. Other edges get 0,
		or are deleted when `keep_only_boundary` is set.
		'''
		for e in self.edges():
			if e.rface.inside != e.lface.inside:
				e.winding = value if e.lface.inside else -value
				e.twin.winding = -e.winding
			elif not keep_only_boundary:
				e.winding = 0
				e.twin.winding = 0
			else:
				self.delete(e)

	def remove_degenerate_edges (self):
		'''Removes zero-length edges and contours with fewer than 3 vertices.'''
		e_head = self.ehead

		e = e_head.next
		while e is not e_head:
			e_next = e.next
			e_lnext = e.lnext

			if (e.org == e.dst) and e.lnext.lnext is not e:
				# Zero-length edge, contour has at least 3 edges
				self.splice(e_lnext, e) # deletes e.org
				self.delete(e) # e is a self-loop
				e = e_lnext
				e_lnext = e.lnext

			if e_lnext.lnext is e:
				# Degenerate contour (one or two edges)
				if e_lnext is not e:
					if e_lnext is e_next or e_lnext is e_next.twin:
						e_next = e_next.next
					self.delete(e_lnext)
				if e is e_next or e is e_next.twin:
					e_next = e_next.next
				self.delete(e)
			e = e_next

	def remove_degenerate_faces (self):
		'''
		Deletes faces bounded by only two edges, folding the winding of the
		deleted edge into its neighbour.
		'''
		for f in self.faces():
			e = f.edge
			assert e.lnext is not e

			if e.lnext.lnext is e:
				e.onext.add_winding(e)
				self.delete(e)

	def discard_exterior (self):
		for f in self.faces():
			if not f.inside:
				self.zap_face(f)

	def tessellate_interior (self):
		'''Triangulates every inside face. Each of them must be monotone.'''
		for f in self.faces():
			if f.inside:
				self.tessellate_mono_region(f)

	def tessellate_mono_region (self, face: Face):
		'''
		Triangulates a monotone face (a single CCW loop that every vertical
		line crosses in one interval) by adding interior edges.

		The loop is split into an upper and a lower chain, processed right to
		left. After each vertex the untriangulated part is one chain that is
		a single edge and one that is concave, with the single edge's left
		end left of every vertex of the concave chain. Each step adds the
		next vertex to one chain and fans as many triangles as the
		orientation test allows from the rightmost chain end.
		'''
		# All edges are oriented CCW around the boundary of the region.
		# First, find the half-edge whose origin vertex is rightmost.
		up = face.edge
		assert (up.lnext is not up) and (up.lnext.lnext is not up)

		while up.dst <= up.org:
			up = up.lprev
		while up.org <= up.dst:
			up = up.lnext

		lo = up.lprev
		while up.lnext is not lo:
			if up.dst <= lo.org:
				# up.dst is on the left, it is safe to form triangles from lo.org.
				# goes_left guarantees progress even when some triangles are CW.
				while (
					(lo.lnext is not up) and
					(
						lo.lnext.goes_left or
						geom.edge_sign(lo.org.co, lo.dst.co, lo.lnext.dst.co) <= 0
					)
				):
					lo = self.connect(lo.lnext, lo).twin
				lo = lo.lprev
			else:
				# lo.org is on the left, we can make CCW triangles from up.dst.
				while (
					(lo.lnext is not up) and
					(
						up.lprev.goes_right or
						geom.edge_sign(up.dst.co, up.org.co, up.lprev.org.co) >= 0
					)
				):
					up = self.connect(up, up.lprev).twin
				up = up.lnext

		# lo.org == up.dst == the leftmost vertex. Fan the rest from there.
		assert lo.lnext is not up
		while lo.lnext.lnext is not up:
			lo = self.connect(lo.lnext, lo).twin

	def flip_edge (self, edge: Edge):
		'''
		Replaces the diagonal shared by two triangles with the other one.
		Both faces must be triangles and `edge` must be internal.
		'''
		a0 = edge
		a1 = a0.lnext
		a2 = a1.lnext
		b0 = edge.twin
		b1 = b0.lnext
		b2 = b1.lnext

		a_org = a0.org
		a_opp = a2.org
		b_org = b0.org
		b_opp = b2.org

		fa = a0.lface
		fb = b0.lface

		assert edge.is_internal
		assert a2.lnext is a0
		assert b2.lnext is b0

		a0.org = b_opp
		a0.onext = b1.twin
		b0.org = a_opp
		b0.onext = a1.twin
		a2.onext = b0
		b2.onext = a0
		b1.onext = a2.twin
		a1.onext = b2.twin

		a0.lnext = a2
		a2.lnext = b1
		b1.lnext = a0

		b0.lnext = b2
		b2.lnext = a1
		a1.lnext = b0

		a1.lface = fb
		b1.lface = fa

		fa.edge = a0
		fb.edge = b0

		if a_org.edge is a0:
			a_org.edge = b1
		if b_org.edge is b0:
			b_org.edge = a1

		assert a0.lnext.onext.twin is a0
		assert b0.onext.twin.lnext is b0

	def refine_delaunay (self):
		'''
		Flips internal edges of the triangulated interior until every one is
		locally Delaunay, or the iteration budget (faces squared) runs out.
		'''
		stack = list[Edge]()
		max_faces = 0
		for f in +self.fhead:
			if f.inside:
				for e in f.loop():
					e.mark = e.is_internal
					if e.mark and not e.twin.mark:
						stack.append(e)
				max_faces += 1

		max_iter = max_faces ** 2
		cur_iter = 0

		while len(stack) > 0 and cur_iter < max_iter:
			e = stack.pop()
			e.mark = e.twin.mark = False
			if not e.is_locally_delaunay():
				self.flip_edge(e)
				for ek in (e.lnext, e.lprev, e.twin.lnext, e.twin.lprev):
					if not ek.mark and ek.is_internal:
						ek.mark = ek.twin.mark = True
						stack.append(ek)
			cur_iter += 1

		if cur_iter >= max_iter and stack:
			logger.debug('delaunay refinement stopped after %d flips', cur_iter)
