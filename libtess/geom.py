'''
Geometric predicates on projected (s, t) coordinates.

`Co2.x` is the sweep coordinate `s` and `Co2.y` is `t`. Vertices are swept
in `vert_leq` order, by `s` and then by `t`. The `trans_*` family is the
same thing with the roles of `s` and `t` swapped.
'''
from libtess.ds.coord import Co2, Co3


def vert_eq (u: Co2, v: Co2) -> bool:
	return u.x == v.x and u.y == v.y

def vert_leq (u: Co2, v: Co2) -> bool:
	return (u.x < v.x) or (u.x == v.x and u.y <= v.y)

def trans_leq (u: Co2, v: Co2) -> bool:
	return (u.y < v.y) or (u.y == v.y and u.x <= v.x)


def _eval_sign (
	u: Co2, v: Co2, w: Co2,
	transposed = False,
	*,
	eval = False,
	sign = False
) -> float:
	if transposed:
		u = u.yx
		v = v.yx
		w = w.yx

	assert u <= v <= w

	gap_l = v.x - u.x
	gap_r = w.x - v.x

	if gap_l + gap_r > 0:
		if eval:
			if gap_l < gap_r:
				return (v.y - u.y) + (u.y - w.y) * (gap_l / (gap_l + gap_r))
			else:
				return (v.y - w.y) + (w.y - u.y) * (gap_r / (gap_l + gap_r))
		if sign:
			return (v.y - w.y) * gap_l + (v.y - u.y) * gap_r
	return 0.0 # Vertical line

def edge_eval (u: Co2, v: Co2, w: Co2) -> float:
	'''
	Given `u <= v <= w`, evaluates the `t` of edge `uw` at the `s` of `v`
	and returns `v.t - uw(v.s)`, the signed distance from `uw` to `v`.
	Zero if `uw` is vertical.

	The result is accurate even when `v` is very close to `u` or `w`: if
	`v.t` were zero, the negated result is guaranteed to lie within
	`[min(u.t, w.t), max(u.t, w.t)]`.
	'''
	return _eval_sign(u,v,w, eval=True)

def edge_sign (u: Co2, v: Co2, w: Co2) -> float:
	'''
	Same sign as `edge_eval(u, v, w)` but cheaper: positive, zero or
	negative as `v` is above, on or below `uw`.
	'''
	return _eval_sign(u,v,w, sign=True)

def trans_eval (u: Co2, v: Co2, w: Co2) -> float:
	return _eval_sign(u,v,w,True, eval=True)

def trans_sign (u: Co2, v: Co2, w: Co2) -> float:
	return _eval_sign(u,v,w,True, sign=True)


def edge_goes_left (org: Co2, dst: Co2) -> bool:
	return vert_leq(dst, org)

def edge_goes_right (org: Co2, dst: Co2) -> bool:
	return vert_leq(org, dst)


def vert_l1_dist (u: Co2, v: Co2) -> float:
	return u.dist_l1(v)

def vert_ccw (u: Co2, v: Co2, w: Co2) -> bool:
	return ((u.x * (v.y - w.y) +
	         v.x * (w.y - u.y) +
	         w.x * (u.y - v.y)) >= 0)


def interpolate (a: float, x: float, b: float, y: float) -> float:
	'''
	Weighted mean of `x` and `y`, `x` weighted by `b` and `y` by `a`.
	Negative weights count as zero; two zero weights give the midpoint.
	'''
	a = 0.0 if a < 0 else a
	b = 0.0 if b < 0 else b

	if a <= b:
		if b == 0:
			return (x + y) / 2
		else:
			return x + (y-x) * (a/(a+b))
	else:
		return y + (x-y) * (b/(a+b))


def edge_intersect (o1: Co2, d1: Co2,
                    o2: Co2, d2: Co2) -> Co2:
	'''
	Intersection of edges `(o1, d1)` and `(o2, d2)`. The result always lies
	within the intersection of the two edges' bounding boxes.
	'''
	v = Co2()

	# This is certainly not the most efficient way to find the intersection
	# of two line segments, but it is very numerically stable.
	#
	# Strategy: find the two middle vertices in the vert_leq ordering,
	# and interpolate the intersection s-value from these. Then repeat
	# using the trans_leq ordering to find the intersection t-value.
	if not vert_leq(o1, d1):
		o1, d1 = d1, o1
	if not vert_leq(o2, d2):
		o2, d2 = d2, o2
	if not vert_leq(o1, o2):
		o1, o2 = o2, o1
		d1, d2 = d2, d1

	if not vert_leq(o2, d1):
		# Technically, no intersection -- do our best
		v.x = (o2.x + d1.x) / 2
	elif vert_leq(d1, d2):
		# Interpolate between o2 and d1
		z1 = edge_eval(o1, o2, d1)
		z2 = edge_eval(o2, d1, d2)
		if (z1 + z2) < 0:
			z1 = -z1
			z2 = -z2
		v.x = interpolate(z1, o2.x, z2, d1.x)
	else:
		# Interpolate between o2 and d2
		z1 = edge_sign(o1, o2, d1)
		z2 = -edge_sign(o1, d2, d1)
		if (z1 + z2) < 0:
			z1 = -z1
			z2 = -z2
		v.x = interpolate(z1, o2.x, z2, d2.x)

	# Repeat for t
	if not trans_leq(o1, d1):
		o1, d1 = d1, o1
	if not trans_leq(o2, d2):
		o2, d2 = d2, o2
	if not trans_leq(o1, o2):
		o1, o2 = o2, o1
		d1, d2 = d2, d1

	if not trans_leq(o2, d1):
		v.y = (o2.y + d1.y) / 2
	elif trans_leq(d1, d2):
		z1 = trans_eval(o1, o2, d1)
		z2 = trans_eval(o2, d1, d2)
		if (z1 + z2) < 0:
			z1 = -z1
			z2 = -z2
		v.y = interpolate(z1, o2.y, z2, d1.y)
	else:
		z1 = trans_sign(o1, o2, d1)
		z2 = -trans_sign(o1, d2, d1)
		if (z1 + z2) < 0:
			z1 = -z1
			z2 = -z2
		v.y = interpolate(z1, o2.y, z2, d2.y)

	return v


def in_circle (v: Co2, v0: Co2, v1: Co2, v2: Co2) -> float:
	'''Negative when `v` lies outside the circle through `v0, v1, v2` (CCW).'''
	adx = v0.x - v.x
	ady = v0.y - v.y
	bdx = v1.x - v.x
	bdy = v1.y - v.y
	cdx = v2.x - v.x
	cdy = v2.y - v.y

	abdet = adx * bdy - bdx * ady
	bcdet = bdx * cdy - cdx * bdy
	cadet = cdx * ady - adx * cdy

	alift = adx * adx + ady * ady
	blift = bdx * bdx + bdy * bdy
	clift = cdx * cdx + cdy * cdy

	return alift * bcdet + blift * cadet + clift * abdet


def short_axis (co: Co3):
	i = 0
	if abs(co.y) < abs(co.x):
		i = 1
	if abs(co.z) < abs(co[i]):
		i = 2
	return i, co[i]

def long_axis (co: Co3):
	i = 0
	if abs(co.y) > abs(co.x):
		i = 1
	if abs(co.z) > abs(co[i]):
		i = 2
	return i, co[i]


def face_area (loop) -> float:
	'''
	Signed area of a closed loop of (s, t) points, positive when CCW.
	Same sum `Face.area` computes over a mesh face.
	'''
	area = 0.0
	n = len(loop)
	for i in range(n):
		o = loop[i]
		d = loop[(i + 1) % n]
		area += (o.x - d.x) * (o.y + d.y)
	return area * 0.5


def polygon_area (points) -> float:
	'''Signed area (CCW positive) of a closed polygon given as (x, y, ...) tuples.'''
	area = 0.0
	n = len(points)
	for i in range(n):
		x0, y0 = points[i][0], points[i][1]
		x1, y1 = points[(i + 1) % n][0], points[(i + 1) % n][1]
		area += x0 * y1 - y0 * x1
	return 0.5 * area
