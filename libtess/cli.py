'''
Command line front-end: tessellates a curve file into a Wavefront OBJ.

A curve file holds one contour per line as comma separated coordinates,
two per point, e.g. `0,0,1,0,1,1,`.
'''
import argparse
import logging
import sys
from pathlib import Path

from libtess.constants import DEFAULT_POLY_SIZE, UNDEF
from libtess.ds.coord import Co3
from libtess.errors import TessellationError
from libtess.tess import ElementType, Tesselator, WindingRule

logger = logging.getLogger(__name__)

LINE_V = 'v {:f} {:f} {:f}'


def read_curve_file (path) -> tuple[tuple[tuple[float, float], ...], ...]:
	splines = []
	with open(path, 'r') as f:
		for line in f:
			acc = ''
			spline = []
			pt = []
			for ch in line.strip() + ',':
				if ch == ',':
					if len(acc) != 0:
						pt.append(float(acc))
						if len(pt) == 2:
							spline.append(tuple(pt))
							pt.clear()
					acc = ''
				elif not ch.isspace():
					acc += ch
			if spline:
				splines.append(tuple(spline))
	return tuple(splines)


def format_obj (t: Tesselator, name = 'libtess') -> str:
	out = list[str]()
	out.append(f'o {name}')

	for cv in t.vertices:
		out.append(LINE_V.format(*cv.position))

	out.append('s 0')

	elements = t.elements
	n = len(elements) // t.element_count if t.element_count else 0
	for k in range(t.element_count):
		face = [i + 1 for i in elements[k * n:(k + 1) * n] if i != UNDEF]
		out.append('f ' + ' '.join(str(i) for i in face))

	return '\n'.join(out) + '\n'


def build_parser () -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog='libtess',
		description='Tessellate the contours of a curve file into a Wavefront OBJ.'
	)
	parser.add_argument('curves', type=Path, help='curve file, one contour per line')
	parser.add_argument('output', type=Path, help='OBJ file to write')
	parser.add_argument(
		'--rule',
		choices=[r.name.lower() for r in WindingRule],
		default='odd',
		help='winding rule (default: %(default)s)'
	)
	parser.add_argument(
		'--poly-size',
		type=int,
		default=DEFAULT_POLY_SIZE,
		help='maximum vertices per output polygon (default: %(default)s)'
	)
	parser.add_argument('--cdt', action='store_true', help='refine triangles towards Delaunay')
	parser.add_argument('-v', '--verbose', action='store_true', help='debug logging')
	return parser


def main (argv = None) -> int:
	args = build_parser().parse_args(argv)

	root = logging.getLogger('libtess')
	if not root.handlers:
		handler = logging.StreamHandler()
		handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
		root.addHandler(handler)
	root.setLevel(logging.DEBUG if args.verbose else logging.INFO)

	try:
		curves = read_curve_file(args.curves)
	except (OSError, ValueError) as e:
		logger.error('cannot read %s: %s', args.curves, e)
		return 1

	t = Tesselator()
	t.normal = Co3(0.0, 0.0, 1.0)
	t.process_cdt = args.cdt
	for c in curves:
		t.add_contour(c)

	try:
		ok = t.tesselate(
			WindingRule[args.rule.upper()],
			ElementType.POLYGONS,
			poly_size=args.poly_size
		)
	except TessellationError as e:
		logger.error('tessellation failed: %s', e)
		return 1

	if not ok or t.element_count == 0:
		logger.error('%s: nothing to tessellate', args.curves)
		return 1

	args.output.write_text(format_obj(t, args.curves.stem))
	logger.info('wrote %d vertices, %d polygons to %s', t.vertex_count, t.element_count, args.output)
	return 0


if __name__ == '__main__':
	sys.exit(main())
